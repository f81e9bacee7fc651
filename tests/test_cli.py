import json

import pytest

from cli import build_parser, main


@pytest.fixture(autouse=True)
def isolated(monkeypatch, tmp_path):
	for key in ("SMITH_CONFIG", "SMITH_MAX_IMPORTS", "SMITH_DERIVED_DATA", "SMITH_BUILD_TIMEOUT", "SMITH_LOG_LEVEL"):
		monkeypatch.delenv(key, raising=False)
	monkeypatch.chdir(tmp_path)


def test_validate_exit_codes(write_swift, tmp_path, capsys):
	write_swift("Sources/Good.swift", "@Reducer\nstruct Good {}\n")
	assert main(["validate", str(tmp_path)]) == 0
	out = capsys.readouterr().out
	assert "All files follow Smith TCA patterns" in out

	write_swift("Sources/Bad.swift", "WithViewStore(store) { _ in }\n")
	assert main(["validate", str(tmp_path)]) == 1


def test_validate_json(write_swift, tmp_path, capsys):
	write_swift("Feature.swift", "let now = Date()\n")
	assert main(["validate", "--json", str(tmp_path)]) == 0
	data = json.loads(capsys.readouterr().out)
	assert data["total_warnings"] == 1
	assert data["files"][0]["issues"][0]["rule"] == "date_init"


def test_disabled_rule_from_config(write_swift, tmp_path):
	path = write_swift("Feature.swift", "let now = Date()\n")
	assert main(["validate", str(path)]) == 1
	(tmp_path / ".smith.yaml").write_text("disabled_rules: [date_init]\n")
	assert main(["validate", str(path)]) == 0


def test_missing_path_reports_error(tmp_path, capsys):
	assert main(["validate", str(tmp_path / "missing")]) == 1
	assert capsys.readouterr().err.startswith("error: Path does not exist")


def test_compliance_strict(write_swift, tmp_path, capsys):
	write_swift("Sources/Settings.swift", "final class Settings {\n\tstatic let shared = Settings()\n}\n")
	assert main(["compliance", str(tmp_path)]) == 0
	assert "PASSED WITH 1 WARNINGS" in capsys.readouterr().out
	assert main(["compliance", "--strict", str(tmp_path)]) == 1


def test_report_with_history(write_swift, tmp_path, capsys):
	write_swift("Sources/View.swift", "IfLetStore(store) { _ in }\n")
	out_file = tmp_path / "out" / "report.json"
	assert main(["report", "--history", "--save", str(out_file), str(tmp_path)]) == 0
	out = capsys.readouterr().out
	assert "Grade: A" in out
	assert "Score: 90 / 100" in out
	assert json.loads(out_file.read_text())["score"] == 90
	assert len(list((tmp_path / ".smith-compliance-history").glob("*.json"))) == 1


def test_route(capsys):
	assert main(["route", "add", "a", "navigation", "sheet"]) == 0
	assert "SwiftUI navigation patterns with TCA" in capsys.readouterr().out


def test_spm_quick_and_not_a_package(tmp_path, capsys):
	(tmp_path / "Package.swift").write_text('let package = Package(name: "Pkg", targets: [.target(name: "Core")])\n')
	assert main(["spm", "--quick", str(tmp_path)]) == 0
	assert capsys.readouterr().out.strip() == "PASS"

	empty = tmp_path / "empty"
	empty.mkdir()
	assert main(["spm", str(empty)]) == 1
	assert "Not an SPM package" in capsys.readouterr().err


def test_spm_verbose_does_not_clash_with_logging():
	args = build_parser().parse_args(["spm", "--verbose", "."])
	assert args.verbose_report is True
	assert args.verbose == 0


def test_bad_config_file(tmp_path, capsys):
	(tmp_path / "bad.yaml").write_text("- a\n- b\n")
	assert main(["--config", str(tmp_path / "bad.yaml"), "route", "anything"]) == 1
	assert "must contain a mapping" in capsys.readouterr().err


def test_invalid_rule_regex_is_a_config_error(write_swift, tmp_path, capsys):
	write_swift("Feature.swift", "struct Feature {}\n")
	(tmp_path / ".smith.yaml").write_text(
		"extra_rules:\n  - name: broken\n    category: anti_pattern\n    pattern: '(unclosed'\n    message: never compiles\n"
	)
	assert main(["validate", str(tmp_path)]) == 1
	assert "invalid regex" in capsys.readouterr().err


def test_unreadable_module_file_does_not_crash_spm(tmp_path, write_swift):
	(tmp_path / "Package.swift").write_text('let package = Package(name: "Pkg")\n')
	write_swift("Modules/Core/Sources/Core.swift", "import Foundation\n")
	(tmp_path / "Modules" / "Core" / "Sources" / "Broken.swift").symlink_to(tmp_path / "missing.swift")
	assert main(["spm", str(tmp_path)]) == 0


def test_empty_route_prints_usage(capsys):
	assert main(["route", "   "]) == 1
	err = capsys.readouterr().err
	assert err.startswith("usage: smith route")
	assert "error: Task description is empty" in err
