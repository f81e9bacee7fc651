import pytest

from smithlint.errors import NotSpmPackageError, PathNotFoundError
from smithlint.spm import (
	analyze_package,
	check_platform_dependencies,
	count_targets,
	find_import_cycles,
	parse_platform_conditions,
	spm_exit_code,
)


MANIFEST = """
// swift-tools-version: 5.9
import PackageDescription

let package = Package(
	name: "Reader",
	products: [.library(name: "Reader", targets: ["Core", "UI"])],
	dependencies: [
		.package(url: "https://github.com/pointfreeco/swift-composable-architecture", from: "1.0.0"),
	],
	targets: [
		.target(name: "Core"),
		.target(
			name: "UI",
			dependencies: [
				"Core",
				.product(
					name: "ComposableArchitecture",
					package: "swift-composable-architecture",
					condition: .when(platforms: [.iOS, .macOS])
				),
			]
		),
		.testTarget(name: "CoreTests", dependencies: ["Core"]),
	]
)
"""


@pytest.fixture()
def package(tmp_path):
	root = tmp_path / "Reader"
	root.mkdir()
	(root / "Package.swift").write_text(MANIFEST)
	return root


def _module(write_swift, name, *imports):
	body = "".join(f"import {m}\n" for m in imports)
	write_swift(f"Reader/Modules/{name}/Sources/{name}.swift", body + f"struct {name} {{}}\n")


def test_count_targets_excludes_package_name():
	# Core, UI, ComposableArchitecture, CoreTests
	assert count_targets(MANIFEST, "Reader") == 4


def test_no_modules_dir_passes(package):
	report = analyze_package(str(package))
	assert report.package == "Reader"
	assert report.has_modules_dir is False
	assert report.result == "PASS"
	assert report.large_dependencies is None
	assert spm_exit_code(report) == 0


def test_mutual_cycle_is_critical(package, write_swift):
	_module(write_swift, "Core", "Foundation", "UI")
	_module(write_swift, "UI", "SwiftUI", "Core")
	_module(write_swift, "Net", "Foundation", "Core")

	report = analyze_package(str(package))
	assert [(c.kind, c.modules) for c in report.cycles] == [("mutual", ["Core", "UI"])]
	assert report.result == "CRITICAL"
	assert spm_exit_code(report) == 1


def test_self_import_cycle(package, write_swift):
	_module(write_swift, "Core", "Core")
	cycles = find_import_cycles(str(package / "Modules"))
	assert [(c.kind, c.modules) for c in cycles] == [("self", ["Core"])]


def test_deep_imports_warn(package, write_swift):
	_module(write_swift, "Core", *[f"Dep{i}" for i in range(4)])
	report = analyze_package(str(package), max_imports=3)
	assert report.result == "WARNING"
	deep = report.deep_imports[0]
	assert deep.file == "Core.swift"
	assert deep.import_count == 4
	assert spm_exit_code(report) == 0


def test_large_dependencies_from_resolved(package):
	(package / "Package.resolved").write_text('{"pins": [{"identity": "swift-syntax"}, {"identity": "grdb"}]}')
	report = analyze_package(str(package))
	assert report.large_dependencies == {"swift_syntax": True, "grdb": True, "tca": False}


def test_not_a_package(tmp_path):
	with pytest.raises(NotSpmPackageError):
		analyze_package(str(tmp_path))
	with pytest.raises(PathNotFoundError):
		analyze_package(str(tmp_path / "nope"))


def test_platform_conditions_use_nearest_name():
	conditions = parse_platform_conditions(MANIFEST)
	assert len(conditions) == 1
	assert conditions[0].product == "ComposableArchitecture"
	assert conditions[0].platforms == ["iOS", "macOS"]


def test_platform_gap_lists_importing_files(package, write_swift):
	write_swift("Reader/Sources/UI/RootView.swift", "import SwiftUI\nimport ComposableArchitecture\n")
	write_swift("Reader/Sources/Core/Model.swift", "import Foundation\n")
	write_swift("Reader/.build/checkouts/Dep.swift", "import ComposableArchitecture\n")

	report = check_platform_dependencies(str(package), "visionOS")
	assert [g.product for g in report.gaps] == ["ComposableArchitecture"]
	assert report.unavailable_imports == {"ComposableArchitecture": ["Sources/UI/RootView.swift"]}
	assert report.ok is False

	assert check_platform_dependencies(str(package), "iOS").ok


def test_unreadable_module_file_is_skipped(package, write_swift, caplog):
	_module(write_swift, "Core", "Foundation")
	broken = package / "Modules" / "Core" / "Sources" / "Broken.swift"
	broken.symlink_to(package / "missing.swift")

	report = analyze_package(str(package))
	assert report.result == "PASS"
	assert "Skipping unreadable file" in caplog.text


def test_platform_check_skips_unreadable_file(package, write_swift):
	write_swift("Reader/Sources/UI/RootView.swift", "import ComposableArchitecture\n")
	(package / "Sources" / "UI" / "Gone.swift").symlink_to(package / "missing.swift")

	report = check_platform_dependencies(str(package), "visionOS")
	assert report.unavailable_imports == {"ComposableArchitecture": ["Sources/UI/RootView.swift"]}
