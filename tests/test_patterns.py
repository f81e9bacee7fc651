import pytest

from smithlint.errors import NoSwiftFilesError, NotSwiftSourceError, PathNotFoundError
from smithlint.patterns import scan_exit_code, validate_path, validate_text


LEGACY_VIEW = """
import ComposableArchitecture
import SwiftUI

struct CounterView: View {
	let store: StoreOf<Counter>

	var body: some View {
		WithViewStore(store, observe: { $0 }) { viewStore in
			Text("\\(viewStore.count)")
		}
	}
}
"""

MODERN_FEATURE = """
import ComposableArchitecture

@Reducer
struct Counter {
	@ObservableState
	struct State: Equatable {
		var count = 0
	}
}

struct CounterView: View {
	@Bindable var store: StoreOf<Counter>
}
"""


def test_deprecated_pattern_reports_first_line():
	issues, positives = validate_text(LEGACY_VIEW.lstrip("\n"))
	# WithViewStore( also matches the ViewStore( initializer rule
	assert [i.rule for i in issues] == ["with_view_store", "view_store_init"]
	assert [i.line for i in issues] == [8, 8]
	assert all(i.severity == "error" for i in issues)
	assert positives == []


def test_modern_feature_has_only_positives():
	issues, positives = validate_text(MODERN_FEATURE)
	assert issues == []
	assert "Using modern @Reducer macro" in positives
	assert "Using @ObservableState for state" in positives
	assert "Using @Bindable for view bindings" in positives


def test_each_rule_fires_once_per_file():
	text = "let a = Date()\nlet b = Date()\nTask.detached { }\n"
	issues, _ = validate_text(text)
	assert sorted(i.rule for i in issues) == ["date_init", "task_detached"]
	assert all(i.severity == "warning" for i in issues)


def test_sheet_item_state_binding():
	issues, _ = validate_text(".sheet(item: $store.state.destination) { Detail() }\n")
	assert [i.rule for i in issues] == ["sheet_item_state_binding"]
	assert issues[0].line == 1


def test_validate_directory_prefers_sources(write_swift, tmp_path):
	write_swift("Sources/App/CounterView.swift", LEGACY_VIEW)
	write_swift("Sources/App/Counter.swift", MODERN_FEATURE)
	write_swift("Scripts/Legacy.swift", LEGACY_VIEW)
	write_swift("Sources/App/Build/Generated.swift", LEGACY_VIEW)
	write_swift("Sources/.build/checkouts/Dep.swift", LEGACY_VIEW)

	report = validate_path(str(tmp_path))
	rel = sorted(f.rel_path for f in report.files)
	assert rel == ["Sources/App/Counter.swift", "Sources/App/CounterView.swift"]
	assert report.total_errors == 2
	assert scan_exit_code(report) == 1


def test_warnings_alone_do_not_fail_directory_scan(write_swift, tmp_path):
	write_swift("Feature.swift", "let now = Date()\n")
	report = validate_path(str(tmp_path))
	assert report.total_warnings == 1
	assert scan_exit_code(report) == 0


def test_single_file_fails_on_any_issue(write_swift):
	path = write_swift("Feature.swift", "let now = Date()\n")
	report = validate_path(str(path))
	assert report.single_file
	assert scan_exit_code(report) == 1


def test_validate_path_errors(tmp_path):
	with pytest.raises(PathNotFoundError):
		validate_path(str(tmp_path / "missing"))

	readme = tmp_path / "README.md"
	readme.write_text("# hi")
	with pytest.raises(NotSwiftSourceError):
		validate_path(str(readme))

	with pytest.raises(NoSwiftFilesError):
		validate_path(str(tmp_path))


def test_unreadable_file_reported_not_fatal(write_swift, tmp_path):
	write_swift("Feature.swift", "let now = Date()\n")
	(tmp_path / "Broken.swift").symlink_to(tmp_path / "missing.swift")

	report = validate_path(str(tmp_path))
	broken = next(f for f in report.files if f.rel_path == "Broken.swift")
	assert broken.error
	assert broken.issues == []
	assert report.total_warnings == 1
	assert scan_exit_code(report) == 0
