"""smithlint: Smith framework checks for Swift / Composable Architecture projects.

Modules:
- fs_scan.py: Swift file discovery and project detection.
- swift_parse.py: Line-level Swift facts (imports, declarations).
- rules.py: Built-in TCA pattern rule table.
- patterns.py: Per-file pattern validation.
- compliance.py: Project compliance rules, score and history.
- router.py: Task-to-documentation routing.
- spm.py: Swift package structure and platform checks.
- toolchain.py: swiftc / swift-format invocation.
- build.py: Watched builds and hang analysis.
- summarize.py: Plain-text rendering of reports.
"""

__version__ = "0.3.0"

__all__ = [
	"fs_scan",
	"swift_parse",
	"rules",
	"patterns",
	"compliance",
	"router",
	"spm",
	"toolchain",
	"build",
	"summarize",
]
