"""Project-wide Smith compliance rules and the score/grade built on them."""
from __future__ import annotations

import json
import logging
import os
import re
from datetime import datetime
from pathlib import Path
from typing import Callable, List, Optional, Tuple

from .errors import PathNotFoundError
from .fs_scan import find_project_swift_files, read_source
from .model import ComplianceResult, ComplianceScore, ComplianceSummary, FileInfo, Finding
from .swift_parse import first_match_line

_log = logging.getLogger("smith.compliance")

HISTORY_DIR = ".smith-compliance-history"
PASSING_SCORE = 75

_WITH_VIEW_STORE = re.compile(r"WithViewStore")
_IF_LET_STORE = re.compile(r"IfLetStore")
_PUBLISHED = re.compile(r"@Published")
_XCTEST_ANY = re.compile(r"XCTestCase|XCTAssert|func test.*\(\).*\{")
_XCTEST_LINE = re.compile(r"XCTestCase|XCTAssert")
_DATE_CONSTANT = re.compile(r"Date\.constant")
_IF_LET_NO_CLOSURE = re.compile(r"\.ifLet\([^)]+\)\s*(?!\s*\{)")
_SINGLETON = re.compile(r"static (?:let|var) shared")
_ASYNC_TEST = re.compile(r"@Test.*async")

_SEND = "await store.send"
_FINISH = "await store.finish()"

GRADES: List[Tuple[int, str]] = [
	(95, "A+"),
	(90, "A"),
	(85, "B+"),
	(80, "B"),
	(75, "C+"),
	(70, "C"),
	(60, "D"),
]

Check = Callable[[FileInfo, str], Optional[Finding]]


def _finding(level: str, rule_id: int, message: str, f: FileInfo, line: Optional[int], remedy: Optional[str] = None) -> Finding:
	return Finding(level=level, rule_id=rule_id, message=message, file=f.rel_path, line=line or None, remedy=remedy)


def _check_with_view_store(f: FileInfo, text: str) -> Optional[Finding]:
	line = first_match_line(text, _WITH_VIEW_STORE)
	if line:
		return _finding("error", 1, "Using deprecated WithViewStore", f, line, "Use @Bindable var store instead (see QUICK-START.md Rule 2)")
	return None


def _check_if_let_store(f: FileInfo, text: str) -> Optional[Finding]:
	line = first_match_line(text, _IF_LET_STORE)
	if line:
		return _finding("error", 2, "Using deprecated IfLetStore", f, line, "Use .sheet(item:) with .scope() (see QUICK-START.md Rule 3)")
	return None


def _check_published(f: FileInfo, text: str) -> Optional[Finding]:
	line = first_match_line(text, _PUBLISHED)
	if line:
		return _finding("warning", 3, "@Published found (consider @Observable for Swift 6 strict concurrency)", f, line)
	return None


def _check_xctest(f: FileInfo, text: str) -> Optional[Finding]:
	if not f.is_test or not _XCTEST_ANY.search(text):
		return None
	line = first_match_line(text, _XCTEST_LINE) or first_match_line(text, _XCTEST_ANY)
	return _finding("error", 4, "Using XCTest instead of Swift Testing", f, line, "Use @Test and #expect() (see QUICK-START.md Rule 6)")


def _check_main_actor(f: FileInfo, text: str) -> Optional[Finding]:
	if not f.is_test or "TestStore" not in text or "@Test" not in text:
		return None
	previous = ""
	for number, line in enumerate(text.splitlines(), start=1):
		if "@Test" in line and "@MainActor" not in line and "@MainActor" not in previous:
			return _finding("error", 5, "TCA test missing @MainActor", f, number, "Add @MainActor before @Test (see QUICK-START.md Rule 6)")
		if line.strip():
			previous = line
	return None


def _check_date_constant(f: FileInfo, text: str) -> Optional[Finding]:
	if not f.is_test:
		return None
	line = first_match_line(text, _DATE_CONSTANT)
	if line:
		return _finding("error", 6, "Using Date.constant() instead of TestClock", f, line, "Use TestClock() for deterministic time (see QUICK-START.md Rule 7)")
	return None


def _check_missing_finish(f: FileInfo, text: str) -> Optional[Finding]:
	if f.is_test and "TestStore" in text and _SEND in text and _FINISH not in text:
		return _finding("warning", 7, "Test has store.send() but no store.finish()", f, None)
	return None


def _check_if_let_closure(f: FileInfo, text: str) -> Optional[Finding]:
	line = first_match_line(text, _IF_LET_NO_CLOSURE)
	if line:
		return _finding(
			"error", 8, ".ifLet missing closure (actions won't route)", f, line,
			"Add closure: .ifLet(...) { ChildFeature() } (see QUICK-START.md Rule 4)",
		)
	return None


def _check_singleton(f: FileInfo, text: str) -> Optional[Finding]:
	line = first_match_line(text, _SINGLETON)
	if line:
		return _finding("warning", 9, "Singleton pattern found (consider @DependencyClient for testability)", f, line)
	return None


def _check_effect_verification(f: FileInfo, text: str) -> Optional[Finding]:
	if not f.is_test or "TestStore" not in text or not _ASYNC_TEST.search(text):
		return None
	if text.count(_SEND) > 0 and text.count(_FINISH) == 0:
		return _finding("error", 10, "Test sends actions but never calls store.finish()", f, None, "Add 'await store.finish()' at end of test")
	return None


CHECKS: List[Check] = [
	_check_with_view_store,
	_check_if_let_store,
	_check_published,
	_check_xctest,
	_check_main_actor,
	_check_date_constant,
	_check_missing_finish,
	_check_if_let_closure,
	_check_singleton,
	_check_effect_verification,
]


def check_compliance(path: str, skip_dirs: Optional[List[str]] = None) -> ComplianceResult:
	if not os.path.isdir(path):
		raise PathNotFoundError(path)
	skip = ["Build", ".build", "DerivedData"] if skip_dirs is None else skip_dirs
	files = find_project_swift_files(path, skip)
	_log.info("Checking %d Swift files for compliance", len(files))

	findings: List[Finding] = []
	for f in files:
		try:
			text = read_source(f.path)
		except OSError as e:
			_log.warning("Skipping unreadable file %s: %s", f.path, e)
			continue
		for check in CHECKS:
			finding = check(f, text)
			if finding is not None:
				findings.append(finding)

	# Findings are reported rule by rule, files in walk order within a rule
	findings.sort(key=lambda x: x.rule_id)
	summary = ComplianceSummary(
		violations=sum(1 for x in findings if x.level == "error"),
		warnings=sum(1 for x in findings if x.level == "warning"),
		files_checked=len(files),
	)
	return ComplianceResult(summary=summary, findings=findings)


def compliance_exit_code(result: ComplianceResult, strict: bool = False) -> int:
	if result.summary.violations:
		return 1
	if strict and result.summary.warnings:
		return 1
	return 0


def compliance_json(result: ComplianceResult) -> dict:
	return {
		"summary": result.summary.model_dump(),
		"violations": [
			{
				"level": x.level,
				"message": x.message,
				"file": x.file,
				"line": x.line,
				"remedy": x.remedy,
			}
			for x in result.findings
		],
	}


def compute_score(violations: int, warnings: int) -> int:
	return max(0, 100 - violations * 10 - warnings * 2)


def grade_for(score: int) -> str:
	for threshold, grade in GRADES:
		if score >= threshold:
			return grade
	return "F"


def score_result(project: str, result: ComplianceResult, now: Optional[datetime] = None) -> ComplianceScore:
	now = now or datetime.now()
	score = compute_score(result.summary.violations, result.summary.warnings)
	return ComplianceScore(
		timestamp=now.strftime("%Y%m%d_%H%M%S"),
		project=project,
		score=score,
		grade=grade_for(score),
		violations=result.summary.violations,
		warnings=result.summary.warnings,
		files_checked=result.summary.files_checked,
	)


def recommendations(score: int) -> Tuple[str, List[str]]:
	if score >= 95:
		return "Excellent compliance! Your code follows Smith patterns.", [
			"Maintain this level in future PRs",
			"Consider contributing patterns back to Smith",
			"Share compliance report with team",
		]
	if score >= 80:
		return "Good compliance, but room for improvement.", [
			"Fix critical violations first",
			"Review QUICK-START.md for common patterns",
			"Run smith compliance before each commit",
		]
	if score >= 60:
		return "Moderate compliance issues detected.", [
			"Fix all violations (see breakdown above)",
			"Read QUICK-START.md thoroughly",
			"Review AGENTS-TCA-PATTERNS.md for your use cases",
			"Add a pre-commit hook running smith compliance",
		]
	return "Low compliance score - immediate action required.", [
		"Stop merging until violations are fixed",
		"Review QUICK-START.md, AGENTS-AGNOSTIC.md and AGENTS-TCA-PATTERNS.md",
		"Run the compliance check frequently during refactor",
		"Consider pair programming with someone familiar with Smith",
	]


def report_exit_code(score: ComplianceScore) -> int:
	return 0 if score.score >= PASSING_SCORE else 1


def save_report(output: str, score: ComplianceScore, result: ComplianceResult) -> Path:
	payload = score.model_dump()
	payload["details"] = compliance_json(result)
	path = Path(output)
	if path.parent and not path.parent.exists():
		path.parent.mkdir(parents=True, exist_ok=True)
	path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
	_log.info("Report saved to %s", path)
	return path


def record_history(project: str, score: ComplianceScore) -> Path:
	history = Path(project) / HISTORY_DIR
	history.mkdir(parents=True, exist_ok=True)
	path = history / f"{score.timestamp}.json"
	payload = score.model_dump(exclude={"project"})
	path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
	return path


def load_history(project: str, limit: int = 5) -> List[ComplianceScore]:
	history = Path(project) / HISTORY_DIR
	if not history.is_dir():
		return []
	entries: List[ComplianceScore] = []
	# Timestamped names sort chronologically
	for path in sorted(history.glob("*.json"), reverse=True)[:limit]:
		try:
			data = json.loads(path.read_text(encoding="utf-8"))
			data.setdefault("project", project)
			entries.append(ComplianceScore(**data))
		except (OSError, ValueError) as e:
			_log.warning("Ignoring unreadable history entry %s: %s", path, e)
	return entries
