from __future__ import annotations

import logging
import os
from typing import List, Optional, Tuple

from .errors import NoSwiftFilesError, NotSwiftSourceError, PathNotFoundError
from .fs_scan import DEFAULT_SKIP_DIRS, find_swift_files, read_source, resolve_scan_root
from .model import FileReport, PatternIssue, PatternRule, ScanReport
from .rules import SHEET_MARKER, compile_rule, load_rules
from .swift_parse import first_match_line

_log = logging.getLogger("smith.patterns")


def validate_text(text: str, rules: Optional[List[PatternRule]] = None) -> Tuple[List[PatternIssue], List[str]]:
	"""Run the rule table over one source text.

	Each rule fires at most once per text and records the line of its first
	match. Positive rules never produce issues; their messages are returned
	separately so reports can show which modern patterns are in use.
	"""
	if rules is None:
		rules = load_rules()
	issues: List[PatternIssue] = []
	positives: List[str] = []
	has_sheet = SHEET_MARKER in text

	for rule in rules:
		if rule.category == "sheet" and not has_sheet:
			continue
		line = first_match_line(text, compile_rule(rule))
		if not line:
			continue
		if rule.category == "positive":
			positives.append(rule.message)
			continue
		issues.append(
			PatternIssue(
				rule=rule.name,
				category=rule.category,
				message=rule.message,
				reference=rule.reference,
				severity=rule.severity,
				line=line,
			)
		)
	return issues, positives


def validate_file(path: str, root: str, rules: Optional[List[PatternRule]] = None) -> FileReport:
	rel_path = os.path.relpath(path, root)
	try:
		text = read_source(path)
	except OSError as e:
		_log.warning("Skipping unreadable file %s: %s", path, e)
		return FileReport(path=path, rel_path=rel_path, error=str(e))
	issues, positives = validate_text(text, rules)
	return FileReport(path=path, rel_path=rel_path, issues=issues, positives=positives)


def validate_path(
	path: str,
	rules: Optional[List[PatternRule]] = None,
	skip_dirs: Optional[List[str]] = None,
) -> ScanReport:
	target = os.path.abspath(path)
	if not os.path.exists(target):
		raise PathNotFoundError(path)

	if os.path.isfile(target):
		if not target.endswith(".swift"):
			raise NotSwiftSourceError(path)
		root = os.path.dirname(target)
		return ScanReport(root=root, single_file=True, files=[validate_file(target, root, rules)])

	if not os.path.isdir(target):
		raise NotSwiftSourceError(path)

	scan_root = resolve_scan_root(target)
	files = find_swift_files(scan_root, DEFAULT_SKIP_DIRS if skip_dirs is None else skip_dirs)
	if not files:
		raise NoSwiftFilesError(path)
	_log.info("Validating %d Swift files under %s", len(files), scan_root)
	reports = [validate_file(f.path, target, rules) for f in files]
	return ScanReport(root=target, files=reports)


def scan_exit_code(report: ScanReport) -> int:
	if report.single_file:
		return 1 if report.total_issues else 0
	return 1 if report.total_errors else 0
