from __future__ import annotations

from typing import List, Optional

from .compliance import recommendations
from .model import (
	BuildResult,
	ComplianceResult,
	ComplianceScore,
	FileReport,
	HangReport,
	PlatformReport,
	ReadingPlan,
	ScanReport,
	SpmReport,
	ToolCheckReport,
)


def _title(text: str) -> List[str]:
	return [text, "=" * len(text)]


def summarize_file(f: FileReport) -> str:
	parts: List[str] = [f"Validating: {f.rel_path}"]
	if f.error:
		parts.append(f"  Error reading file: {f.error}")
		return "\n".join(parts)
	if not f.issues:
		parts.append("  No Smith pattern violations found")
	for issue in f.issues:
		parts.append(f"  [{issue.severity}] line {issue.line}: {issue.message}")
		if issue.reference:
			parts.append(f"      See: {issue.reference}")
	if f.positives:
		parts.append("  Modern TCA patterns detected:")
		parts.extend(f"    {p}" for p in f.positives)
	return "\n".join(parts)


def summarize_scan(report: ScanReport) -> str:
	parts: List[str] = _title("TCA Pattern Validation")
	parts.append(f"Found {len(report.files)} Swift file(s) under {report.root}")
	parts.append("")
	for f in report.files:
		parts.append(summarize_file(f))
	parts.append("")
	parts += _title("Summary")
	if report.total_issues == 0:
		parts.append("All files follow Smith TCA patterns")
		return "\n".join(parts)
	parts.append(f"Found {report.total_issues} pattern issue(s):")
	parts.append(f"  - {report.total_errors} error(s) that must be fixed")
	parts.append(f"  - {report.total_warnings} warning(s) that should be reviewed")
	parts.append("")
	parts.append("Next steps:")
	parts.append("  1. Review the Smith documentation references above")
	parts.append("  2. Apply the correct patterns")
	parts.append("  3. Re-run this validation")
	parts.append("  4. Check compilation with: swiftc -typecheck")
	return "\n".join(parts)


def summarize_compliance(result: ComplianceResult, strict: bool = False) -> str:
	parts: List[str] = _title("Smith Compliance Check")
	for x in result.findings:
		label = "VIOLATION" if x.level == "error" else "WARNING"
		parts.append(f"{label}: {x.message}")
		parts.append(f"   File: {x.file}")
		if x.line:
			parts.append(f"   Line: {x.line}")
		if x.remedy:
			parts.append(f"   Fix: {x.remedy}")
	s = result.summary
	parts.append("")
	parts += _title("Summary")
	parts.append(f"Files checked: {s.files_checked}")
	parts.append(f"Violations: {s.violations}")
	parts.append(f"Warnings: {s.warnings}")
	parts.append("")
	if s.violations == 0 and s.warnings == 0:
		parts.append("ALL CHECKS PASSED - 100% Smith Compliant")
	elif s.violations == 0:
		parts.append(f"PASSED WITH {s.warnings} WARNINGS")
		if strict:
			parts.append("Strict mode: treating warnings as errors.")
	else:
		parts.append("COMPLIANCE CHECK FAILED")
		parts.append("See QUICK-START.md for patterns and fixes.")
	return "\n".join(parts)


def summarize_score(score: ComplianceScore, result: ComplianceResult, history: Optional[List[ComplianceScore]] = None) -> str:
	parts: List[str] = _title("Smith Compliance Report")
	parts.append(f"Grade: {score.grade}")
	parts.append(f"Score: {score.score} / 100")
	parts.append(f"Files checked: {score.files_checked}")
	parts.append(f"Violations: {score.violations}")
	parts.append(f"Warnings: {score.warnings}")
	if result.findings:
		parts.append("")
		parts += _title("Issue Breakdown")
		for x in result.findings:
			parts.append(f"[{x.level.upper()}] {x.message}")
			parts.append(f"  File: {x.file}")
			parts.append(f"  Line: {x.line or 'N/A'}")
			parts.append(f"  Fix: {x.remedy or 'See QUICK-START.md'}")
	headline, actions = recommendations(score.score)
	parts.append("")
	parts += _title("Recommendations")
	parts.append(headline)
	parts.extend(f"  {i}. {a}" for i, a in enumerate(actions, start=1))
	if history and len(history) > 1:
		parts.append("")
		parts += _title(f"Trend (Last {len(history)} Reports)")
		parts.extend(f"  {h.timestamp}: {h.score} ({h.grade})" for h in history)
	return "\n".join(parts)


def summarize_plan(plan: ReadingPlan) -> str:
	parts: List[str] = [f'Task: "{plan.task}"', ""]
	if plan.classification is None:
		parts.append("Unable to classify task. Using general approach.")
		parts.append(f"Read: {plan.steps[0]}")
		return "\n".join(parts)
	route = plan.classification.route
	parts.append(f"Task Type: {route.description}")
	parts.append(f"Confidence Score: {plan.classification.score}")
	parts.append(f"Reading Budget: {route.time_budget}")
	parts.append("")
	if plan.case_study:
		parts.append("Found relevant case study:")
		parts.append(f"Read: {plan.steps[0]}")
		parts.append("This is faster than reading general documentation")
		return "\n".join(parts)
	parts.append("Reading Plan:")
	parts.extend(f"  {i}. {step}" for i, step in enumerate(plan.steps, start=1))
	if plan.guidance:
		parts.append("")
		parts.append("Specific Guidance:")
		parts.extend(f"  - {g}" for g in plan.guidance)
	parts.append("")
	parts.append("Verification Checklist:")
	parts.extend(f"  {i}. {c}" for i, c in enumerate(plan.checklist, start=1))
	return "\n".join(parts)


def summarize_spm(report: SpmReport, verbose: bool = False) -> str:
	parts: List[str] = _title("SPM Package Structure Validator")
	parts.append(f"Package: {report.package}")
	parts.append(f"Total targets: {report.target_count}")
	parts.append("")
	parts.append("Circular Import Detection:")
	if not report.has_modules_dir:
		parts.append("  No Modules/ directory found")
	elif not report.cycles:
		parts.append("  No circular imports detected")
	for c in report.cycles:
		if c.kind == "self":
			parts.append(f"  SELF-IMPORT: {c.modules[0]} imports itself")
		else:
			parts.append(f"  MUTUAL: {c.modules[0]} <-> {c.modules[1]}")
	parts.append("")
	parts.append("Import Depth Analysis:")
	if report.has_modules_dir and not report.deep_imports:
		parts.append("  No excessive import depth detected")
	for d in report.deep_imports:
		parts.append(f"  {d.file}: {d.import_count} imports")
		if verbose:
			parts.extend(f"      import {m}" for m in d.imports)
	parts.append("")
	parts.append("Dependency Size Warnings:")
	if report.large_dependencies is None:
		parts.append("  No Package.resolved found")
	else:
		deps = report.large_dependencies
		if deps.get("swift_syntax"):
			parts.append("  swift-syntax detected (slow indexing, ~150MB); keep it to build tools")
		if deps.get("grdb"):
			parts.append("  GRDB detected (large but typically necessary)")
		if deps.get("tca"):
			parts.append("  TCA detected (large but typically necessary)")
		if not any(deps.values()):
			parts.append("  None")
	parts.append("")
	if report.result == "CRITICAL":
		parts.append("VALIDATION FAILED: remove self-imports and circular dependencies")
	elif report.result == "WARNING":
		parts.append("VALIDATION PASSED (WITH WARNINGS): split files with many imports")
	else:
		parts.append("VALIDATION PASSED")
	return "\n".join(parts)


def summarize_spm_quick(report: SpmReport) -> str:
	parts: List[str] = []
	for c in report.cycles:
		label = "SELF-IMPORT" if c.kind == "self" else "MUTUAL"
		parts.append(f"{label}: {' <-> '.join(c.modules)}")
	for d in report.deep_imports:
		parts.append(f"{d.file}: {d.import_count} imports")
	if report.result == "CRITICAL":
		parts.append(f"CRITICAL ISSUES ({len(report.cycles)})")
	elif report.result == "WARNING":
		parts.append(f"WARNINGS ({len(report.deep_imports)})")
	else:
		parts.append("PASS")
	return "\n".join(parts)


def summarize_platform(report: PlatformReport) -> str:
	parts: List[str] = _title("Platform Dependency Validation")
	parts.append(f"Target Platform: {report.platform}")
	if not report.conditioned:
		parts.append("No platform-conditioned dependencies found")
		return "\n".join(parts)
	parts.append("Platform-conditioned dependencies:")
	parts.extend(f"  {c.product}: [{', '.join(c.platforms)}]" for c in report.conditioned)
	if report.gaps:
		parts.append("")
		parts.append(f"CRITICAL: dependencies missing for {report.platform}:")
		parts.extend(f"  {c.product} (missing: {report.platform})" for c in report.gaps)
		parts.append(f"Add .{report.platform} to the condition array in Package.swift")
	if report.unavailable_imports:
		parts.append("")
		parts.append(f"Files importing modules unavailable on {report.platform}:")
		for module, files in sorted(report.unavailable_imports.items()):
			parts.append(f"  {module} imported in: {', '.join(files)}")
	if report.ok:
		parts.append(f"All platform-conditioned dependencies support {report.platform}")
	return "\n".join(parts)


def summarize_build(result: BuildResult) -> str:
	plan = result.plan
	parts: List[str] = _title("Smart Build")
	parts.append(f"Project: {plan.project.kind} {plan.project.path or ''}".rstrip())
	if plan.target:
		parts.append(f"Target: {plan.target}")
	if plan.scheme:
		parts.append(f"Scheme: {plan.scheme}")
	parts.append(f"Command: {' '.join(plan.command)}")
	parts.append("")
	if result.status == "hung":
		parts.append(f"BUILD HUNG (timeout after {result.duration:.0f}s)")
		parts.append("Run: smith hang <file>")
		if result.hanging_file:
			parts.append(f"Likely hanging file: {result.hanging_file}")
			parts.append(f'  smith hang "{result.hanging_file}"')
	elif result.status == "succeeded":
		suffix = f" ({result.build_time}s)" if result.build_time else ""
		parts.append(f"BUILD SUCCEEDED{suffix}")
		if result.next_step:
			parts.append(f"Next step: {result.next_step}")
	elif result.status == "unclear":
		parts.append("BUILD STATUS UNCLEAR")
		parts.extend(f"  {line}" for line in result.log_tail)
	else:
		count = f", {result.error_count} errors" if result.error_count else ""
		parts.append(f"BUILD FAILED (exit code: {result.exit_code}{count})")
		parts.extend(f"  {e}" for e in result.errors)
		if result.log_tail:
			parts.append("Last lines of build log:")
			parts.extend(f"  {line}" for line in result.log_tail)
	return "\n".join(parts)


def summarize_hang(report: HangReport) -> str:
	parts: List[str] = _title("Build Hang Analysis")
	parts.append(f"File: {report.file}")
	if report.isolated_ok is None:
		parts.append("Isolated compilation: skipped (swiftc unavailable)")
	else:
		parts.append(f"Isolated compilation: {'PASS' if report.isolated_ok else 'FAIL'}")
		parts.extend(f"  {line}" for line in report.compiler_output)
	if report.declarations:
		parts.append("Declarations: " + ", ".join(f"{k}={v}" for k, v in report.declarations.items()))
	if report.constraint_issues:
		parts.append("Constraint solver:")
		parts.extend(f"  {line}" for line in report.constraint_issues)
	if report.slow_functions:
		parts.append("Slow functions:")
		parts.extend(f"  {line}" for line in report.slow_functions)
	if report.scope_issues:
		parts.append("Scope map:")
		parts.extend(f"  {line}" for line in report.scope_issues)
	parts.append(f"Dependents found: {len(report.dependents)}")
	parts.extend(f"  {d}" for d in report.dependents)
	health = "healthy" if report.derived_data_healthy else "suspect"
	parts.append(f"DerivedData size: {report.derived_data_mb}MB ({health})")
	parts.append(f"Corrupted modules: {report.suspect_modules}")
	parts.append("")
	parts.append("Recommended actions:")
	parts.extend(f"  {i}. {r}" for i, r in enumerate(report.recommendations, start=1))
	return "\n".join(parts)


def summarize_tool_check(report: ToolCheckReport) -> str:
	parts: List[str] = _title(f"{report.tool} validation")
	for f in report.files:
		parts.append(f"{'OK  ' if f.ok else 'FAIL'} {f.path}")
		parts.extend(f"    {line}" for line in f.output)
		parts.extend(f"    pattern: {v}" for v in f.violations)
	failed = len(report.failed)
	parts.append("")
	if failed:
		parts.append(f"{failed} of {len(report.files)} file(s) failed")
	else:
		parts.append(f"All {len(report.files)} file(s) passed")
	return "\n".join(parts)
