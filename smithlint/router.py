"""Route a task description to the Smith documentation worth reading first.

Classification is a keyword tally: every category scores one point per
keyword found (case-insensitive substring) in the task text. The highest
score wins; ties go to the category listed first.
"""
from __future__ import annotations

import logging
import os
from typing import List, Optional

from .errors import EmptyTaskError
from .model import Classification, ReadingPlan, RouteEntry

_log = logging.getLogger("smith.router")

GENERAL_PLAN = "QUICK-START.md entire document (5 minutes max)"

VERIFICATION_CHECKLIST = [
	"Code compiles (swiftc -typecheck)",
	"Follows Smith patterns (no red flags)",
	"Within reading budget",
	"Passes relevant verification checklist",
]

ROUTES: List[RouteEntry] = [
	RouteEntry(
		category="testing",
		keywords=["test", "Test", "@Test", "#expect", "TestClock", "testing"],
		primary="QUICK-START.md",
		sections="Rules 6-7",
		time_budget="2 minutes",
		fallback="AGENTS-AGNOSTIC.md lines 75-111",
		description="Testing patterns with Swift Testing framework",
		guidance=[
			"Use @Test and #expect(), never XCTest",
			"Mark TCA tests @MainActor",
			"Use TestClock() for deterministic time",
		],
	),
	RouteEntry(
		category="tca_reducer",
		keywords=["reducer", "Reducer", "@Reducer", "State", "Action", "reduce"],
		primary="QUICK-START.md",
		sections="Rules 2-4",
		time_budget="3 minutes",
		fallback="AGENTS-TCA-PATTERNS.md specific pattern",
		description="TCA reducer patterns and state management",
		guidance=[
			"Check for deprecated WithViewStore",
			"Verify @Shared patterns (single owner)",
			"Use modern @Reducer macro syntax",
		],
	),
	RouteEntry(
		category="visionos",
		keywords=["visionOS", "RealityView", "PresentationComponent", "Entity", "Model3D"],
		primary="QUICK-START.md",
		sections="Rule 9",
		time_budget="2 minutes",
		fallback="PLATFORM-VISIONOS.md + DISCOVERY-4",
		description="visionOS entity patterns and 3D components",
	),
	RouteEntry(
		category="dependencies",
		keywords=["dependency", "@Dependency", "@DependencyClient", "Date()", "UUID()"],
		primary="QUICK-START.md",
		sections="Rule 5",
		time_budget="2 minutes",
		fallback="AGENTS-DECISION-TREES.md Tree 2",
		description="Dependency injection patterns",
	),
	RouteEntry(
		category="access_control",
		keywords=["access control", "public", "internal", "private", "fileprivate"],
		primary="QUICK-START.md",
		sections="Rule 8 + DISCOVERY-5",
		time_budget="5 minutes",
		fallback="AGENTS-AGNOSTIC.md lines 443-598",
		description="Access control and public API boundaries",
		guidance=[
			"Trace transitive dependencies when making public",
			"Check cascade failures before assuming type errors",
		],
	),
	RouteEntry(
		category="architecture",
		keywords=["architecture", "pattern", "design", "should I use", "which approach"],
		primary="AGENTS-DECISION-TREES.md",
		sections="relevant tree",
		time_budget="5 minutes",
		fallback="AGENTS-TASK-SCOPE.md",
		description="Architecture decision guidance",
	),
	RouteEntry(
		category="bug_fix",
		keywords=["bug", "error", "fix", "broken", "not working", "compile error"],
		primary="Search CaseStudies/",
		sections="search by symptom",
		time_budget="2 minutes",
		fallback="Read matching DISCOVERY",
		description="Bug resolution and error fixing",
		guidance=[
			"Search case studies by symptom first",
			"Check compilation before pattern analysis",
		],
	),
	RouteEntry(
		category="navigation",
		keywords=["navigation", "sheet", "fullScreenCover", "popover", "NavigationStack"],
		primary="AGENTS-TCA-PATTERNS.md",
		sections="Pattern 2 (optional state)",
		time_budget="5 minutes",
		description="SwiftUI navigation patterns with TCA",
		guidance=[
			"Optional state = .sheet(item:) + .scope()",
			"Conditional UI = if/else in view",
			"NEVER use .sheet() for toolbar items",
		],
	),
	RouteEntry(
		category="concurrency",
		keywords=["Task", "async", "await", "MainActor", "concurrent"],
		primary="AGENTS-AGNOSTIC.md",
		sections="lines 24-29 + 162-313",
		time_budget="5 minutes",
		description="Concurrency patterns and main actor usage",
	),
	RouteEntry(
		category="nested_reducers",
		keywords=["nested reducer", "child feature", "extract reducer", "Scope"],
		primary="DISCOVERY-14-NESTED-REDUCER-GOTCHAS.md",
		sections="entire document",
		time_budget="5 minutes",
		description="Nested @Reducer patterns and gotchas",
	),
	RouteEntry(
		category="logging",
		keywords=["print", "oslog", "Logger", "log", "debug"],
		primary="DISCOVERY-15-PRINT-OSLOG-PATTERNS.md",
		sections="appropriate section",
		time_budget="3 minutes",
		description="Print vs OSLog logging patterns",
	),
]


def score_task(text: str, routes: Optional[List[RouteEntry]] = None) -> List[Classification]:
	normalized = text.lower()
	return [
		Classification(route=r, score=sum(1 for kw in r.keywords if kw.lower() in normalized))
		for r in (ROUTES if routes is None else routes)
	]


def classify_task(text: str, routes: Optional[List[RouteEntry]] = None) -> Optional[Classification]:
	best: Optional[Classification] = None
	for candidate in score_task(text, routes):
		if candidate.score > (best.score if best else 0):
			best = candidate
	return best


def search_case_studies(text: str, docs_dir: str) -> Optional[str]:
	if not os.path.isdir(docs_dir):
		return None
	words = [w for w in text.lower().split(" ") if len(w) > 3]
	if not words:
		return None
	candidates = sorted(
		f for f in os.listdir(docs_dir) if f.startswith("DISCOVERY-") and f.endswith(".md")
	)
	for name in candidates:
		path = os.path.join(docs_dir, name)
		try:
			with open(path, "r", encoding="utf-8", errors="replace") as fh:
				content = fh.read().lower()
		except OSError as e:
			_log.warning("Skipping unreadable case study %s: %s", path, e)
			continue
		if any(w in content for w in words):
			return path
	return None


def generate_reading_plan(text: str, docs_dir: str = ".") -> ReadingPlan:
	task = text.strip()
	if not task:
		raise EmptyTaskError()

	classification = classify_task(task)
	if classification is None:
		_log.info("Task did not match any route, using general plan")
		return ReadingPlan(task=task, steps=[GENERAL_PLAN])

	route = classification.route
	if route.category == "bug_fix":
		case_study = search_case_studies(task, docs_dir)
		if case_study:
			return ReadingPlan(
				task=task,
				classification=classification,
				case_study=case_study,
				steps=[f"{os.path.basename(case_study)} (5-10 minutes)"],
			)

	steps = [f"Primary: {route.primary} - {route.sections} (budget {route.time_budget})"]
	if route.fallback and route.fallback != route.primary:
		steps.append(f"Fallback: {route.fallback} (if needed)")

	return ReadingPlan(
		task=task,
		classification=classification,
		steps=steps,
		guidance=list(route.guidance),
		checklist=list(VERIFICATION_CHECKLIST),
	)
