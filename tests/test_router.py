import pytest

from smithlint.errors import EmptyTaskError
from smithlint.router import (
	GENERAL_PLAN,
	ROUTES,
	VERIFICATION_CHECKLIST,
	classify_task,
	generate_reading_plan,
	score_task,
	search_case_studies,
)


def test_keywords_are_case_insensitive():
	scores = {c.route.category: c.score for c in score_task("write a TEST for the counter")}
	# "test" and "Test" both match
	assert scores["testing"] == 2
	assert len(scores) == len(ROUTES)


def test_classify_picks_highest_score():
	best = classify_task("my @Reducer State and Action are wrong")
	assert best is not None
	assert best.route.category == "tca_reducer"


def test_ties_go_to_first_route():
	best = classify_task("fix the sheet")
	assert best.route.category == "bug_fix"
	assert best.score == 1


def test_no_match_gives_general_plan():
	assert classify_task("hello world") is None
	plan = generate_reading_plan("hello world")
	assert plan.classification is None
	assert plan.steps == [GENERAL_PLAN]


def test_plan_for_route(tmp_path):
	plan = generate_reading_plan("  add a navigation sheet  ", docs_dir=str(tmp_path))
	assert plan.task == "add a navigation sheet"
	assert plan.classification.route.category == "navigation"
	assert plan.steps[0].startswith("Primary: AGENTS-TCA-PATTERNS.md")
	assert len(plan.steps) == 1
	assert "NEVER use .sheet() for toolbar items" in plan.guidance
	assert plan.checklist == VERIFICATION_CHECKLIST


def test_bug_fix_uses_matching_case_study(tmp_path):
	(tmp_path / "DISCOVERY-3-DISMISS.md").write_text("Navigation crash on dismiss")
	(tmp_path / "NOTES.md").write_text("crash")

	plan = generate_reading_plan("fix crash when dismissing", docs_dir=str(tmp_path))
	assert plan.case_study == str(tmp_path / "DISCOVERY-3-DISMISS.md")
	assert plan.steps == ["DISCOVERY-3-DISMISS.md (5-10 minutes)"]


def test_case_study_search_ignores_short_words(tmp_path):
	(tmp_path / "DISCOVERY-1.md").write_text("the fix")
	assert search_case_studies("the fix", str(tmp_path)) is None
	assert search_case_studies("anything", str(tmp_path / "missing")) is None


def test_empty_task_rejected():
	with pytest.raises(EmptyTaskError):
		generate_reading_plan("   ")
