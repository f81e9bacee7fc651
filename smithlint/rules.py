"""Built-in TCA pattern rules.

Rules are plain data: a name, a regex, a remediation message and a pointer
into the Smith documentation. Order matters only for report output.
"""
from __future__ import annotations

import re
from typing import Dict, List, Optional

from .config import SmithConfig
from .model import PatternRule


BUILTIN_RULES: List[PatternRule] = [
	# deprecated
	PatternRule(
		name="with_view_store",
		category="deprecated",
		pattern=r"WithViewStore",
		message="WithViewStore is deprecated. Use @Bindable instead",
		reference="AGENTS-TCA-PATTERNS.md Mistake 1",
	),
	PatternRule(
		name="view_store_init",
		category="deprecated",
		pattern=r"ViewStore\(",
		message="ViewStore initialization is deprecated. Use @Bindable",
		reference="AGENTS-TCA-PATTERNS.md Quick Reference",
	),
	PatternRule(
		name="perception_bindable",
		category="deprecated",
		pattern=r"@Perception\.Bindable",
		message="@Perception.Bindable is deprecated. Use TCA @Bindable",
		reference="AGENTS-TCA-PATTERNS.md Quick Reference",
	),
	# anti-patterns
	PatternRule(
		name="state_for_tca_state",
		category="anti_pattern",
		pattern=r"@State.*var.*State",
		message="@State should not be used for TCA State. Use @ObservableState",
		reference="AGENTS-AGNOSTIC.md lines 24-29",
	),
	PatternRule(
		name="shared_constructor",
		category="anti_pattern",
		pattern=r"Shared\(",
		message="Wrong Shared constructor. Use Shared(wrappedValue:)",
		reference="AGENTS-TCA-PATTERNS.md Pattern 5, Mistake 5",
	),
	PatternRule(
		name="task_detached",
		category="anti_pattern",
		pattern=r"Task\.detached",
		message="Task.detached is discouraged. Use Task { @MainActor in }",
		reference="AGENTS-AGNOSTIC.md lines 28",
		severity="warning",
	),
	PatternRule(
		name="date_init",
		category="anti_pattern",
		pattern=r"Date\(\)",
		message="Direct Date() calls. Use dependencies instead",
		reference="AGENTS-AGNOSTIC.md lines 419-440",
		severity="warning",
	),
	# sheet presentation, only checked in files that present sheets
	PatternRule(
		name="sheet_item_state_binding",
		category="sheet",
		pattern=r"\.sheet\(item:.*\$\w+\.state",
		message=".sheet(item:) with state binding - ensure proper lifecycle",
		reference="AGENTS-TCA-PATTERNS.md Pattern 2",
		severity="warning",
	),
	# positive
	PatternRule(
		name="reducer_macro",
		category="positive",
		pattern=r"@Reducer",
		message="Using modern @Reducer macro",
		severity="info",
	),
	PatternRule(
		name="observable_state",
		category="positive",
		pattern=r"@ObservableState",
		message="Using @ObservableState for state",
		severity="info",
	),
	PatternRule(
		name="bindable",
		category="positive",
		pattern=r"@Bindable",
		message="Using @Bindable for view bindings",
		severity="info",
	),
]

SHEET_MARKER = ".sheet("

_compiled: Dict[str, "re.Pattern[str]"] = {}


def compile_rule(rule: PatternRule) -> "re.Pattern[str]":
	key = rule.pattern
	if key not in _compiled:
		_compiled[key] = re.compile(rule.pattern)
	return _compiled[key]


def load_rules(config: Optional[SmithConfig] = None) -> List[PatternRule]:
	if config is None:
		return list(BUILTIN_RULES)
	disabled = set(config.disabled_rules)
	rules = [r for r in BUILTIN_RULES if r.name not in disabled]
	rules.extend(r for r in config.extra_rules if r.name not in disabled)
	return rules

