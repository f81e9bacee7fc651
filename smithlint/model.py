from __future__ import annotations

import re
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, computed_field, field_validator


Severity = Literal["error", "warning", "info"]
RuleCategory = Literal["deprecated", "anti_pattern", "sheet", "positive"]


class FileInfo(BaseModel):
	path: str
	rel_path: str
	is_test: bool = False


class PatternRule(BaseModel):
	name: str
	category: RuleCategory
	pattern: str
	message: str
	reference: Optional[str] = None
	severity: Severity = "error"

	@field_validator("pattern")
	@classmethod
	def _compiles(cls, value: str) -> str:
		try:
			re.compile(value)
		except re.error as e:
			raise ValueError(f"invalid regex {value!r}: {e}") from e
		return value


class PatternIssue(BaseModel):
	rule: str
	category: RuleCategory
	message: str
	reference: Optional[str] = None
	severity: Severity
	line: Optional[int] = None


class FileReport(BaseModel):
	path: str
	rel_path: str
	issues: List[PatternIssue] = []
	positives: List[str] = []
	error: Optional[str] = None

	@computed_field
	@property
	def error_count(self) -> int:
		return sum(1 for i in self.issues if i.severity == "error")

	@computed_field
	@property
	def warning_count(self) -> int:
		return sum(1 for i in self.issues if i.severity == "warning")


class ScanReport(BaseModel):
	root: str
	single_file: bool = False
	files: List[FileReport] = []

	@computed_field
	@property
	def total_issues(self) -> int:
		return sum(len(f.issues) for f in self.files)

	@computed_field
	@property
	def total_errors(self) -> int:
		return sum(f.error_count for f in self.files)

	@computed_field
	@property
	def total_warnings(self) -> int:
		return sum(f.warning_count for f in self.files)


class Finding(BaseModel):
	level: Literal["error", "warning"]
	rule_id: int
	message: str
	file: str
	line: Optional[int] = None
	remedy: Optional[str] = None


class ComplianceSummary(BaseModel):
	violations: int = 0
	warnings: int = 0
	files_checked: int = 0


class ComplianceResult(BaseModel):
	summary: ComplianceSummary
	findings: List[Finding] = []


class ComplianceScore(BaseModel):
	timestamp: str
	project: str
	score: int
	grade: str
	violations: int
	warnings: int
	files_checked: int


class RouteEntry(BaseModel):
	category: str
	keywords: List[str]
	primary: str
	sections: str
	time_budget: str
	fallback: Optional[str] = None
	description: str
	guidance: List[str] = []


class Classification(BaseModel):
	route: RouteEntry
	score: int


class ReadingPlan(BaseModel):
	task: str
	classification: Optional[Classification] = None
	case_study: Optional[str] = None
	steps: List[str] = []
	guidance: List[str] = []
	checklist: List[str] = []


class ImportCycle(BaseModel):
	kind: Literal["self", "mutual"]
	modules: List[str]


class DeepImportFile(BaseModel):
	file: str
	path: str
	import_count: int
	imports: List[str] = []


class SpmReport(BaseModel):
	package: str
	timestamp: str
	target_count: int
	cycles: List[ImportCycle] = []
	deep_imports: List[DeepImportFile] = []
	has_modules_dir: bool = False
	large_dependencies: Optional[Dict[str, bool]] = None
	result: Literal["PASS", "WARNING", "CRITICAL"] = "PASS"


class PlatformCondition(BaseModel):
	product: str
	platforms: List[str]


class PlatformReport(BaseModel):
	platform: str
	conditioned: List[PlatformCondition] = []
	gaps: List[PlatformCondition] = []
	unavailable_imports: Dict[str, List[str]] = {}

	@computed_field
	@property
	def ok(self) -> bool:
		return not self.gaps and not self.unavailable_imports


class ProjectInfo(BaseModel):
	kind: Literal["spm", "workspace", "project", "none"]
	path: Optional[str] = None


class ToolResult(BaseModel):
	command: List[str]
	returncode: int
	stdout: str = ""
	stderr: str = ""
	timed_out: bool = False
	duration: float = 0.0

	@computed_field
	@property
	def ok(self) -> bool:
		return self.returncode == 0 and not self.timed_out


class BuildPlan(BaseModel):
	project: ProjectInfo
	command: List[str]
	target: Optional[str] = None
	scheme: Optional[str] = None
	sift_tool: Optional[str] = None
	sift_args: List[str] = []


class BuildResult(BaseModel):
	plan: BuildPlan
	status: Literal["succeeded", "failed", "hung", "unclear"]
	exit_code: int
	duration: float = 0.0
	build_time: Optional[str] = None
	error_count: Optional[int] = None
	errors: List[str] = []
	hanging_file: Optional[str] = None
	log_tail: List[str] = []
	next_step: Optional[str] = None


class HangReport(BaseModel):
	file: str
	workspace: str
	isolated_ok: Optional[bool] = None
	compiler_output: List[str] = []
	slow_functions: List[str] = []
	constraint_issues: List[str] = []
	scope_issues: List[str] = []
	declarations: Dict[str, int] = {}
	dependents: List[str] = []
	derived_data_mb: int = 0
	derived_data_limit_mb: int = 500
	suspect_modules: int = 0
	recommendations: List[str] = []

	@computed_field
	@property
	def derived_data_healthy(self) -> bool:
		return self.derived_data_mb <= self.derived_data_limit_mb


class FileCheck(BaseModel):
	path: str
	ok: bool
	output: List[str] = []
	violations: List[str] = []


class ToolCheckReport(BaseModel):
	tool: str
	files: List[FileCheck] = []

	@property
	def failed(self) -> List[FileCheck]:
		return [f for f in self.files if not f.ok]
