"""Progressive builds with a hang watchdog, and the follow-up hang analysis.

A build is planned against the smallest useful unit (first SPM target or
first Xcode scheme), run in the background and polled. Past the timeout the
process tree is killed and the build is reported as hung with exit code 124,
together with the last file the compiler was working on.
"""
from __future__ import annotations

import json
import logging
import os
import re
import signal
import subprocess
import tempfile
import time
from typing import Callable, List, Optional

from .errors import NoProjectError, PathNotFoundError, ToolNotFoundError
from .fs_scan import detect_project, find_project_swift_files, read_source
from .model import BuildPlan, BuildResult, HangReport, ProjectInfo, ToolResult
from .swift_parse import count_declarations
from .toolchain import TIMEOUT_EXIT_CODE, run_tool, which

_log = logging.getLogger("smith.build")

PROGRESS_EVERY = 30
MIB = 1024 * 1024

_COMPILING_RE = re.compile(r"Compiling\s+(.*?\.swift)")
_SLOW_FUNCTION_RE = re.compile(r"function.*took.*ms|\d+(?:\.\d+)?ms\s+.*\.swift:\d+")
_CONSTRAINT_RE = re.compile(r"constraint|solver|timeout|exponential")
_SCOPE_RE = re.compile(r"circular|cycle|recursive")

HANG_RECOMMENDATIONS = [
	"Clean build state: quit Xcode and SourceKitService, remove DerivedData, run a clean build",
	"Simplify the problematic file: remove complex generic constraints",
	"Split large functions (>50 lines) and check for recursive property access",
	"Move utility extensions to a separate module and remove circular dependencies",
	"Add -Xfrontend -warn-long-expression-type-checking=50 to the build settings",
]

Runner = Callable[..., ToolResult]


def list_spm_targets(root: str, runner: Runner = run_tool, timeout: Optional[float] = 60) -> List[str]:
	result = runner(["swift", "package", "dump-package"], cwd=root, timeout=timeout, raise_on_timeout=True)
	if not result.ok:
		_log.warning("swift package dump-package failed: %s", result.stderr.strip()[:200])
		return []
	try:
		data = json.loads(result.stdout)
	except json.JSONDecodeError:
		_log.warning("Could not parse dump-package output")
		return []
	return [t["name"] for t in data.get("targets", []) if t.get("name")]


def parse_schemes(listing: str) -> List[str]:
	schemes: List[str] = []
	in_schemes = False
	for line in listing.splitlines():
		stripped = line.strip()
		if stripped == "Schemes:":
			in_schemes = True
			continue
		if in_schemes:
			if not stripped or stripped.endswith(":"):
				break
			schemes.append(stripped)
	return schemes


def _container_flag(project: ProjectInfo) -> List[str]:
	flag = "-workspace" if project.kind == "workspace" else "-project"
	return [flag, project.path or ""]


def plan_build(root: str, runner: Runner = run_tool, tool_timeout: Optional[float] = 60) -> BuildPlan:
	if not os.path.isdir(root):
		raise PathNotFoundError(root)
	project = detect_project(root)
	if project.kind == "none":
		raise NoProjectError(root)

	if project.kind == "spm":
		targets = list_spm_targets(root, runner, tool_timeout)
		target = targets[0] if targets else None
		command = ["swift", "build", "-c", "debug"]
		if target:
			command += ["--target", target]
		plan = BuildPlan(project=project, command=command, target=target)
		if which("sbsift"):
			plan.sift_tool = "sbsift"
			plan.sift_args = ["sbsift", "--format", "json", "--minimal"]
		return plan

	listing = runner(["xcodebuild", "-list", *_container_flag(project)], cwd=root, timeout=tool_timeout, raise_on_timeout=True)
	if not listing.ok:
		raise NoProjectError(f"{project.path} (xcodebuild -list failed)")
	schemes = parse_schemes(listing.stdout)
	scheme = schemes[0] if schemes else None
	command = ["xcodebuild", "build", *_container_flag(project)]
	if scheme:
		command += ["-scheme", scheme]
	command += ["-destination", "platform=macOS"]
	plan = BuildPlan(project=project, command=command, scheme=scheme)
	if which("xcsift"):
		plan.sift_tool = "xcsift"
		plan.sift_args = ["xcsift"]
	return plan


def find_hanging_file(log: str) -> Optional[str]:
	last = None
	for line in log.splitlines():
		m = _COMPILING_RE.search(line)
		if m:
			last = m.group(1).strip()
	return last


def _parse_sift(plan: BuildPlan, log: str, exit_code: int, duration: float) -> BuildResult:
	try:
		data = json.loads(log)
	except json.JSONDecodeError:
		return BuildResult(plan=plan, status="unclear", exit_code=exit_code, duration=duration, log_tail=log.splitlines()[-10:])
	if not isinstance(data, dict):
		return BuildResult(plan=plan, status="unclear", exit_code=exit_code, duration=duration, log_tail=log.splitlines()[-10:])

	# Minimal sbsift form: {"c":"b","s":1,"e":0,"w":0,"t":2.3}
	if "s" in data:
		if data.get("s") != 1:
			return BuildResult(plan=plan, status="unclear", exit_code=exit_code, duration=duration, log_tail=[log.strip()])
		errors = int(data.get("e") or 0)
		return BuildResult(
			plan=plan,
			status="succeeded" if errors == 0 else "failed",
			exit_code=exit_code if errors == 0 else (exit_code or 1),
			duration=duration,
			build_time=str(data.get("t", "unknown")),
			error_count=errors,
		)

	status = str(data.get("status", "unknown"))
	if status in ("success", "passed"):
		return BuildResult(plan=plan, status="succeeded", exit_code=exit_code, duration=duration)
	errors = [str(e) if not isinstance(e, dict) else e.get("message", json.dumps(e)) for e in data.get("errors") or []]
	return BuildResult(plan=plan, status="failed", exit_code=exit_code or 1, duration=duration, errors=errors[:3], error_count=len(errors))


def parse_build_log(plan: BuildPlan, log: str, exit_code: int, duration: float = 0.0) -> BuildResult:
	if exit_code == TIMEOUT_EXIT_CODE:
		return BuildResult(
			plan=plan,
			status="hung",
			exit_code=TIMEOUT_EXIT_CODE,
			duration=duration,
			hanging_file=find_hanging_file(log),
			log_tail=log.splitlines()[-10:],
		)
	if exit_code != 0:
		return BuildResult(plan=plan, status="failed", exit_code=exit_code, duration=duration, log_tail=log.splitlines()[-10:])
	if plan.sift_tool and log.strip():
		result = _parse_sift(plan, log, exit_code, duration)
	else:
		result = BuildResult(plan=plan, status="succeeded", exit_code=0, duration=duration)
	if result.status == "succeeded":
		result.next_step = _next_step(plan)
	return result


def _next_step(plan: BuildPlan) -> str:
	if plan.project.kind == "spm":
		return "Full package build: swift build" if plan.target else "Run the test suite: swift test"
	return "The build succeeded - try running the app"


def _kill(procs: List[subprocess.Popen]) -> None:
	"""Kill each process group; compiler workers forked by the build die with it."""
	for p in procs:
		try:
			os.killpg(p.pid, signal.SIGKILL)
		except ProcessLookupError:
			continue
	for p in procs:
		try:
			p.wait(timeout=5)
		except subprocess.TimeoutExpired:
			_log.warning("Process %s did not exit after kill", p.pid)


def run_build(plan: BuildPlan, timeout: float = 120, poll_interval: float = 5, cwd: Optional[str] = None) -> BuildResult:
	"""Run the planned build, polling until it exits or the timeout passes."""
	if cwd is None and plan.project.kind == "spm":
		cwd = plan.project.path
	with tempfile.TemporaryFile(mode="w+", encoding="utf-8", errors="replace") as log_file:
		procs: List[subprocess.Popen] = []
		try:
			if plan.sift_args:
				build = subprocess.Popen(
					plan.command, cwd=cwd, stdout=subprocess.PIPE, stderr=subprocess.STDOUT, start_new_session=True
				)
				procs.append(build)
				procs.append(
					subprocess.Popen(
						plan.sift_args, stdin=build.stdout, stdout=log_file, stderr=subprocess.STDOUT, start_new_session=True
					)
				)
				if build.stdout is not None:
					build.stdout.close()
			else:
				procs.append(
					subprocess.Popen(plan.command, cwd=cwd, stdout=log_file, stderr=subprocess.STDOUT, start_new_session=True)
				)
		except FileNotFoundError as e:
			_kill(procs)
			raise ToolNotFoundError(plan.command[0]) from e

		start = time.monotonic()
		last_report = 0
		exit_code: Optional[int] = None
		while exit_code is None:
			elapsed = time.monotonic() - start
			if elapsed > timeout:
				_log.warning("Build exceeded %ss, killing it", timeout)
				_kill(procs)
				exit_code = TIMEOUT_EXIT_CODE
				break
			if all(p.poll() is not None for p in procs):
				exit_code = procs[0].returncode or procs[-1].returncode
				break
			if int(elapsed) // PROGRESS_EVERY > last_report:
				last_report = int(elapsed) // PROGRESS_EVERY
				_log.info("Building... (%ds elapsed)", int(elapsed))
			time.sleep(poll_interval)

		duration = time.monotonic() - start
		log_file.seek(0)
		log = log_file.read()

	return parse_build_log(plan, log, exit_code, duration)


def derived_data_size_mb(path: str) -> int:
	if not os.path.isdir(path):
		return 0
	total = 0
	for dirpath, _, filenames in os.walk(path):
		for filename in filenames:
			try:
				total += os.path.getsize(os.path.join(dirpath, filename))
			except OSError:
				continue
	return total // MIB


def count_suspect_modules(path: str) -> int:
	"""Zero-byte .swiftmodule files left behind by interrupted builds."""
	if not os.path.isdir(path):
		return 0
	count = 0
	for dirpath, _, filenames in os.walk(path):
		for filename in filenames:
			if filename.endswith(".swiftmodule"):
				full = os.path.join(dirpath, filename)
				try:
					if os.path.getsize(full) == 0:
						count += 1
				except OSError:
					continue
	return count


def find_dependents(workspace: str, file: str) -> List[str]:
	stem = os.path.splitext(os.path.basename(file))[0]
	target = os.path.abspath(file)
	dependents: List[str] = []
	for f in find_project_swift_files(workspace, ["Build", "DerivedData", ".build", ".git"]):
		if os.path.abspath(f.path) == target:
			continue
		try:
			if stem in read_source(f.path):
				dependents.append(f.rel_path)
		except OSError:
			continue
	return dependents


def _matching_lines(output: str, pattern: "re.Pattern[str]", limit: int = 20) -> List[str]:
	return [line.strip() for line in output.splitlines() if pattern.search(line)][:limit]


def analyze_hang(
	file: str,
	workspace: str = ".",
	timeout: float = 60,
	derived_data: str = "",
	derived_data_limit_mb: int = 500,
	runner: Runner = run_tool,
) -> HangReport:
	path = file if os.path.isabs(file) else os.path.join(workspace, file)
	if not os.path.isfile(path):
		raise PathNotFoundError(path)

	report = HangReport(file=path, workspace=workspace, derived_data_limit_mb=derived_data_limit_mb)
	report.declarations = count_declarations(read_source(path))

	if which("swiftc"):
		isolated = runner(["swiftc", "-typecheck", path], cwd=workspace, timeout=timeout)
		report.isolated_ok = isolated.ok
		if not isolated.ok:
			report.compiler_output = (isolated.stderr or isolated.stdout).splitlines()[:10]
		else:
			constraints = runner(
				["swiftc", "-typecheck", "-Xfrontend", "-debug-constraints", path],
				cwd=workspace,
				timeout=timeout,
			)
			report.constraint_issues = _matching_lines(constraints.stdout + "\n" + constraints.stderr, _CONSTRAINT_RE)
			timing = runner(
				["swiftc", "-typecheck", "-Xfrontend", "-debug-time-function-bodies", path],
				cwd=workspace,
				timeout=timeout,
			)
			report.slow_functions = _matching_lines(timing.stdout + "\n" + timing.stderr, _SLOW_FUNCTION_RE)
			# scope maps are read from stdout only
			scopes = runner(["swiftc", "-dump-scope-maps", "expanded", path], cwd=workspace, timeout=timeout)
			report.scope_issues = _matching_lines(scopes.stdout, _SCOPE_RE)
	else:
		_log.warning("swiftc not found, skipping compiler analysis")

	report.dependents = find_dependents(workspace, path)
	if derived_data:
		report.derived_data_mb = derived_data_size_mb(derived_data)
		report.suspect_modules = count_suspect_modules(derived_data)

	recs: List[str] = []
	if report.isolated_ok is False:
		recs.append("Isolated compilation fails: this is a type inference or syntax issue, not dependency-related")
	if not report.derived_data_healthy:
		recs.append(f"DerivedData is {report.derived_data_mb}MB (>{derived_data_limit_mb}MB indicates corruption): remove it")
	if report.suspect_modules:
		recs.append(f"{report.suspect_modules} potentially corrupted module files found: clean DerivedData")
	report.recommendations = recs + HANG_RECOMMENDATIONS
	return report
