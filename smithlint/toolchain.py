from __future__ import annotations

import logging
import os
import shutil
import subprocess
import time
from typing import List, Optional

from .errors import BuildTimeoutError, NoSwiftFilesError, PathNotFoundError, ToolNotFoundError
from .fs_scan import find_project_swift_files, read_source
from .model import FileCheck, PatternRule, ToolCheckReport, ToolResult
from .patterns import validate_text

_log = logging.getLogger("smith.toolchain")

TIMEOUT_EXIT_CODE = 124


def which(tool: str) -> Optional[str]:
	return shutil.which(tool)


def require(tool: str, hint: str = "") -> str:
	found = which(tool)
	if not found:
		raise ToolNotFoundError(tool, hint)
	return found


def run_tool(
	args: List[str],
	cwd: Optional[str] = None,
	timeout: Optional[float] = None,
	input_text: Optional[str] = None,
	raise_on_timeout: bool = False,
) -> ToolResult:
	_log.debug("Running %s (cwd=%s, timeout=%s)", " ".join(args), cwd, timeout)
	start = time.monotonic()
	try:
		proc = subprocess.run(
			args,
			cwd=cwd,
			input=input_text,
			capture_output=True,
			text=True,
			timeout=timeout,
		)
	except FileNotFoundError as e:
		raise ToolNotFoundError(args[0]) from e
	except subprocess.TimeoutExpired as e:
		if raise_on_timeout:
			raise BuildTimeoutError(" ".join(args), timeout or 0) from e
		_log.warning("%s timed out after %ss", args[0], timeout)
		return ToolResult(
			command=args,
			returncode=TIMEOUT_EXIT_CODE,
			stdout=_as_text(e.stdout),
			stderr=_as_text(e.stderr),
			timed_out=True,
			duration=time.monotonic() - start,
		)
	return ToolResult(
		command=args,
		returncode=proc.returncode,
		stdout=proc.stdout or "",
		stderr=proc.stderr or "",
		duration=time.monotonic() - start,
	)


def _as_text(value) -> str:
	if value is None:
		return ""
	if isinstance(value, bytes):
		return value.decode("utf-8", errors="replace")
	return value


def typecheck(path: str, extra: Optional[List[str]] = None, timeout: Optional[float] = None, cwd: Optional[str] = None) -> ToolResult:
	return run_tool(["swiftc", "-typecheck", *(extra or []), path], cwd=cwd, timeout=timeout)


def _collect(path: str) -> List[str]:
	if not os.path.exists(path):
		raise PathNotFoundError(path)
	if os.path.isfile(path):
		return [path]
	files = [f.path for f in find_project_swift_files(path, ["Build", "DerivedData", ".build"])]
	if not files:
		raise NoSwiftFilesError(path)
	return files


def check_syntax(path: str, timeout: Optional[float] = None) -> ToolCheckReport:
	"""Typecheck each Swift file on its own with swiftc."""
	require("swiftc", "install Xcode or a Swift toolchain")
	report = ToolCheckReport(tool="swiftc")
	for file in _collect(path):
		result = typecheck(file, timeout=timeout)
		output = (result.stderr or result.stdout).splitlines()
		report.files.append(FileCheck(path=file, ok=result.ok, output=output[:10]))
	return report


def check_format(path: str, rules: Optional[List[PatternRule]] = None, config_file: Optional[str] = None) -> ToolCheckReport:
	"""swift-format lint plus the pattern rules, per file."""
	require("swift-format", "install the Xcode command line tools")
	report = ToolCheckReport(tool="swift-format")
	for file in _collect(path):
		try:
			text = read_source(file)
		except OSError as e:
			_log.warning("Skipping unreadable file %s: %s", file, e)
			continue
		args = ["swift-format", "lint"]
		if config_file:
			args += ["--configuration", config_file]
		result = run_tool(args + [file])
		# any issue fails the file, warnings included
		issues, _ = validate_text(text, rules)
		violations = [i.message for i in issues]
		lint_output = (result.stderr or result.stdout).splitlines()
		report.files.append(
			FileCheck(path=file, ok=result.ok and not lint_output and not violations, output=lint_output[:10], violations=violations)
		)
	return report
