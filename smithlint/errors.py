from __future__ import annotations


class SmithError(Exception):
	"""Base error for smithlint; carries the process exit code the CLI should use."""

	exit_code = 1


class PathNotFoundError(SmithError):
	def __init__(self, path: str):
		super().__init__(f"Path does not exist: {path}")
		self.path = path


class NotSwiftSourceError(SmithError):
	def __init__(self, path: str):
		super().__init__(f"Not a Swift file or directory: {path}")
		self.path = path


class NoSwiftFilesError(SmithError):
	def __init__(self, path: str):
		super().__init__(f"No Swift files found under {path}")
		self.path = path


class NotSpmPackageError(SmithError):
	def __init__(self, path: str):
		super().__init__(f"Not an SPM package (no Package.swift found): {path}")
		self.path = path


class NoProjectError(SmithError):
	def __init__(self, path: str):
		super().__init__(f"No Swift project detected in {path}")
		self.path = path


class ToolNotFoundError(SmithError):
	def __init__(self, tool: str, hint: str = ""):
		msg = f"{tool} not found on PATH"
		if hint:
			msg = f"{msg} ({hint})"
		super().__init__(msg)
		self.tool = tool


class EmptyTaskError(SmithError):
	def __init__(self):
		super().__init__("Task description is empty")


class ConfigError(SmithError):
	pass


class BuildTimeoutError(SmithError):
	exit_code = 124

	def __init__(self, command: str, timeout: float):
		super().__init__(f"Timed out after {timeout:g}s: {command}")
		self.timeout = timeout
