from __future__ import annotations

import logging
import os
from typing import Iterable, List, Optional

from .model import FileInfo, ProjectInfo


DEFAULT_SKIP_DIRS = {"Build", "DerivedData", "node_modules"}

_log = logging.getLogger("smith.scan")


def is_test_file(rel_path: str) -> bool:
	return "test" in rel_path.lower()


def resolve_scan_root(path: str) -> str:
	sources = os.path.join(path, "Sources")
	if os.path.isdir(sources):
		return sources
	return path


def find_swift_files(root: str, skip_dirs: Optional[Iterable[str]] = None) -> List[FileInfo]:
	skip = set(DEFAULT_SKIP_DIRS if skip_dirs is None else skip_dirs)
	files: List[FileInfo] = []
	for dirpath, dirnames, filenames in os.walk(root):
		# skip hidden dirs (.build, .git, .swiftpm)
		dirnames[:] = sorted(d for d in dirnames if not d.startswith(".") and d not in skip)
		for filename in sorted(filenames):
			if not filename.endswith(".swift"):
				continue
			path = os.path.join(dirpath, filename)
			rel_path = os.path.relpath(path, root)
			files.append(FileInfo(path=path, rel_path=rel_path, is_test=is_test_file(rel_path)))
	_log.debug("Found %d Swift files under %s", len(files), root)
	return files


def find_project_swift_files(root: str, skip_dirs: Iterable[str]) -> List[FileInfo]:
	"""Like find_swift_files but only prunes the named directories, hidden or not."""
	skip = set(skip_dirs)
	files: List[FileInfo] = []
	for dirpath, dirnames, filenames in os.walk(root):
		dirnames[:] = sorted(d for d in dirnames if d not in skip)
		for filename in sorted(filenames):
			if filename.endswith(".swift"):
				path = os.path.join(dirpath, filename)
				rel_path = os.path.relpath(path, root)
				files.append(FileInfo(path=path, rel_path=rel_path, is_test=is_test_file(rel_path)))
	return files


def _find_bundle(root: str, suffix: str) -> Optional[str]:
	for dirpath, dirnames, _ in os.walk(root):
		dirnames.sort()
		for d in dirnames:
			if d.endswith(suffix):
				return os.path.join(dirpath, d)
		# Bundles are not descended into
		dirnames[:] = [d for d in dirnames if not d.endswith((".xcworkspace", ".xcodeproj")) and not d.startswith(".")]
	return None


def detect_project(root: str) -> ProjectInfo:
	if os.path.isfile(os.path.join(root, "Package.swift")):
		return ProjectInfo(kind="spm", path=root)
	workspace = _find_bundle(root, ".xcworkspace")
	if workspace:
		return ProjectInfo(kind="workspace", path=workspace)
	project = _find_bundle(root, ".xcodeproj")
	if project:
		return ProjectInfo(kind="project", path=project)
	return ProjectInfo(kind="none")


def read_source(path: str) -> str:
	with open(path, "r", encoding="utf-8", errors="replace") as fh:
		return fh.read()
