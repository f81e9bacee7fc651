from __future__ import annotations

import logging
import os
import re
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional, Set

from .errors import NotSpmPackageError, PathNotFoundError
from .fs_scan import find_project_swift_files, read_source
from .model import DeepImportFile, ImportCycle, PlatformCondition, PlatformReport, SpmReport
from .swift_parse import parse_imports

_log = logging.getLogger("smith.spm")

DEFAULT_SYSTEM_MODULES = ("Darwin", "Foundation", "UIKit", "SwiftUI")
DEFAULT_MAX_IMPORTS = 10

LARGE_DEPENDENCIES = {
	"swift_syntax": "swift-syntax",
	"grdb": "grdb",
	"tca": "ComposableArchitecture",
}

_NAME_RE = re.compile(r'name:\s*"([^"]*)"')
_CONDITION_RE = re.compile(r"condition:\s*\.when\(\s*platforms:\s*\[([^\]]*)\]", re.S)
_PLATFORM_RE = re.compile(r"\.(\w+)")


def _require_package(path: str) -> str:
	if not os.path.isdir(path):
		raise PathNotFoundError(path)
	manifest = os.path.join(path, "Package.swift")
	if not os.path.isfile(manifest):
		raise NotSpmPackageError(path)
	return manifest


def _file_imports(path: str) -> Optional[List[str]]:
	try:
		return parse_imports(read_source(path))
	except OSError as e:
		_log.warning("Skipping unreadable file %s: %s", path, e)
		return None


def count_targets(manifest_text: str, package_name: str) -> int:
	names = {n for n in _NAME_RE.findall(manifest_text) if n != package_name}
	return len(names)


def _module_imports(sources_dir: str, system: Set[str]) -> Set[str]:
	imported: Set[str] = set()
	for f in find_project_swift_files(sources_dir, []):
		imports = _file_imports(f.path)
		if imports is not None:
			imported.update(m for m in imports if m not in system)
	return imported


def find_import_cycles(modules_dir: str, system_modules: Iterable[str] = DEFAULT_SYSTEM_MODULES) -> List[ImportCycle]:
	"""Self and mutual imports between ``Modules/<Name>/Sources`` trees."""
	system = set(system_modules)
	graph: Dict[str, Set[str]] = {}
	for name in sorted(os.listdir(modules_dir)):
		sources = os.path.join(modules_dir, name, "Sources")
		if os.path.isdir(sources):
			graph[name] = _module_imports(sources, system)

	cycles: List[ImportCycle] = []
	seen_pairs: Set[frozenset] = set()
	for module, imports in graph.items():
		if module in imports:
			cycles.append(ImportCycle(kind="self", modules=[module]))
		for other in sorted(imports):
			if other == module or other not in graph:
				continue
			pair = frozenset((module, other))
			if pair in seen_pairs:
				continue
			if module in graph[other]:
				seen_pairs.add(pair)
				cycles.append(ImportCycle(kind="mutual", modules=[module, other]))
	return cycles


def find_deep_imports(root: str, threshold: int = DEFAULT_MAX_IMPORTS) -> List[DeepImportFile]:
	deep: List[DeepImportFile] = []
	for f in find_project_swift_files(root, []):
		imports = _file_imports(f.path)
		if imports is not None and len(imports) > threshold:
			deep.append(
				DeepImportFile(
					file=os.path.basename(f.path),
					path=f.rel_path,
					import_count=len(imports),
					imports=imports,
				)
			)
	return deep


def detect_large_dependencies(resolved_path: str) -> Optional[Dict[str, bool]]:
	if not os.path.isfile(resolved_path):
		return None
	text = read_source(resolved_path)
	return {key: marker in text for key, marker in LARGE_DEPENDENCIES.items()}


def analyze_package(
	path: str,
	max_imports: int = DEFAULT_MAX_IMPORTS,
	system_modules: Iterable[str] = DEFAULT_SYSTEM_MODULES,
) -> SpmReport:
	manifest = _require_package(path)
	package = os.path.basename(os.path.abspath(path))
	target_count = count_targets(read_source(manifest), package)

	modules_dir = os.path.join(path, "Modules")
	cycles: List[ImportCycle] = []
	deep: List[DeepImportFile] = []
	has_modules = os.path.isdir(modules_dir)
	if has_modules:
		cycles = find_import_cycles(modules_dir, system_modules)
		deep = find_deep_imports(modules_dir, max_imports)
	else:
		_log.info("No Modules/ directory in %s, skipping import analysis", path)

	if cycles:
		result = "CRITICAL"
	elif deep:
		result = "WARNING"
	else:
		result = "PASS"

	return SpmReport(
		package=package,
		timestamp=datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ"),
		target_count=target_count,
		cycles=cycles,
		deep_imports=deep,
		has_modules_dir=has_modules,
		large_dependencies=detect_large_dependencies(os.path.join(path, "Package.resolved")),
		result=result,
	)


def spm_exit_code(report: SpmReport) -> int:
	return 1 if report.result == "CRITICAL" else 0


def parse_platform_conditions(manifest_text: str) -> List[PlatformCondition]:
	"""Dependencies guarded by ``condition: .when(platforms: [...])``.

	Each condition is attributed to the closest ``name: "..."`` before it,
	which in a manifest is the product the condition applies to.
	"""
	conditions: List[PlatformCondition] = []
	for m in _CONDITION_RE.finditer(manifest_text):
		names = _NAME_RE.findall(manifest_text, 0, m.start())
		if not names:
			continue
		platforms = _PLATFORM_RE.findall(m.group(1))
		conditions.append(PlatformCondition(product=names[-1], platforms=platforms))
	return conditions


def check_platform_dependencies(path: str, platform: str = "visionOS") -> PlatformReport:
	manifest = _require_package(path)
	conditioned = parse_platform_conditions(read_source(manifest))
	gaps = [c for c in conditioned if platform not in c.platforms]

	unavailable: Dict[str, List[str]] = {}
	if gaps:
		gapped = {c.product for c in gaps}
		for f in find_project_swift_files(path, [".build"]):
			for module in _file_imports(f.path) or []:
				if module in gapped:
					unavailable.setdefault(module, [])
					if f.rel_path not in unavailable[module]:
						unavailable[module].append(f.rel_path)

	return PlatformReport(platform=platform, conditioned=conditioned, gaps=gaps, unavailable_imports=unavailable)
