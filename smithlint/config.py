"""
Runtime configuration.

Resolution order for the config file:
    1. explicit path (``smith --config FILE``)
    2. ``SMITH_CONFIG`` environment variable
    3. ``.smith.yaml`` in the working directory

The file may be YAML or JSON. Example:

    max_imports: 12
    disabled_rules: [date_init]
    extra_rules:
      - name: no_print
        category: anti_pattern
        pattern: '\\bprint\\('
        message: Use Logger instead of print
        severity: warning

Environment overrides (applied last): SMITH_MAX_IMPORTS, SMITH_DERIVED_DATA,
SMITH_BUILD_TIMEOUT.
"""
from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import List, Optional

import yaml
from pydantic import BaseModel, ValidationError

from .errors import ConfigError
from .model import PatternRule

_log = logging.getLogger("smith.config")

DEFAULT_CONFIG_NAME = ".smith.yaml"


class SmithConfig(BaseModel):
	skip_dirs: List[str] = ["Build", "DerivedData", "node_modules"]
	compliance_skip_dirs: List[str] = ["Build", ".build", "DerivedData"]
	system_modules: List[str] = ["Darwin", "Foundation", "UIKit", "SwiftUI"]
	max_imports: int = 10
	derived_data_path: str = "~/Library/Developer/Xcode/DerivedData"
	derived_data_limit_mb: int = 500
	build_timeout: int = 120
	hang_timeout: int = 60
	tool_timeout: int = 30
	disabled_rules: List[str] = []
	extra_rules: List[PatternRule] = []

	@property
	def derived_data_dir(self) -> Path:
		return Path(os.path.expanduser(self.derived_data_path))


def _resolve_path(path: Optional[str]) -> Optional[Path]:
	if path:
		return Path(path)
	env_path = os.environ.get("SMITH_CONFIG")
	if env_path:
		return Path(env_path)
	default = Path.cwd() / DEFAULT_CONFIG_NAME
	return default if default.exists() else None


def _parse(text: str, source: Path) -> dict:
	try:
		data = json.loads(text)
	except json.JSONDecodeError:
		try:
			data = yaml.safe_load(text)
		except yaml.YAMLError as exc:
			raise ConfigError(f"Failed to parse {source} as JSON or YAML: {exc}") from exc
	if data is None:
		return {}
	if not isinstance(data, dict):
		raise ConfigError(f"Config file {source} must contain a mapping, got {type(data).__name__}")
	return data


def _apply_env(data: dict) -> dict:
	env_map = {
		"SMITH_MAX_IMPORTS": "max_imports",
		"SMITH_DERIVED_DATA": "derived_data_path",
		"SMITH_BUILD_TIMEOUT": "build_timeout",
	}
	for env_key, field in env_map.items():
		value = os.environ.get(env_key)
		if value:
			data[field] = value
	return data


def load_config(path: Optional[str] = None) -> SmithConfig:
	resolved = _resolve_path(path)
	data: dict = {}
	if resolved is not None:
		if not resolved.exists():
			raise ConfigError(f"Config file not found: {resolved}")
		data = _parse(resolved.read_text(encoding="utf-8"), resolved)
		_log.info("Loaded config from %s", resolved)
	data = _apply_env(data)
	try:
		return SmithConfig(**data)
	except ValidationError as exc:
		raise ConfigError(f"Invalid configuration: {exc}") from exc
