from pathlib import Path
from textwrap import dedent

import pytest


@pytest.fixture()
def write_swift(tmp_path: Path):
	"""Write a dedented Swift source under tmp_path and return its path."""

	def _write(rel_path: str, code: str) -> Path:
		p = tmp_path / rel_path
		p.parent.mkdir(parents=True, exist_ok=True)
		p.write_text(dedent(code).lstrip("\n"))
		return p

	return _write
