from __future__ import annotations

import re
from collections import Counter
from typing import Dict, List

# import Foo / @testable import Foo / @_exported import Foo / import struct Foo.Bar
_IMPORT_RE = re.compile(
	r"^\s*(?:@\w+\s+)*import\s+(?:(?:typealias|struct|class|enum|protocol|let|var|func)\s+)?([A-Za-z_][\w]*)"
)

_DECL_RE = re.compile(
	r"^\s*(?:@\w+(?:\([^)]*\))?\s+)*"
	r"(?:(?:public|internal|private|fileprivate|open|package|final|static|class|override|nonisolated|mutating|indirect)\s+)*"
	r"(struct|class|enum|protocol|extension|actor|func)\s+[A-Za-z_`]"
)

_DECL_KINDS = {
	"struct": "StructDeclaration",
	"class": "ClassDeclaration",
	"enum": "EnumDeclaration",
	"protocol": "ProtocolDeclaration",
	"extension": "ExtensionDeclaration",
	"actor": "ActorDeclaration",
	"func": "FunctionDeclaration",
}


def parse_imports(text: str) -> List[str]:
	"""Module names imported by a Swift source, in file order (duplicates kept)."""
	imports: List[str] = []
	for line in text.splitlines():
		m = _IMPORT_RE.match(line)
		if m:
			imports.append(m.group(1))
	return imports


def count_declarations(text: str) -> Dict[str, int]:
	counts: Counter = Counter()
	for line in text.splitlines():
		m = _DECL_RE.match(line)
		if m:
			counts[_DECL_KINDS[m.group(1)]] += 1
	return dict(counts.most_common())


def first_match_line(text: str, pattern: "re.Pattern[str]") -> int:
	"""1-based line of the first match of pattern in text, 0 when absent."""
	m = pattern.search(text)
	if not m:
		return 0
	return text.count("\n", 0, m.start()) + 1
