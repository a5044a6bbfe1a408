"""
Structural checks on a written artifact: the data table and the first image.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from lxml import etree, html

POINTS_PER_ELEMENT = 2
MIN_ROWS = 3

_UNIT_MARKER = re.compile(r"\(.*\)")


@dataclass(frozen=True)
class TableCheck:
    score: int
    suggestions: list[str] = field(default_factory=list)
    found: bool = False
    rows: int = 0
    headers: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class ParsedArtifact:
    """Visible text plus the parsed tree (None for empty input)."""
    text: str
    root: html.HtmlElement | None

    @property
    def first_image_src(self) -> str | None:
        if self.root is None:
            return None
        sources = self.root.xpath("//img/@src")
        return str(sources[0]) if sources else None


def parse_artifact(raw: str) -> ParsedArtifact:
    """Parse text or an HTML fragment. Plain text parses to a single paragraph."""
    if not raw or not raw.strip():
        return ParsedArtifact(text="", root=None)
    try:
        root = html.fromstring(raw)
    except (etree.ParserError, ValueError):
        return ParsedArtifact(text=raw, root=None)
    # Sibling elements carry no whitespace between them
    text = " ".join(t.strip() for t in root.itertext() if t.strip())
    return ParsedArtifact(text=text, root=root)


def check_table_structure(artifact: ParsedArtifact) -> TableCheck:
    """
    Score the first table, 2 points per element present:

    - at least 3 rows
    - a header mentioning "average"
    - a header mentioning "trial"
    - a header carrying a unit marker, e.g. "Distance (cm)"
    """
    tables = artifact.root.xpath("//table") if artifact.root is not None else []
    if not tables:
        return TableCheck(score=0, suggestions=["You might want to include a data table."])

    table = tables[0]
    rows = len(table.xpath(".//tr"))
    headers = [th.text_content().strip().lower() for th in table.xpath(".//th")]

    score = 0
    suggestions: list[str] = []

    if rows >= MIN_ROWS:
        score += POINTS_PER_ELEMENT
    else:
        suggestions.append("Try adding at least 3 rows of data.")

    if any("average" in h for h in headers):
        score += POINTS_PER_ELEMENT
    else:
        suggestions.append("Consider adding a column for averages.")

    if any("trial" in h for h in headers):
        score += POINTS_PER_ELEMENT
    else:
        suggestions.append("Try including multiple trials.")

    if any(_UNIT_MARKER.search(h) for h in headers):
        score += POINTS_PER_ELEMENT
    else:
        suggestions.append("Include units in your table headers.")

    return TableCheck(score=score, suggestions=suggestions, found=True, rows=rows, headers=headers)
