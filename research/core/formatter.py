from __future__ import annotations

"""Turn raw model text into HTML.

The model answers in loose prose: ``Label:`` lines act as section headers,
bullets come as unicode glyphs, paragraphs are separated by blank lines. The
passes below rewrite that into markdown, then render it. Every pass is a pure
function of its input so the same text always yields the same HTML.
"""

import re
from functools import lru_cache
from typing import List, Optional, Set, Tuple

from markdown_it import MarkdownIt


# A capitalized word, optionally followed by more words, then a colon.
LABEL_LINE = re.compile(
    r"(?P<label>[A-Z][A-Za-z]*(?:[ \t]+[A-Za-z]+)*):(?P<rest>.*)$"
)
BULLET_GLYPH = re.compile(r"^[•●○][ \t]*", re.MULTILINE)
BLANK_LINE = re.compile(r"\n[ \t]*\n")
LIST_MARKERS = ("*", "-", "+", "•", "●", "○")
PASSTHROUGH_PREFIXES = ("#", "*", "-")


def normalize_newlines(text: str) -> str:
    return text.replace("\r\n", "\n").replace("\r", "\n")


def _match_label(line: str) -> Optional[Tuple[str, str]]:
    stripped = line.strip()
    if not stripped or stripped.startswith("#") or stripped.startswith(LIST_MARKERS):
        return None
    match = LABEL_LINE.match(stripped)
    if match is None:
        return None
    rest = match.group("rest").strip()
    # "Ratio: 3:2", "Time:10" are values, not headers
    if rest[:1].isdigit():
        return None
    return match.group("label").strip(), rest


def _headings(lines: List[str]) -> Set[int]:
    return {i for i, line in enumerate(lines) if line.lstrip().startswith("#")}


def _promote(
    lines: List[str], level: int, indented: bool, exclude: Set[int]
) -> Tuple[List[str], Set[int]]:
    """Promote label lines of one indentation kind; return new lines and heading indices."""
    out: List[str] = []
    promoted: Set[int] = set()
    for index, line in enumerate(lines):
        if index in exclude or (line[:1] in (" ", "\t")) != indented:
            out.append(line)
            continue
        found = _match_label(line)
        if found is None:
            out.append(line)
            continue
        label, rest = found
        # "Overview: Details: more": a label-shaped remainder is a heading too
        while True:
            promoted.add(len(out))
            out.append("#" * level + " " + label)
            found = _match_label(rest) if rest else None
            if found is None:
                break
            label, rest = found
        if rest:
            out.append(rest)
    return out, promoted


def promote_headings(text: str) -> str:
    """Rewrite ``Label:`` lines as markdown headings.

    Pass one turns non-indented label lines into level-2 headings; pass two
    turns the remaining indented ones into level-3 headings. Lines a pass has
    promoted, and any line already starting with ``#``, are never promoted
    again, so running this on its own output changes nothing.
    """
    lines = text.split("\n")
    lines, promoted = _promote(lines, level=2, indented=False, exclude=_headings(lines))
    lines, _ = _promote(lines, level=3, indented=True, exclude=promoted | _headings(lines))
    return "\n".join(lines)


def normalize_bullets(text: str) -> str:
    return BULLET_GLYPH.sub("* ", text)


def normalize_paragraphs(text: str) -> str:
    stripped = (block.strip("\n") for block in BLANK_LINE.split(text))
    blocks = [block for block in stripped if block]
    formatted = [
        block if block.startswith(PASSTHROUGH_PREFIXES) else block + "\n"
        for block in blocks
    ]
    return "\n\n".join(formatted)


@lru_cache(maxsize=1)
def _renderer() -> MarkdownIt:
    return MarkdownIt("gfm-like", {"breaks": True})


def render_markdown(markdown: str) -> str:
    return _renderer().render(markdown)


def format_response(raw_text: str) -> str:
    text = normalize_newlines(raw_text or "")
    text = promote_headings(text)
    text = normalize_bullets(text)
    text = normalize_paragraphs(text)
    return render_markdown(text)
