"""Cursor-conditioned detection of in-progress references for autocomplete."""

from __future__ import annotations

from typing import Iterable, Optional

from grammar import grammar_for
from models import CursorQuery, ReferenceKind


class CursorOutOfRangeError(ValueError):
    """Raised when a cursor offset does not point inside the text."""

    def __init__(self, cursor: int, length: int):
        super().__init__(f"Cursor offset {cursor} is outside [0, {length}]")
        self.cursor = cursor
        self.length = length


def _check_cursor(text: str, cursor: int) -> None:
    if cursor < 0 or cursor > len(text):
        raise CursorOutOfRangeError(cursor, len(text))


def _find_trigger(text: str, cursor: int, trigger: str) -> Optional[int]:
    """Walk back from the cursor to the nearest trigger on the same word."""
    pos = cursor - 1
    while pos >= 0:
        if text[pos].isspace():
            return None
        if text.startswith(trigger, pos):
            return pos
        pos -= 1
    return None


def _word_end(text: str, start: int) -> int:
    end = start
    while end < len(text) and not text[end].isspace():
        end += 1
    return end


def extract_query(text: str, cursor: int, kind: ReferenceKind) -> Optional[CursorQuery]:
    """
    Detect the reference of ``kind`` being typed at ``cursor``.

    The span starts at the trigger and runs to the next whitespace or the end
    of the text. A cursor sitting exactly at the end of the span is inside it.

    Args:
        text: Current editor buffer
        cursor: Caret offset in ``[0, len(text)]``
        kind: Reference kind to look for

    Returns:
        CursorQuery with the partial query and its span, or None when the cursor
        is not on an open trigger

    Raises:
        CursorOutOfRangeError: if ``cursor`` is outside the text
    """
    _check_cursor(text, cursor)
    grammar = grammar_for(kind)

    start = _find_trigger(text, cursor, grammar.trigger)
    if start is None:
        return None

    # A completed token already ending at or before the cursor is closed.
    completed = grammar.token_re.match(text, start)
    if completed is not None and completed.end() <= cursor:
        return None

    end = _word_end(text, start + len(grammar.trigger))
    if cursor < start or cursor > end:
        return None

    query_start = start + len(grammar.trigger)
    if grammar.sigil != grammar.trigger and text.startswith(grammar.sigil, start):
        query_start = start + len(grammar.sigil)

    return CursorQuery(
        kind=grammar.kind,
        query=text[query_start:end],
        start=start,
        end=end,
    )


def extract_active_query(
    text: str, cursor: int, kinds: Optional[Iterable[ReferenceKind]] = None
) -> Optional[CursorQuery]:
    """Return the query of whichever kind's trigger sits closest to the cursor."""
    _check_cursor(text, cursor)
    selected = list(kinds) if kinds is not None else list(ReferenceKind)

    best: Optional[CursorQuery] = None
    for kind in selected:
        query = extract_query(text, cursor, kind)
        if query is not None and (best is None or query.start > best.start):
            best = query
    return best
