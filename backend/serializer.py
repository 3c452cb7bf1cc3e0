"""Canonical token formatting and editor insertion helpers."""

from __future__ import annotations

from typing import Dict, Tuple

from grammar import grammar_for
from models import CursorQuery, ReferenceKind, SuggestionInsertion

_MILESTONE_STATUSES: Dict[str, Tuple[str, str]] = {
    "not_started": ("Not started", "neutral"),
    "in_progress": ("In progress", "info"),
    "completed": ("Completed", "success"),
    "on_hold": ("On hold", "warning"),
}
_UNKNOWN_STATUS = ("Unknown", "neutral")


def to_reference_token(kind: ReferenceKind, identifier: str) -> str:
    return f"{grammar_for(kind).sigil}{identifier}"


def apply_suggestion(text: str, query: CursorQuery, identifier: str) -> SuggestionInsertion:
    """
    Replace the span of an active query with the chosen entity's token.

    The token is followed by a single space and the cursor lands after it, so
    typing can continue without re-triggering autocomplete.
    """
    if query.start < 0 or query.start > query.end or query.end > len(text):
        raise ValueError(f"Query span {query.start}-{query.end} is outside the text")

    before = text[: query.start]
    token = to_reference_token(query.kind, identifier)
    updated = f"{before}{token} {text[query.end:]}"
    return SuggestionInsertion(text=updated, cursor=len(before) + len(token) + 1)


def milestone_status_label(status: str) -> str:
    return _MILESTONE_STATUSES.get(status, _UNKNOWN_STATUS)[0]


def milestone_status_tone(status: str) -> str:
    return _MILESTONE_STATUSES.get(status, _UNKNOWN_STATUS)[1]
