"""Lexical grammar of inline reference tokens.

A reference token is a fixed sigil immediately followed by a canonical
36-character identifier (8-4-4-4-12 hex groups). Each kind owns one sigil, and
no sigil occurs inside another kind's token, so per-kind scans never compete
for the same characters.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Dict, Optional, Pattern

from models import ReferenceKind

IDENTIFIER_LENGTH = 36

_IDENTIFIER_PATTERN = r"[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}"
_IDENTIFIER_RE = re.compile(_IDENTIFIER_PATTERN, re.IGNORECASE)


@dataclass(frozen=True)
class ReferenceGrammar:
    kind: ReferenceKind
    sigil: str
    trigger: str
    chip_prefix: str
    label_field: str
    token_re: Pattern[str]


def _grammar(kind: ReferenceKind, sigil: str, trigger: str, chip_prefix: str, label_field: str) -> ReferenceGrammar:
    token_re = re.compile(re.escape(sigil) + "(" + _IDENTIFIER_PATTERN + ")", re.IGNORECASE)
    return ReferenceGrammar(
        kind=kind,
        sigil=sigil,
        trigger=trigger,
        chip_prefix=chip_prefix,
        label_field=label_field,
        token_re=token_re,
    )


GRAMMARS: Dict[ReferenceKind, ReferenceGrammar] = {
    ReferenceKind.TASK: _grammar(ReferenceKind.TASK, "#", "#", "#", "title"),
    ReferenceKind.MILESTONE: _grammar(
        ReferenceKind.MILESTONE, "@milestone:", "@milestone", "@", "name"
    ),
}


def grammar_for(kind: ReferenceKind) -> ReferenceGrammar:
    try:
        return GRAMMARS[ReferenceKind(kind)]
    except (KeyError, ValueError):
        raise ValueError(f"Unknown reference kind: {kind!r}") from None


def is_identifier(value: str) -> bool:
    return len(value or "") == IDENTIFIER_LENGTH and _IDENTIFIER_RE.fullmatch(value) is not None


def is_valid_reference(kind: ReferenceKind, text: str) -> bool:
    """True when ``text`` is exactly one reference token of ``kind``."""
    return grammar_for(kind).token_re.fullmatch(text or "") is not None


def extract_identifier(kind: ReferenceKind, text: str) -> Optional[str]:
    """Identifier of the first ``kind`` token in ``text``, lower-cased."""
    match = grammar_for(kind).token_re.search(text or "")
    return match.group(1).lower() if match else None
