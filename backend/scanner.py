"""Per-kind reference scanning.

Each kind is scanned independently with its own grammar; merging across kinds
happens later in the compositor.
"""

from __future__ import annotations

from typing import Dict, Iterable, Optional, Set

from grammar import grammar_for
from models import Occurrence, RawScanResult, ReferenceKind


def scan(text: str, kind: ReferenceKind) -> RawScanResult:
    """
    Find every reference token of one kind in ``text``.

    Matches are leftmost and non-overlapping; scanning resumes right after the
    end of each match. Identifiers are lower-cased so that lookups are
    case-insensitive.

    Args:
        text: Raw message text
        kind: Reference kind to scan for

    Returns:
        RawScanResult with unique identifiers in first-occurrence order and
        every occurrence in document order
    """
    result = RawScanResult()
    if not text:
        return result

    grammar = grammar_for(kind)
    seen: Set[str] = set()

    for match in grammar.token_re.finditer(text):
        identifier = match.group(1).lower()
        if identifier not in seen:
            seen.add(identifier)
            result.identifiers.append(identifier)

        result.occurrences.append(
            Occurrence(
                kind=grammar.kind,
                identifier=identifier,
                start=match.start(),
                end=match.end(),
                text=match.group(0),
            )
        )

    return result


def scan_all(
    text: str, kinds: Optional[Iterable[ReferenceKind]] = None
) -> Dict[ReferenceKind, RawScanResult]:
    """Run one scan per kind (every known kind by default)."""
    selected = list(kinds) if kinds is not None else list(ReferenceKind)
    return {ReferenceKind(kind): scan(text, kind) for kind in selected}
