"""
Unit tests for per-kind reference scanning.
"""

import os
import sys

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "../../backend"))

from models import ReferenceKind
from scanner import scan, scan_all
from serializer import to_reference_token

TASK_ID = "11111111-1111-1111-1111-111111111111"
OTHER_TASK_ID = "33333333-3333-3333-3333-333333333333"
MILESTONE_ID = "22222222-2222-2222-2222-222222222222"


class TestScanner:
    """Test suite for scan()."""

    def test_empty_text(self):
        """Empty input yields empty results for every kind."""
        for kind in ReferenceKind:
            result = scan("", kind)
            assert result.identifiers == []
            assert result.occurrences == []

    @pytest.mark.parametrize(
        "text",
        [
            "plain chat message",
            "# heading-like hash",
            "#1234",
            "@milestone without id",
            "@milestone:1111",
            "email me at someone@example.com",
            "#11111111-1111-1111-1111-11111111111",
        ],
    )
    def test_text_without_tokens(self, text):
        """Malformed or missing references are plain text."""
        for kind in ReferenceKind:
            assert scan(text, kind).occurrences == []

    def test_single_task_reference_positions(self):
        text = f"Check #{TASK_ID} please"
        result = scan(text, ReferenceKind.TASK)

        assert result.identifiers == [TASK_ID]
        assert len(result.occurrences) == 1
        occurrence = result.occurrences[0]
        assert occurrence.kind == ReferenceKind.TASK
        assert occurrence.start == 6
        assert occurrence.end == 6 + 37
        assert occurrence.text == f"#{TASK_ID}"
        assert text[occurrence.start:occurrence.end] == occurrence.text

    def test_duplicate_identifiers(self):
        text = f"#{TASK_ID} #{TASK_ID}"
        result = scan(text, ReferenceKind.TASK)

        assert len(result.identifiers) == 1
        assert len(result.occurrences) == 2
        assert result.occurrences[0].start == 0
        assert result.occurrences[1].start == 38

    def test_identifiers_first_occurrence_order(self):
        text = f"#{OTHER_TASK_ID} then #{TASK_ID} and again #{OTHER_TASK_ID}"
        result = scan(text, ReferenceKind.TASK)

        assert result.identifiers == [OTHER_TASK_ID, TASK_ID]
        assert [o.identifier for o in result.occurrences] == [OTHER_TASK_ID, TASK_ID, OTHER_TASK_ID]

    def test_case_insensitive_and_normalized(self):
        upper = "ABCDEF01-2345-6789-ABCD-EF0123456789"
        text = f"see #{upper} and #{upper.lower()}"
        result = scan(text, ReferenceKind.TASK)

        assert result.identifiers == [upper.lower()]
        assert result.occurrences[0].text == f"#{upper}"
        assert len(result.occurrences) == 2

    def test_adjacent_tokens(self):
        text = f"#{TASK_ID}#{OTHER_TASK_ID}"
        result = scan(text, ReferenceKind.TASK)

        assert [o.start for o in result.occurrences] == [0, 37]
        assert result.occurrences[0].end == result.occurrences[1].start

    def test_milestone_reference(self):
        text = f"Due by @milestone:{MILESTONE_ID}."
        result = scan(text, ReferenceKind.MILESTONE)

        assert result.identifiers == [MILESTONE_ID]
        occurrence = result.occurrences[0]
        assert occurrence.start == 7
        assert occurrence.end == 7 + len("@milestone:") + 36
        assert scan(text, ReferenceKind.TASK).occurrences == []

    def test_kinds_are_disjoint(self):
        text = f"#{TASK_ID} @milestone:{MILESTONE_ID}"
        tasks = scan(text, ReferenceKind.TASK)
        milestones = scan(text, ReferenceKind.MILESTONE)

        assert tasks.identifiers == [TASK_ID]
        assert milestones.identifiers == [MILESTONE_ID]

    def test_serialized_token_is_recovered(self):
        token = to_reference_token(ReferenceKind.TASK, TASK_ID)
        result = scan(token + " x", ReferenceKind.TASK)

        assert len(result.occurrences) == 1
        occurrence = result.occurrences[0]
        assert (token + " x")[occurrence.start:occurrence.end] == token
        assert occurrence.text == token

    def test_scan_all_covers_every_kind(self):
        results = scan_all(f"#{TASK_ID}")
        assert set(results) == set(ReferenceKind)
        assert results[ReferenceKind.TASK].identifiers == [TASK_ID]
        assert results[ReferenceKind.MILESTONE].identifiers == []

    def test_scan_all_subset(self):
        results = scan_all(f"#{TASK_ID}", kinds=["milestone"])
        assert list(results) == [ReferenceKind.MILESTONE]
