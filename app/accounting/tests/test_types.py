"""
Tests for posting parameter types.
"""

import pytest

from core.exceptions import ValidationError

from accounting.models import RefType
from accounting.types import (
    CREATED_BY_MAX_LENGTH,
    REF_ID_MAX_LENGTH,
    LineParams,
    PostEntryParams,
)


class TestLineParams:
    def test_defaults(self):
        line = LineParams(account_code="1020")

        assert (line.debit, line.credit, line.description) == (0, 0, "")

    def test_from_dict(self):
        line = LineParams.from_dict({"account_code": 1020, "credit": 5000})

        assert line == LineParams(account_code="1020", credit=5000)

    def test_from_dict_keeps_amount_types(self):
        # Validation is left to the posting engine
        line = LineParams.from_dict({"account_code": "1020", "debit": "5000"})

        assert line.debit == "5000"


class TestPostEntryParams:
    def test_converts_dict_lines(self, posted_at):
        params = PostEntryParams(
            ref_type=RefType.DONATION,
            posted_at=posted_at,
            lines=[{"account_code": "1020", "debit": 1}, LineParams("2010", credit=1)],
        )

        assert all(isinstance(line, LineParams) for line in params.lines)

    def test_ref_id_normalized_to_string(self, posted_at):
        params = PostEntryParams(
            ref_type=RefType.DONATION, posted_at=posted_at, lines=[], ref_id=42
        )

        assert params.ref_id == "42"

    def test_none_ref_id_becomes_empty(self, posted_at):
        params = PostEntryParams(
            ref_type=RefType.DONATION, posted_at=posted_at, lines=[], ref_id=None
        )

        assert params.ref_id == ""

    def test_metadata_is_not_shared(self, posted_at):
        first = PostEntryParams(ref_type=RefType.DONATION, posted_at=posted_at, lines=[])
        second = PostEntryParams(ref_type=RefType.DONATION, posted_at=posted_at, lines=[])

        first.metadata["fee"] = 1

        assert second.metadata == {}

    @pytest.mark.parametrize(
        "kwargs",
        [{"ref_type": ""}, {"posted_at": None}],
        ids=["no-ref-type", "no-posted-at"],
    )
    def test_required_fields(self, posted_at, kwargs):
        values = {"ref_type": RefType.DONATION, "posted_at": posted_at, "lines": []}
        values.update(kwargs)

        with pytest.raises(ValueError):
            PostEntryParams(**values)

    @pytest.mark.parametrize(
        "field_name, limit",
        [("ref_id", REF_ID_MAX_LENGTH), ("created_by", CREATED_BY_MAX_LENGTH)],
    )
    def test_values_wider_than_their_column_are_rejected(self, posted_at, field_name, limit):
        with pytest.raises(ValidationError) as exc_info:
            PostEntryParams(
                ref_type=RefType.DONATION,
                posted_at=posted_at,
                lines=[],
                **{field_name: "x" * (limit + 1)},
            )

        assert exc_info.value.error_code == "FIELD_TOO_LONG"
        assert exc_info.value.details["field"] == field_name

    def test_values_at_column_width_are_accepted(self, posted_at):
        params = PostEntryParams(
            ref_type=RefType.DONATION,
            posted_at=posted_at,
            lines=[],
            ref_id="x" * REF_ID_MAX_LENGTH,
            created_by="x" * CREATED_BY_MAX_LENGTH,
        )

        assert len(params.ref_id) == REF_ID_MAX_LENGTH
