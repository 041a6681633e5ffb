"""Reference validation: every violation is reported at once."""

import pytest

from stockroom.errors import ErrorKind, InvalidReference
from stockroom.services.reference_service import validate_references


def test_valid_references(db_session, location, supplier):
    validate_references(location.id, supplier.id)
    validate_references(location.id)


def test_missing_location_is_listed(db_session):
    with pytest.raises(InvalidReference) as excinfo:
        validate_references(999)

    assert excinfo.value.kind is ErrorKind.INVALID_REFERENCE
    assert excinfo.value.violations == [{"field": "location_id", "value": 999, "reason": "not found"}]
    assert "location_id" in excinfo.value.message


def test_all_violations_reported_together(db_session):
    with pytest.raises(InvalidReference) as excinfo:
        validate_references(999, 888)

    fields = [v["field"] for v in excinfo.value.violations]
    assert fields == ["location_id", "supplier_id"]
    assert excinfo.value.to_dict()["details"]["violations"][1]["value"] == 888


def test_location_required(db_session, supplier):
    with pytest.raises(InvalidReference) as excinfo:
        validate_references(None, supplier.id)

    assert excinfo.value.violations == [{"field": "location_id", "value": None, "reason": "required"}]
