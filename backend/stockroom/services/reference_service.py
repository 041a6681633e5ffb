# Overview: Reference integrity checks run before product writes.

"""
Reference validation semantics

- location_id is required and must resolve to a Location row.
- supplier_id is optional; when given it must resolve to a Supplier row.
- All references are checked before raising, so one InvalidReference lists
  every violation.
- These are plain reads. A location deleted concurrently with a product
  write is an accepted race; nothing here locks.
"""

from __future__ import annotations

from ..extensions import db
from ..errors import InvalidReference
from ..models import Location, Supplier


def _exists(model, pk) -> bool:
    return db.session.query(model.id).filter(model.id == pk).first() is not None


def validate_references(location_id: int | None, supplier_id: int | None = None) -> None:
    violations: list[dict] = []

    if location_id is None:
        violations.append({"field": "location_id", "value": None, "reason": "required"})
    elif not _exists(Location, location_id):
        violations.append({"field": "location_id", "value": location_id, "reason": "not found"})

    if supplier_id is not None and not _exists(Supplier, supplier_id):
        violations.append({"field": "supplier_id", "value": supplier_id, "reason": "not found"})

    if violations:
        raise InvalidReference(violations)
