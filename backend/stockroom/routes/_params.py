# Overview: Shared request-parsing helpers for route modules.

from datetime import datetime

from flask import request

from ..errors import ValidationError
from stockroom.time_utils import parse_iso_datetime


def int_field(data: dict, name: str, *, required: bool = True) -> int | None:
    value = data.get(name)
    if value is None:
        if required:
            raise ValidationError(f"{name} is required", details={"field": name})
        return None
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"{name} must be an integer", details={"field": name})
    return value


def datetime_arg(name: str) -> datetime | None:
    raw = request.args.get(name)
    try:
        return parse_iso_datetime(raw)
    except ValueError:
        raise ValidationError(f"{name} must be an ISO-8601 datetime", details={"field": name})
