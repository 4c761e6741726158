"""Request parsing shared by the JSON routes."""

from datetime import datetime

from flask import request


class BadRequest(ValueError):
    """Raised for a malformed request field; routes answer 400."""


def json_body() -> dict:
    return request.get_json(silent=True) or {}


def parse_int(value, field: str, required: bool = True):
    if value is None or value == '':
        if required:
            raise BadRequest(f'{field} is required')
        return None
    if isinstance(value, bool) or (isinstance(value, float) and not value.is_integer()):
        raise BadRequest(f'{field} must be a whole number')
    try:
        return int(value)
    except (TypeError, ValueError):
        raise BadRequest(f'{field} must be a whole number')


def parse_datetime(value, field: str, required: bool = True):
    """Accept YYYY-MM-DD or a full ISO 8601 timestamp."""
    if not value:
        if required:
            raise BadRequest(f'{field} is required')
        return None
    try:
        parsed = datetime.fromisoformat(str(value))
    except ValueError:
        raise BadRequest(f'{field} must be an ISO date (YYYY-MM-DD)')
    # Periods are stored as naive local time
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone().replace(tzinfo=None)
    return parsed


def iso(value):
    return value.isoformat() if value else None
