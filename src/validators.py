import re
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation

from src.exceptions import ValidationError

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
URL_RE = re.compile(r"^https?://\S+$", re.IGNORECASE)
PHONE_RE = re.compile(r"^\+?[0-9\s\-()]{7,20}$")

_MISSING = object()


def parse_datetime(value):
    """Parse an ISO-8601 date or datetime string into a naive UTC datetime."""
    if isinstance(value, datetime):
        dt = value
    else:
        text = str(value).strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        dt = datetime.fromisoformat(text)
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc).replace(tzinfo=None)
    return dt


class Validator:
    """
    Collects field errors from a request payload.

    Each field method returns the cleaned value and stores it in ``cleaned``
    when the field is present. With ``partial=True`` required checks are
    skipped for absent fields, which is what update endpoints want.
    Call ``check()`` once all fields are read to raise a ValidationError
    listing every failure.
    """

    def __init__(self, data, partial=False):
        self.data = data if isinstance(data, dict) else {}
        self.partial = partial
        self.errors = []
        self.cleaned = {}

    def _raw(self, field, required):
        value = self.data.get(field, _MISSING)
        if value is _MISSING or value is None or (isinstance(value, str) and value.strip() == ""):
            if required and not self.partial:
                self.errors.append(f"{field} is required")
            elif required and self.partial and value is not _MISSING:
                self.errors.append(f"{field} cannot be empty")
            return _MISSING if value is _MISSING else None
        return value

    def _store(self, field, value):
        self.cleaned[field] = value
        return value

    def string(self, field, required=False, max_length=None, min_length=None, choices=None, pattern=None, message=None, lower=False):
        value = self._raw(field, required)
        if value is _MISSING:
            return None
        if value is None:
            return self._store(field, None)
        if not isinstance(value, str):
            value = str(value)
        value = value.strip()
        if lower:
            value = value.lower()
        if max_length is not None and len(value) > max_length:
            self.errors.append(f"{field} cannot exceed {max_length} characters")
        if min_length is not None and len(value) < min_length:
            self.errors.append(f"{field} must be at least {min_length} characters")
        if choices is not None and value not in choices:
            self.errors.append(f"{field} must be one of: {', '.join(choices)}")
        if pattern is not None and not pattern.match(value):
            self.errors.append(message or f"{field} is invalid")
        return self._store(field, value)

    def email(self, field, required=False):
        return self.string(field, required=required, max_length=255, pattern=EMAIL_RE,
                           message=f"{field} must be a valid email address", lower=True)

    def url(self, field, required=False):
        return self.string(field, required=required, max_length=500, pattern=URL_RE,
                           message=f"{field} must be a valid http(s) URL")

    def decimal(self, field, required=False, min_value=None, max_value=None, gt=None, places=None, default=_MISSING):
        value = self._raw(field, required)
        if value is _MISSING or value is None:
            if default is not _MISSING:
                return self._store(field, default)
            return None if value is _MISSING else self._store(field, None)
        if isinstance(value, bool):
            self.errors.append(f"{field} must be a number")
            return None
        try:
            number = Decimal(str(value))
        except (InvalidOperation, ValueError):
            self.errors.append(f"{field} must be a number")
            return None
        if not number.is_finite():
            self.errors.append(f"{field} must be a number")
            return None
        if gt is not None and number <= gt:
            self.errors.append(f"{field} must be greater than {gt}")
        if min_value is not None and number < min_value:
            self.errors.append(f"{field} cannot be less than {min_value}")
        if max_value is not None and number > max_value:
            self.errors.append(f"{field} cannot exceed {max_value}")
        if places is not None and number.as_tuple().exponent < -places:
            self.errors.append(f"{field} cannot have more than {places} decimal places")
        return self._store(field, number)

    def integer(self, field, required=False, min_value=None, choices=None):
        value = self._raw(field, required)
        if value is _MISSING:
            return None
        if value is None:
            return self._store(field, None)
        if isinstance(value, bool):
            self.errors.append(f"{field} must be an integer")
            return None
        try:
            number = int(str(value))
        except ValueError:
            self.errors.append(f"{field} must be an integer")
            return None
        if min_value is not None and number < min_value:
            self.errors.append(f"{field} cannot be less than {min_value}")
        if choices is not None and number not in choices:
            self.errors.append(f"{field} must be one of: {', '.join(str(c) for c in choices)}")
        return self._store(field, number)

    def boolean(self, field):
        value = self.data.get(field, _MISSING)
        if value is _MISSING or value is None:
            return None
        if isinstance(value, bool):
            return self._store(field, value)
        if isinstance(value, str) and value.lower() in ("true", "false", "1", "0"):
            return self._store(field, value.lower() in ("true", "1"))
        self.errors.append(f"{field} must be a boolean")
        return None

    def datetime(self, field, required=False, not_future=False):
        value = self._raw(field, required)
        if value is _MISSING:
            return None
        if value is None:
            return self._store(field, None)
        try:
            dt = parse_datetime(value)
        except (TypeError, ValueError):
            self.errors.append(f"{field} must be a valid ISO date")
            return None
        if not_future and dt > datetime.utcnow():
            self.errors.append(f"{field} cannot be in the future")
        return self._store(field, dt)

    def string_list(self, field, max_items=None):
        value = self.data.get(field, _MISSING)
        if value is _MISSING or value is None:
            return None
        if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
            self.errors.append(f"{field} must be a list of strings")
            return None
        if max_items is not None and len(value) > max_items:
            self.errors.append(f"{field} cannot have more than {max_items} entries")
        return self._store(field, value)

    def integer_list(self, field):
        value = self.data.get(field, _MISSING)
        if value is _MISSING or value is None:
            return None
        if not isinstance(value, list):
            self.errors.append(f"{field} must be a list of ids")
            return None
        try:
            ids = [int(v) for v in value if not isinstance(v, bool)]
        except (TypeError, ValueError):
            self.errors.append(f"{field} must be a list of ids")
            return None
        if len(ids) != len(value):
            self.errors.append(f"{field} must be a list of ids")
            return None
        return self._store(field, ids)

    def add_error(self, message):
        self.errors.append(message)

    def check(self):
        if self.errors:
            raise ValidationError(list(self.errors))
        return self.cleaned
