from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import ClassVar, Optional, Tuple

from sqlalchemy import or_

from src.exceptions import ValidationError
from src.responses import parse_pagination
from src.validators import parse_datetime


@dataclass
class ListFilter:
    """
    Base for the typed query filters of list endpoints.

    Subclasses declare their own fields and implement ``_parse`` to read them
    from ``request.args``; page/limit/search/sort handling lives here.
    """

    page: int = 1
    limit: int = 10
    search: Optional[str] = None
    sort_by: str = "created_at"
    sort_order: str = "desc"

    SORT_FIELDS: ClassVar[Tuple[str, ...]] = ("created_at",)
    DEFAULT_SORT: ClassVar[str] = "created_at"

    @classmethod
    def from_args(cls, args):
        errors = []
        try:
            page, limit = parse_pagination(args)
        except ValidationError as e:
            errors.extend(e.details)
            page, limit = 1, 10

        sort_by = args.get("sort_by") or cls.DEFAULT_SORT
        if sort_by not in cls.SORT_FIELDS:
            errors.append(f"sort_by must be one of: {', '.join(cls.SORT_FIELDS)}")
            sort_by = cls.DEFAULT_SORT
        sort_order = (args.get("sort_order") or "desc").lower()
        if sort_order not in ("asc", "desc"):
            errors.append("sort_order must be asc or desc")
            sort_order = "desc"

        search = (args.get("search") or "").strip() or None
        values = cls._parse(args, errors)
        if errors:
            raise ValidationError(errors)
        return cls(page=page, limit=limit, search=search, sort_by=sort_by, sort_order=sort_order, **values)

    @classmethod
    def _parse(cls, args, errors):
        return {}

    def order_clause(self, model):
        column = getattr(model, self.sort_by)
        return column.asc() if self.sort_order == "asc" else column.desc()


def parse_choice(args, name, choices, errors):
    value = args.get(name)
    if value in (None, ""):
        return None
    if value not in choices:
        errors.append(f"{name} must be one of: {', '.join(choices)}")
        return None
    return value


def parse_int(args, name, errors):
    value = args.get(name)
    if value in (None, ""):
        return None
    try:
        return int(value)
    except ValueError:
        errors.append(f"{name} must be an integer")
        return None


def parse_bool(args, name, errors):
    value = args.get(name)
    if value in (None, ""):
        return None
    if value.lower() in ("true", "1"):
        return True
    if value.lower() in ("false", "0"):
        return False
    errors.append(f"{name} must be true or false")
    return None


def parse_date(args, name, errors):
    value = args.get(name)
    if value in (None, ""):
        return None
    try:
        return parse_datetime(value)
    except ValueError:
        errors.append(f"{name} must be a valid ISO date")
        return None


def parse_amount(args, name, errors):
    value = args.get(name)
    if value in (None, ""):
        return None
    try:
        return Decimal(value)
    except InvalidOperation:
        errors.append(f"{name} must be a number")
        return None


def ilike_any(search, *columns):
    """OR of case-insensitive substring matches for a search term."""
    pattern = f"%{search}%"
    return or_(*[column.ilike(pattern) for column in columns])
