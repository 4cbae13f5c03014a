import math
from flask import jsonify, current_app

from src.exceptions import ValidationError


def success(data=None, message="Success", status=200, **extra):
    body = {"statusCode": status, "message": message, "data": data}
    body.update(extra)
    return jsonify(body), status


def parse_pagination(args, default_limit=None, max_limit=None):
    """Read page/limit query params, clamped to the configured maximum."""
    errors = []
    default_limit = default_limit or current_app.config.get("DEFAULT_PAGE_SIZE", 10)
    max_limit = max_limit or current_app.config.get("MAX_PAGE_SIZE", 100)
    try:
        page = int(args.get("page", 1))
        if page < 1:
            errors.append("page must be a positive integer")
    except (TypeError, ValueError):
        errors.append("page must be a positive integer")
        page = 1
    try:
        limit = int(args.get("limit", default_limit))
        if limit < 1:
            errors.append("limit must be a positive integer")
    except (TypeError, ValueError):
        errors.append("limit must be a positive integer")
        limit = default_limit
    if errors:
        raise ValidationError(errors)
    return page, min(limit, max_limit)


def pagination_meta(page, limit, total):
    return {
        "page": page,
        "limit": limit,
        "total": total,
        "pages": math.ceil(total / limit) if limit else 0,
    }


def paginate(query, page, limit):
    paginated = query.paginate(page=page, per_page=limit, error_out=False)
    return paginated.items, pagination_meta(page, limit, paginated.total)
