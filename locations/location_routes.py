from datetime import datetime
from flask import Blueprint, request
from src.exceptions import NotFoundError
from src.filters import ilike_any
from src.responses import success, parse_pagination, pagination_meta
from locations.location import Country, State, City
from user.jwt_middleware import jwt_required

bp = Blueprint("locations", __name__)

MAX_COUNTRIES_PER_PAGE = 250
MAX_PER_PAGE = 100


def _page(query, default_limit, max_limit):
    """Paginate a name-ordered query with next/previous page links."""
    page, limit = parse_pagination(request.args, default_limit=default_limit, max_limit=max_limit)
    total = query.count()
    rows = query.offset((page - 1) * limit).limit(limit).all()

    meta = pagination_meta(page, limit, total)
    has_next = page < meta["pages"]
    has_prev = page > 1
    meta.update({
        "has_next_page": has_next,
        "has_prev_page": has_prev,
        "next_page": page + 1 if has_next else None,
        "prev_page": page - 1 if has_prev else None,
    })
    return rows, meta


def _search():
    return (request.args.get("search") or "").strip()


@bp.route("/countries", methods=["GET"])
@jwt_required
def get_countries():
    q = Country.active()
    search = _search()
    if search:
        q = q.filter(ilike_any(search, Country.name, Country.iso_code))
    countries, pagination = _page(q.order_by(Country.name.asc()), MAX_COUNTRIES_PER_PAGE, MAX_COUNTRIES_PER_PAGE)
    return success({
        "countries": [c.to_dict() for c in countries],
        "pagination": pagination,
    }, "Countries retrieved successfully")


@bp.route("/country/<iso_code>", methods=["GET"])
@jwt_required
def get_country(iso_code):
    country = Country.active().filter(Country.iso_code == iso_code.upper()).first()
    if not country:
        raise NotFoundError(f"Country with ISO code '{iso_code}' not found")
    return success({"country": country.to_dict(detailed=True)}, "Country retrieved successfully")


@bp.route("/states/<country_code>", methods=["GET"])
@jwt_required
def get_states(country_code):
    country_code = country_code.upper()
    q = State.active().filter(State.country_code == country_code)
    search = _search()
    if search:
        q = q.filter(ilike_any(search, State.name, State.iso_code))
    states, pagination = _page(q.order_by(State.name.asc()), MAX_PER_PAGE, MAX_PER_PAGE)
    return success({
        "states": [s.to_dict() for s in states],
        "country_code": country_code,
        "pagination": pagination,
    }, f"States for {country_code} retrieved successfully")


@bp.route("/cities/<country_code>/<state_code>", methods=["GET"])
@jwt_required
def get_cities_by_state(country_code, state_code):
    country_code, state_code = country_code.upper(), state_code.upper()
    q = City.active().filter(City.country_code == country_code, City.state_code == state_code)
    search = _search()
    if search:
        q = q.filter(City.name.ilike(f"%{search}%"))
    cities, pagination = _page(q.order_by(City.name.asc()), MAX_PER_PAGE, MAX_PER_PAGE)
    return success({
        "cities": [c.to_dict() for c in cities],
        "country_code": country_code,
        "state_code": state_code,
        "pagination": pagination,
    }, f"Cities for {state_code}, {country_code} retrieved successfully")


@bp.route("/cities/<country_code>", methods=["GET"])
@jwt_required
def get_cities_by_country(country_code):
    country_code = country_code.upper()
    q = City.active().filter(City.country_code == country_code)
    search = _search()
    if search:
        q = q.filter(City.name.ilike(f"%{search}%"))
    cities, pagination = _page(q.order_by(City.name.asc()), MAX_PER_PAGE, MAX_PER_PAGE)
    return success({
        "cities": [c.to_dict() for c in cities],
        "country_code": country_code,
        "pagination": pagination,
    }, f"Cities for {country_code} retrieved successfully")


@bp.route("/stats", methods=["GET"])
@jwt_required
def location_stats():
    return success({
        "countries": Country.active().count(),
        "states": State.active().count(),
        "cities": City.active().count(),
        "last_updated": datetime.utcnow().isoformat(),
    }, "Location statistics retrieved successfully")
