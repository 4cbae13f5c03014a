from datetime import datetime
from src.extensions import db
import pandas as pd


class Country(db.Model):
    __tablename__ = "countries"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False, unique=True)
    iso_code = db.Column(db.String(3), nullable=False, unique=True, index=True)
    flag = db.Column(db.String(20), nullable=True)
    phonecode = db.Column(db.String(20), nullable=True)
    currency = db.Column(db.String(10), nullable=True)
    latitude = db.Column(db.String(20), nullable=True)
    longitude = db.Column(db.String(20), nullable=True)
    is_deleted = db.Column(db.Boolean, default=False, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    @classmethod
    def active(cls):
        return cls.query.filter(cls.is_deleted.is_(False))

    def to_dict(self, detailed=False):
        data = {
            "id": self.id,
            "name": self.name,
            "iso_code": self.iso_code,
            "flag": self.flag,
            "phonecode": self.phonecode,
            "currency": self.currency,
        }
        if detailed:
            data["latitude"] = self.latitude
            data["longitude"] = self.longitude
        return data


class State(db.Model):
    __tablename__ = "states"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    iso_code = db.Column(db.String(10), nullable=False)
    country_code = db.Column(db.String(3), nullable=False, index=True)
    is_deleted = db.Column(db.Boolean, default=False, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        db.UniqueConstraint("country_code", "iso_code", name="uq_states_country_iso"),
    )

    @classmethod
    def active(cls):
        return cls.query.filter(cls.is_deleted.is_(False))

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "iso_code": self.iso_code,
            "country_code": self.country_code,
        }


class City(db.Model):
    __tablename__ = "cities"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    state_code = db.Column(db.String(10), nullable=False)
    country_code = db.Column(db.String(3), nullable=False)
    is_deleted = db.Column(db.Boolean, default=False, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        db.Index("ix_cities_country_state", "country_code", "state_code"),
    )

    @classmethod
    def active(cls):
        return cls.query.filter(cls.is_deleted.is_(False))

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "state_code": self.state_code,
            "country_code": self.country_code,
        }


def _text(row, field):
    value = row.get(field)
    if value is None or pd.isna(value):
        return None
    # Numeric cells come back as floats
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value).strip()


def import_countries(df):
    """Insert countries from a dataframe, skipping iso codes already loaded."""
    existing = {c.iso_code for c in Country.query.with_entities(Country.iso_code)}
    added = 0
    for _, row in df.iterrows():
        iso_code = (_text(row, "iso_code") or "").upper()
        name = _text(row, "name")
        if not iso_code or not name or iso_code in existing:
            continue
        db.session.add(Country(
            name=name,
            iso_code=iso_code,
            flag=_text(row, "flag"),
            phonecode=_text(row, "phonecode"),
            currency=_text(row, "currency"),
            latitude=_text(row, "latitude"),
            longitude=_text(row, "longitude"),
        ))
        existing.add(iso_code)
        added += 1
    db.session.commit()
    return added


def import_states(df):
    existing = {(s.country_code, s.iso_code) for s in State.query.with_entities(State.country_code, State.iso_code)}
    added = 0
    for _, row in df.iterrows():
        key = ((_text(row, "country_code") or "").upper(), (_text(row, "iso_code") or "").upper())
        name = _text(row, "name")
        if not all(key) or not name or key in existing:
            continue
        db.session.add(State(name=name, country_code=key[0], iso_code=key[1]))
        existing.add(key)
        added += 1
    db.session.commit()
    return added


def import_cities(df):
    added = 0
    for _, row in df.iterrows():
        name = _text(row, "name")
        country_code = (_text(row, "country_code") or "").upper()
        state_code = (_text(row, "state_code") or "").upper()
        if not name or not country_code or not state_code:
            continue
        db.session.add(City(name=name, country_code=country_code, state_code=state_code))
        added += 1
    db.session.commit()
    return added
