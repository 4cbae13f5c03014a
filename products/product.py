from datetime import datetime
from sqlalchemy import false
from src.extensions import db
from src.money import money_str, format_amount

PRODUCT_TYPES = ("product", "service")
TAX_RATES = (0, 5, 12, 18, 28)


class Product(db.Model):
    __tablename__ = "products"

    id = db.Column(db.Integer, primary_key=True)

    # Product / Service Name
    name = db.Column(db.String(100), nullable=False)

    # product | service
    type = db.Column(db.String(20), nullable=False, default="service")

    # Unit of Measure (Piece, Sheet, Hour, etc.)
    unit = db.Column(db.String(20), nullable=True)

    # GST slab
    tax_rate = db.Column(db.Integer, nullable=False, default=0)
    hsn_code = db.Column(db.String(20), nullable=True)

    # Item Code (unique among active products)
    code = db.Column(db.String(50), nullable=True)

    # Default selling rate
    price = db.Column(db.Numeric(14, 2), nullable=False, default=0)

    # Cost to produce one unit
    base_cost = db.Column(db.Numeric(14, 2), nullable=False, default=0)

    photo_url = db.Column(db.String(500), nullable=True)
    description = db.Column(db.String(500), nullable=True)
    is_active = db.Column(db.Boolean, default=True, nullable=False)
    is_deleted = db.Column(db.Boolean, default=False, nullable=False)

    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    @classmethod
    def active(cls):
        return cls.query.filter(cls.is_deleted.is_(False))

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "type": self.type,
            "unit": self.unit,
            "tax_rate": self.tax_rate,
            "hsn_code": self.hsn_code,
            "code": self.code,
            "price": money_str(self.price),
            "formatted_price": format_amount(self.price),
            "base_cost": money_str(self.base_cost),
            "photo_url": self.photo_url,
            "description": self.description,
            "is_active": self.is_active,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }


db.Index(
    "uq_products_code_active",
    Product.code,
    unique=True,
    sqlite_where=Product.is_deleted == false(),
    postgresql_where=Product.is_deleted == false(),
)
