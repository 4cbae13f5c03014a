from datetime import datetime
from src.extensions import db


class Company(db.Model):
    __tablename__ = "companies"

    id = db.Column(db.Integer, primary_key=True)

    # Business Information
    company_name = db.Column(db.String(100), nullable=False)
    company_legal_name = db.Column(db.String(200), nullable=False)
    gst_no = db.Column(db.String(15), nullable=True)

    # Logo & Branding
    logo_path = db.Column(db.String(500), nullable=True)

    # Contact Details
    primary_contact_number = db.Column(db.String(20), nullable=False)
    office_contact_number = db.Column(db.String(20), nullable=True)
    email = db.Column(db.String(255), nullable=False)
    website = db.Column(db.String(255), nullable=True)

    # Address Information
    company_address = db.Column(db.String(500), nullable=False)

    is_deleted = db.Column(db.Boolean, default=False, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    @classmethod
    def active(cls):
        return cls.query.filter(cls.is_deleted.is_(False))

    @classmethod
    def current(cls):
        """The profile printed as the seller on new invoices."""
        return cls.active().order_by(cls.id.asc()).first()

    def to_dict(self):
        return {
            "id": self.id,
            "company_name": self.company_name,
            "company_legal_name": self.company_legal_name,
            "gst_no": self.gst_no,
            "logo_path": self.logo_path,
            "primary_contact_number": self.primary_contact_number,
            "office_contact_number": self.office_contact_number,
            "email": self.email,
            "website": self.website,
            "company_address": self.company_address,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
