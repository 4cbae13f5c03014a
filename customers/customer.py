from datetime import datetime
from sqlalchemy import false
from src.extensions import db
import pandas as pd


class Customer(db.Model):
    __tablename__ = "customers"

    id = db.Column(db.Integer, primary_key=True)

    # Contact name
    name = db.Column(db.String(50), nullable=False)

    # Email Address (unique among active customers, stored lower-case)
    email = db.Column(db.String(255), nullable=False)

    phone = db.Column(db.String(20), nullable=True)
    company = db.Column(db.String(100), nullable=True)

    # GST / Tax Number
    gst_no = db.Column(db.String(15), nullable=True)

    address = db.Column(db.Text, nullable=True)
    city = db.Column(db.String(100), nullable=True)

    # Notes / Special Instructions
    notes = db.Column(db.String(1000), nullable=True)

    is_deleted = db.Column(db.Boolean, default=False, nullable=False)

    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "phone": self.phone,
            "company": self.company,
            "gst_no": self.gst_no,
            "address": self.address,
            "city": self.city,
            "notes": self.notes,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }

    @classmethod
    def active(cls):
        return cls.query.filter(cls.is_deleted.is_(False))

    @classmethod
    def bulk_import(cls, df):
        results = []
        success_count = 0

        for index, row in df.iterrows():
            try:
                email = str(row['email']).strip().lower() if pd.notna(row['email']) else ""
                name = str(row['name']).strip() if pd.notna(row['name']) else ""
                if not name or not email:
                    results.append({"row": index + 1, "status": "error", "error": "name and email are required"})
                    continue

                if cls.active().filter_by(email=email).first():
                    results.append({
                        "row": index + 1,
                        "status": "error",
                        "error": "Email already exists"
                    })
                    continue

                customer_data = {'name': name, 'email': email}

                phone_value = row.get('phone')
                if phone_value is not None and pd.notna(phone_value):
                    # Numeric cells come back as floats
                    customer_data['phone'] = str(int(phone_value)) if isinstance(phone_value, (int, float)) else str(phone_value)

                for field in ['company', 'gst_no', 'address', 'city', 'notes']:
                    if field in row and pd.notna(row[field]):
                        customer_data[field] = str(row[field])

                customer = cls(**customer_data)
                db.session.add(customer)
                db.session.commit()

                results.append({
                    "row": index + 1,
                    "status": "success",
                    "customer_id": customer.id,
                    "name": customer.name,
                    "email": customer.email
                })
                success_count += 1

            except Exception as e:
                db.session.rollback()
                results.append({
                    "row": index + 1,
                    "status": "error",
                    "error": str(e)
                })

        return results, success_count


db.Index(
    "uq_customers_email_active",
    Customer.email,
    unique=True,
    sqlite_where=Customer.is_deleted == false(),
    postgresql_where=Customer.is_deleted == false(),
)
