import sys
import os
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from src.extensions import db
from src.logger import get_logger
# Import all model files
from models import User

logger = get_logger("setup")


def create_tables(drop=False):
    if drop:
        db.drop_all()
    db.create_all()
    logger.info("All tables created successfully")


def seed_admin(name, email, password):
    """Create the first admin account unless that email is already registered."""
    email = email.strip().lower()
    if User.query.filter_by(email=email).first():
        logger.info("Admin %s already exists", email)
        return None
    admin = User(name=name, email=email, role="admin", is_active=True)
    admin.set_password(password)
    db.session.add(admin)
    db.session.commit()
    logger.info("Admin %s created", email)
    return admin


if __name__ == "__main__":
    from src.main import create_app
    app = create_app()
    with app.app_context():
        create_tables(drop="--drop" in sys.argv)
        seed_admin(
            os.getenv("ADMIN_NAME", "Administrator"),
            os.getenv("ADMIN_EMAIL", "admin@example.com"),
            os.getenv("ADMIN_PASSWORD", "admin123"),
        )
