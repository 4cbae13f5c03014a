import os
from dotenv import load_dotenv

load_dotenv()

class Config:
    DEBUG = os.getenv("FLASK_DEBUG", "1") == "1"
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", "sqlite:///printshop.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SECRET_KEY = os.getenv("SECRET_KEY", "change_me")

    # JWT
    JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "your-secret-key-change-in-production")
    JWT_ALGORITHM = "HS256"
    JWT_EXPIRATION_HOURS = int(os.getenv("JWT_EXPIRATION_HOURS", "24"))
    BCRYPT_ROUNDS = int(os.getenv("BCRYPT_ROUNDS", "12"))

    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "*")

    # Seller identity printed on invoices when no company profile exists
    BUSINESS_NAME = os.getenv("BUSINESS_NAME", "Aavkar Graphics")
    BUSINESS_ADDRESS = os.getenv("BUSINESS_ADDRESS", "G-28, Silver Business Point, Utran, Mota Varachha, Surat.")
    BUSINESS_PHONE = os.getenv("BUSINESS_PHONE", "8980915579")
    BUSINESS_EMAIL = os.getenv("BUSINESS_EMAIL", "aavkargraphics@gmail.com")

    INVOICE_NUMBER_RETRIES = int(os.getenv("INVOICE_NUMBER_RETRIES", "3"))
    DEFAULT_PAGE_SIZE = int(os.getenv("DEFAULT_PAGE_SIZE", "10"))
    MAX_PAGE_SIZE = int(os.getenv("MAX_PAGE_SIZE", "100"))


class TestConfig(Config):
    TESTING = True
    DEBUG = False
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    JWT_SECRET_KEY = "test-secret"
    BCRYPT_ROUNDS = 4
    LOG_LEVEL = "WARNING"
