import os


class Config:
    """Base configuration"""

    SECRET_KEY = os.environ.get("FLASK_SECRET_KEY", "dev-secret-key")
    DATABASE_URL = os.environ.get("LOAN_CONTROL_DATABASE_URL")

    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = "Lax"

    LOG_FILE = os.environ.get("LOAN_CONTROL_LOG_FILE", "logs/loan_control.log")


class DevelopmentConfig(Config):
    DEBUG = True


class TestingConfig(Config):
    TESTING = True
    SECRET_KEY = "test-secret-key"
    DATABASE_URL = "sqlite:///:memory:"


class ProductionConfig(Config):
    DEBUG = False


config = {
    "development": DevelopmentConfig,
    "testing": TestingConfig,
    "production": ProductionConfig,
    "default": DevelopmentConfig,
}
