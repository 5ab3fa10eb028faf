import os
from dotenv import load_dotenv

load_dotenv()


class Config:
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-key-change-me")
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", "postgresql://localhost:5432/shubo"
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = {
        "connect_args": {"connect_timeout": 5},
    }

    # Upload settings
    MAX_CONTENT_LENGTH = 16 * 1024 * 1024  # CSV files are small

    # Daily record edits within this window (seconds) coalesce into one write
    RECORD_WRITE_DELAY = float(os.environ.get("RECORD_WRITE_DELAY", "1.0"))
    DEFAULT_TIME_SLOT = os.environ.get("DEFAULT_TIME_SLOT", "")

    SCHEDULER_ENABLED = os.environ.get("SCHEDULER_ENABLED", "true").lower() != "false"


class TestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    SQLALCHEMY_ENGINE_OPTIONS = {}
    SCHEDULER_ENABLED = False
    RECORD_WRITE_DELAY = 0.5
