# app/core/config.py
"""Environment-driven settings shared by the database, logging and query layers."""

import os
from dotenv import load_dotenv

load_dotenv()


def _env_flag(name: str, default: str = "true") -> bool:
    return os.getenv(name, default).lower() == "true"


# ===== DATABASES =====
# Config database: saved queries, request logs, execution logs.
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./query_builder_config.db")

# Target database: the relational data users build queries against.
TARGET_DATABASE_URL = os.getenv("TARGET_DATABASE_URL", "sqlite:///./query_builder_target.db")

# ===== APPLICATION =====
APPLICATION_ID = os.getenv("APPLICATION_ID", "Unknown")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
REQUEST_LOGGING = _env_flag("REQUEST_LOGGING")
SEED_SAMPLE_DATA = _env_flag("SEED_SAMPLE_DATA")

# ===== QUERY ENGINE =====
DEFAULT_PAGE_SIZE = int(os.getenv("DEFAULT_PAGE_SIZE", "50"))
MAX_PAGE_SIZE = int(os.getenv("MAX_PAGE_SIZE", "1000"))
SAMPLE_ROW_LIMIT = int(os.getenv("SAMPLE_ROW_LIMIT", "5"))

# ===== SAVED QUERIES =====
SAVED_QUERY_VERSION = os.getenv("SAVED_QUERY_VERSION", "1.0")
