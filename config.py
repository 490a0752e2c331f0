"""
    Configuration and Constants
"""

import logging
import os

from dotenv import load_dotenv

# Load environment variables
load_dotenv()

# --------------- Configuration from environment variables --------------
# Default to local SQLite, but allow override (e.g. Postgres)
DB_URL = os.getenv("DATABASE_URL", "sqlite:///goalpulse.db")

# Receipt images go to S3 when a bucket is configured, else to local disk
S3_BUCKET = os.environ.get("S3_BUCKET")
AWS_REGION = os.environ.get("AWS_REGION", "us-east-1")
LOCAL_DATA_DIR = os.environ.get("GOALPULSE_DATA_DIR", "goalpulse_data")
RECEIPTS_FOLDER = "receipts"

TESSERACT_CMD = os.environ.get("TESSERACT_CMD")
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
# ------------------------------------------------------------------------

APP_NAME = "GoalPulse"

CATEGORIES = [
    "Food & Drinks",
    "Smoking / Alcohol",
    "Fuel / Gas",
    "Groceries",
    "Shopping / Clothes",
    "Bills & Utilities",
    "Taxi",
    "Health",
    "Entertainment",
    "Other Expenses",
]
UNCATEGORIZED = "Other Expenses"
RECEIPT_CATEGORY = "Food & Drinks"

# Seed rows written on first start
DEFAULT_GOAL = {
    "id": 1,
    "name": "House",
    "target": 22000.0,
    "saved": 1944.17,
    "monthly_contribution": 2000.0,
}
DEFAULT_SETTINGS = {
    "currency": "USD",
    "biometric_enabled": "false",
    "notifications_enabled": "true",
}


def setup_logging():
    """Setup logging configuration"""
    logging.basicConfig(
        level=LOG_LEVEL,
        format="[%(levelname)s] %(name)s: %(message)s",
        force=True,
    )
