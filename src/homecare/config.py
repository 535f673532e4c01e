"""Configuration constants for the HomeCare records core."""
from __future__ import annotations

import os
from typing import Dict, Tuple

from dotenv import load_dotenv

load_dotenv()

SQLITE_FILE_NAME = os.environ.get("HOMECARE_SQLITE", "homecare.db")
STORAGE_KEY = os.environ.get("HOMECARE_STORAGE_KEY", "homecare_state_v1")
LOG_PATH = os.environ.get("HOMECARE_LOG_PATH", "")
BACKUP_RETAIN = int(os.environ.get("HOMECARE_BACKUP_RETAIN", "7"))

DEFAULT_CURRENCY = "KES"
DEFAULT_BUDGET = 12000
DEFAULT_SETTINGS: Dict[str, str] = {
    "currency": DEFAULT_CURRENCY,
    "orgName": "HomeCare Orphanage",
    "orgAddress": "Nairobi, Kenya",
    "logoUrl": "",
    "primaryColor": "#111",
    "secondaryColor": "#2f6feb",
    "hoverColor": "#f2f2f2",
}

COLLECTION_NAMES: Tuple[str, ...] = (
    "children",
    "staff",
    "donations",
    "inventory",
    "health",
    "education",
    "attendance",
    "incidents",
    "meals",
    "schedule",
    "adoptions",
    "announcements",
)
# Names that are not record collections. Expenses are kept under ``finance``.
RESERVED_SECTIONS: Tuple[str, ...] = ("finance", "meta", "expenses")

PERIOD_FACTORS: Dict[str, int] = {"daily": 1, "weekly": 7, "monthly": 30, "yearly": 365}
AGE_BANDS: Tuple[Tuple[str, int, int | None], ...] = (
    ("0-5", 0, 5),
    ("6-10", 6, 10),
    ("11-15", 11, 15),
    ("16+", 16, None),
)
DONATION_TREND_MONTHS = 6
NEW_ADMISSION_MONTHS = 3
UPCOMING_SCHEDULE_LIMIT = 10

EXPORT_FILENAME_PREFIX = "homecare_report"

__all__ = [
    "SQLITE_FILE_NAME",
    "STORAGE_KEY",
    "LOG_PATH",
    "BACKUP_RETAIN",
    "DEFAULT_CURRENCY",
    "DEFAULT_BUDGET",
    "DEFAULT_SETTINGS",
    "COLLECTION_NAMES",
    "RESERVED_SECTIONS",
    "PERIOD_FACTORS",
    "AGE_BANDS",
    "DONATION_TREND_MONTHS",
    "NEW_ADMISSION_MONTHS",
    "UPCOMING_SCHEDULE_LIMIT",
    "EXPORT_FILENAME_PREFIX",
]
