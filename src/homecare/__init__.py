"""HomeCare package for managing the records of a residential childcare home."""

from .charts import ChartBackend, ChartSpec, PlotlyBackend, dashboard_charts, load_backend, render_charts
from .exceptions import (
    CollectionError,
    HomeCareError,
    ImportFileError,
    RecordNotFoundError,
    RecordValidationError,
    SettingsError,
    StorageError,
)
from .forms import build_record
from .models import (
    AdoptionRecord,
    Announcement,
    AttendanceRecord,
    Child,
    Donation,
    EducationRecord,
    Expense,
    HealthRecord,
    IncidentReport,
    InventoryItem,
    MealEntry,
    ScheduleEntry,
    StaffMember,
    normalize_state,
)
from .money import format_currency
from .ops import BackupManager, StructuredLogger
from .persistence import StateStore
from .repository import StateRepository
from .seed import seed_state

__all__ = [
    "AdoptionRecord",
    "Announcement",
    "AttendanceRecord",
    "BackupManager",
    "ChartBackend",
    "ChartSpec",
    "Child",
    "CollectionError",
    "Donation",
    "EducationRecord",
    "Expense",
    "HealthRecord",
    "HomeCareError",
    "ImportFileError",
    "IncidentReport",
    "InventoryItem",
    "MealEntry",
    "PlotlyBackend",
    "RecordNotFoundError",
    "RecordValidationError",
    "ScheduleEntry",
    "SettingsError",
    "StaffMember",
    "StateRepository",
    "StateStore",
    "StorageError",
    "StructuredLogger",
    "build_record",
    "dashboard_charts",
    "format_currency",
    "load_backend",
    "normalize_state",
    "render_charts",
    "seed_state",
]
