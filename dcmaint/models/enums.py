"""
Enums for dcmaint models.
"""

from enum import Enum


class UserRole(str, Enum):
    """User roles for access control."""

    ADMIN = "admin"
    ENGINEER = "engineer"
    STANDBY_ENGINEER = "standby_engineer"


class CompanyType(str, Enum):
    """Company a user reports for."""

    NEUTRA = "neutra"
    BRI = "bri"


class AttachmentStatus(str, Enum):
    """Upload state of a chunked attachment."""

    UPLOADING = "uploading"  # Metadata written, chunks may be missing
    COMPLETED = "completed"  # Every chunk is durably written


class FileCategory(str, Enum):
    """Fixed attachment categories. CUSTOM means a free-text category."""

    DAILY_REPORT = "Laporan Harian"
    MONTHLY_REPORT = "Laporan Bulanan"
    TOOL_CHECKLIST = "Checklist Alat"
    PPE_CHECKLIST = "Checklist APD"
    PTW = "PTW"
    JSE = "JSE"
    MOP = "MOP"
    CUSTOM = "Custom"


class DocumentType(str, Enum):
    """Rendered format of a maintenance report."""

    EXCEL = "excel"
    PDF = "pdf"


class CorrectiveStatus(str, Enum):
    """Progress of a corrective maintenance report."""

    OPEN = "Open"
    IN_PROGRESS = "InProgress"
    RESOLVED = "Resolved"


class DateRange(str, Enum):
    """Creation-date window used when browsing reports."""

    ALL = "all"
    TODAY = "today"
    WEEK = "week"
    MONTH = "month"
    CUSTOM = "custom"
