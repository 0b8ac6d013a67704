"""SQLAlchemy ORM Models for dcmaint.

Pure database models using SQLAlchemy 2.0 declarative style.
"""

from dcmaint.models.orm.attachment import FileChunk, FileRecord
from dcmaint.models.orm.base import Base
from dcmaint.models.orm.report import CorrectiveReport, DocumentPhoto, MaintenanceDocument
from dcmaint.models.orm.user import User

__all__ = [
    # Base
    "Base",
    # Users
    "User",
    # Attachments
    "FileRecord",
    "FileChunk",
    # Reports
    "MaintenanceDocument",
    "DocumentPhoto",
    "CorrectiveReport",
]
