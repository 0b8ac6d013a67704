"""Data access repositories."""

from dcmaint.repositories.attachment import AttachmentRepository
from dcmaint.repositories.report import CorrectiveReportRepository, MaintenanceDocumentRepository
from dcmaint.repositories.user import UserRepository

__all__ = [
    "AttachmentRepository",
    "CorrectiveReportRepository",
    "MaintenanceDocumentRepository",
    "UserRepository",
]
