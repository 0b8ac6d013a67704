"""dcmaint Models.

ORM models (database tables):
    from dcmaint.models.orm import FileRecord, User

Pydantic contracts (API request/response):
    from dcmaint.models.contracts import AttachmentPublic

Enums:
    from dcmaint.models.enums import UserRole
"""

from dcmaint.models.contracts import (
    AttachmentCreate,
    AttachmentList,
    AttachmentPublic,
    ErrorResponse,
    HealthResponse,
    UserResponse,
)
from dcmaint.models.enums import (
    AttachmentStatus,
    CompanyType,
    CorrectiveStatus,
    DocumentType,
    FileCategory,
    UserRole,
)
from dcmaint.models.orm import (
    Base,
    CorrectiveReport,
    DocumentPhoto,
    FileChunk,
    FileRecord,
    MaintenanceDocument,
    User,
)

__all__ = [
    # Base
    "Base",
    # ORM models
    "User",
    "FileRecord",
    "FileChunk",
    "MaintenanceDocument",
    "DocumentPhoto",
    "CorrectiveReport",
    # Enums
    "UserRole",
    "CompanyType",
    "AttachmentStatus",
    "FileCategory",
    "DocumentType",
    "CorrectiveStatus",
    # Contracts
    "AttachmentCreate",
    "AttachmentList",
    "AttachmentPublic",
    "UserResponse",
    "ErrorResponse",
    "HealthResponse",
]
