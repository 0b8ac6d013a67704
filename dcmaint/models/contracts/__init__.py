"""Pydantic contracts (API request/response schemas)."""

from dcmaint.models.contracts.attachment import (
    AttachmentCreate,
    AttachmentList,
    AttachmentPublic,
    CategoryList,
    FileListSnapshot,
)
from dcmaint.models.contracts.auth import (
    LogoutResponse,
    TokenResponse,
    UserCreate,
    UserList,
    UserResponse,
    UserRoleUpdate,
    UserUpdate,
)
from dcmaint.models.contracts.common import ErrorResponse, HealthResponse
from dcmaint.models.contracts.report import (
    CorrectiveReportCreate,
    CorrectiveReportList,
    CorrectiveReportPublic,
    CorrectiveReportSnapshot,
    DocumentCreate,
    DocumentDetail,
    DocumentList,
    DocumentPublic,
    DocumentStats,
    PhotoCreate,
    PhotoPublic,
)

__all__ = [
    # Attachments
    "AttachmentCreate",
    "AttachmentList",
    "AttachmentPublic",
    "CategoryList",
    "FileListSnapshot",
    # Auth
    "LogoutResponse",
    "TokenResponse",
    "UserCreate",
    "UserList",
    "UserResponse",
    "UserRoleUpdate",
    "UserUpdate",
    # Common
    "ErrorResponse",
    "HealthResponse",
    # Reports
    "CorrectiveReportCreate",
    "CorrectiveReportList",
    "CorrectiveReportPublic",
    "CorrectiveReportSnapshot",
    "DocumentCreate",
    "DocumentDetail",
    "DocumentList",
    "DocumentPublic",
    "DocumentStats",
    "PhotoCreate",
    "PhotoPublic",
]
