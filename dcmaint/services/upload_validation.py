"""
Upload Validation Service.

Checks an upload's type, size and category before it reaches the
attachment store, and the inline photos carried by maintenance reports.
"""

import mimetypes
from pathlib import PurePath

from dcmaint.models.enums import FileCategory
from dcmaint.services.chunking import PayloadDecodeError, decode_data_url

ALLOWED_CONTENT_TYPES: frozenset[str] = frozenset(
    {
        "application/pdf",
        "application/vnd.ms-excel",
        "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        "application/msword",
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    }
)

GENERIC_CONTENT_TYPES = {"", "application/octet-stream", "binary/octet-stream"}

# Not every platform's mimetypes table knows the OOXML extensions
OFFICE_EXTENSION_TYPES = {
    ".pdf": "application/pdf",
    ".xls": "application/vnd.ms-excel",
    ".xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    ".doc": "application/msword",
    ".docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
}


class UploadValidationError(ValueError):
    """Exception raised when an upload is rejected."""

    def __init__(self, message: str, field: str | None = None, status_code: int = 422):
        self.field = field
        self.status_code = status_code
        super().__init__(message)


def guess_content_type(filename: str) -> str:
    """
    Guess content type from filename.

    Returns:
        MIME type string (defaults to 'application/octet-stream' if unknown)
    """
    suffix = PurePath(filename).suffix.lower()
    if suffix in OFFICE_EXTENSION_TYPES:
        return OFFICE_EXTENSION_TYPES[suffix]
    content_type, _ = mimetypes.guess_type(filename)
    return content_type or "application/octet-stream"


def resolve_content_type(filename: str, declared: str | None) -> str:
    """
    Pick the MIME type to validate and store.

    Browsers send application/octet-stream for types they do not know; in that
    case the type is guessed from the file name.
    """
    declared = (declared or "").split(";", 1)[0].strip().lower()
    if declared in GENERIC_CONTENT_TYPES:
        return guess_content_type(filename)
    return declared


def validate_content_type(content_type: str) -> None:
    """
    Raises:
        UploadValidationError: If the type is not PDF, Excel or Word
    """
    if content_type not in ALLOWED_CONTENT_TYPES:
        raise UploadValidationError(
            "Only PDF, Excel, and Word files are allowed",
            field="file",
            status_code=415,
        )


def validate_size(size: int, max_bytes: int) -> None:
    """
    Raises:
        UploadValidationError: If size exceeds max_bytes
    """
    if size > max_bytes:
        limit_mb = max_bytes // (1024 * 1024)
        raise UploadValidationError(
            f"File size must be less than {limit_mb}MB",
            field="file",
            status_code=413,
        )


def resolve_category(category: str, custom_category: str | None = None) -> tuple[str, str | None]:
    """
    Resolve the category stored on an attachment.

    Args:
        category: One of the fixed categories, or "Custom"
        custom_category: Free-text category used when category is "Custom"

    Returns:
        Tuple of (stored category, custom category or None)

    Raises:
        UploadValidationError: If the category is unknown or the custom name is blank
    """
    if category == FileCategory.CUSTOM.value:
        name = (custom_category or "").strip()
        if not name:
            raise UploadValidationError("Please enter a category name", field="custom_category")
        return name, name

    try:
        return FileCategory(category).value, None
    except ValueError:
        raise UploadValidationError(f"Unknown category: {category}", field="category") from None


def validate_photo_data(photo_data: str, max_chars: int, field: str = "photo_data") -> None:
    """
    Check an inline evidence photo.

    Photos are stored one per row, so the encoded data URL has to stay under
    the per-row ceiling.

    Raises:
        UploadValidationError: If the photo is not an image data URL, is too
            large, or its body is not valid base64
    """
    if not photo_data.startswith("data:image/"):
        raise UploadValidationError("Photo must be an image", field=field, status_code=415)
    if len(photo_data) >= max_chars:
        raise UploadValidationError(
            f"Photo must be smaller than {max_chars // 1024}KB once encoded",
            field=field,
            status_code=413,
        )
    try:
        decode_data_url(photo_data)
    except PayloadDecodeError as e:
        raise UploadValidationError("Photo data is not valid base64", field=field) from e
