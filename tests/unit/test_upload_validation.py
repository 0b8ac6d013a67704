"""
Unit tests for upload validation.
"""

import pytest

from dcmaint.services.upload_validation import (
    ALLOWED_CONTENT_TYPES,
    UploadValidationError,
    guess_content_type,
    resolve_category,
    resolve_content_type,
    validate_content_type,
    validate_photo_data,
    validate_size,
)

MIB = 1024 * 1024


@pytest.mark.unit
class TestContentType:
    """Tests for content type resolution and validation."""

    @pytest.mark.parametrize(
        ("filename", "expected"),
        [
            ("report.pdf", "application/pdf"),
            ("checklist.XLSX", "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"),
            ("old.xls", "application/vnd.ms-excel"),
            ("mop.docx", "application/vnd.openxmlformats-officedocument.wordprocessingml.document"),
            ("ptw.doc", "application/msword"),
        ],
    )
    def test_guess_office_types(self, filename, expected):
        assert guess_content_type(filename) == expected

    def test_guess_unknown_defaults_to_octet_stream(self):
        assert guess_content_type("blob.unknownext") == "application/octet-stream"

    def test_declared_type_is_kept(self):
        assert resolve_content_type("x.bin", "application/pdf") == "application/pdf"

    def test_declared_type_parameters_are_dropped(self):
        assert resolve_content_type("x.pdf", "Application/PDF; charset=binary") == "application/pdf"

    @pytest.mark.parametrize("declared", [None, "", "application/octet-stream"])
    def test_generic_declared_type_falls_back_to_extension(self, declared):
        assert resolve_content_type("report.pdf", declared) == "application/pdf"

    @pytest.mark.parametrize("content_type", sorted(ALLOWED_CONTENT_TYPES))
    def test_allowed_types_pass(self, content_type):
        validate_content_type(content_type)

    @pytest.mark.parametrize("content_type", ["image/png", "text/plain", "application/zip"])
    def test_other_types_are_rejected_with_415(self, content_type):
        with pytest.raises(UploadValidationError) as exc_info:
            validate_content_type(content_type)

        assert exc_info.value.status_code == 415
        assert str(exc_info.value) == "Only PDF, Excel, and Word files are allowed"


@pytest.mark.unit
class TestValidateSize:
    """Tests for validate_size."""

    def test_at_limit_passes(self):
        validate_size(30 * MIB, 30 * MIB)

    def test_over_limit_is_rejected_with_413(self):
        with pytest.raises(UploadValidationError) as exc_info:
            validate_size(30 * MIB + 1, 30 * MIB)

        assert exc_info.value.status_code == 413
        assert "30MB" in str(exc_info.value)


@pytest.mark.unit
class TestResolveCategory:
    """Tests for resolve_category."""

    def test_fixed_category(self):
        assert resolve_category("Checklist APD") == ("Checklist APD", None)

    def test_fixed_category_ignores_custom_name(self):
        assert resolve_category("MOP", "ignored") == ("MOP", None)

    def test_custom_category_is_stored_as_category(self):
        assert resolve_category("Custom", "  Genset Logs ") == ("Genset Logs", "Genset Logs")

    @pytest.mark.parametrize("custom", [None, "", "   "])
    def test_custom_without_name_is_rejected(self, custom):
        with pytest.raises(UploadValidationError, match="Please enter a category name") as exc_info:
            resolve_category("Custom", custom)

        assert exc_info.value.status_code == 422
        assert exc_info.value.field == "custom_category"

    def test_unknown_category_is_rejected(self):
        with pytest.raises(UploadValidationError) as exc_info:
            resolve_category("Random")

        assert exc_info.value.field == "category"


@pytest.mark.unit
class TestValidatePhotoData:
    """Tests for inline report photos."""

    PHOTO = "data:image/jpeg;base64,/9j/4AAQSkZJRg=="

    def test_image_data_url_passes(self):
        validate_photo_data(self.PHOTO, max_chars=1024)

    @pytest.mark.parametrize(
        "photo",
        ["data:application/pdf;base64,JVBERi0=", "/9j/4AAQSkZJRg==", ""],
    )
    def test_non_image_is_rejected_with_415(self, photo):
        with pytest.raises(UploadValidationError) as exc_info:
            validate_photo_data(photo, max_chars=1024)

        assert exc_info.value.status_code == 415
        assert exc_info.value.field == "photo_data"

    def test_ceiling_is_exclusive(self):
        with pytest.raises(UploadValidationError) as exc_info:
            validate_photo_data(self.PHOTO, max_chars=len(self.PHOTO), field="photos[2]")

        assert exc_info.value.status_code == 413
        assert exc_info.value.field == "photos[2]"

    def test_invalid_base64_is_rejected_with_422(self):
        with pytest.raises(UploadValidationError) as exc_info:
            validate_photo_data("data:image/png;base64,not base64!", max_chars=1024)

        assert exc_info.value.status_code == 422
