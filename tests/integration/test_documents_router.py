"""
Integration tests for the maintenance documents API.

Covers:
- Recording exported reports with their photos
- Per-user listing and the admin view with search, type and date filters
- Dashboard totals
- Owner-or-admin access to a report and its deletion
"""

from datetime import UTC, datetime, timedelta
from unittest.mock import patch
from uuid import UUID, uuid4

import pytest
from httpx import AsyncClient
from sqlalchemy import func, select, update

from dcmaint.config import get_settings
from dcmaint.models.orm.report import DocumentPhoto, MaintenanceDocument

PHOTO = "data:image/jpeg;base64,/9j/4AAQSkZJRg=="


def document_payload(**overrides):
    payload = {
        "document_type": "pdf",
        "file_name": "PM_Genset_2026-10-18.pdf",
        "maintenance_name": "Preventive Genset",
        "maintenance_time": "2026-10-18T09:30:00",
        "specific_detail": "Genset 2",
        "file_size": 20480,
        "total_photos": 3,
        "photos": [
            {"index": 1, "photo_data": PHOTO, "description": "Oil level"},
            {"index": 3, "photo_data": PHOTO, "description": "Control panel"},
        ],
    }
    payload.update(overrides)
    return payload


async def create_document(client: AsyncClient, headers, **overrides) -> dict:
    response = await client.post("/api/documents", json=document_payload(**overrides), headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


@pytest.mark.integration
class TestCreateDocument:
    """Tests for POST /api/documents."""

    async def test_records_document_and_photos(self, client, engineer_headers, engineer_principal, db_session):
        data = await create_document(client, engineer_headers)

        assert data["document_type"] == "pdf"
        assert data["total_photos"] == 3
        assert data["photos_with_image"] == 2
        assert data["created_by"] == str(engineer_principal.user_id)
        assert data["created_by_email"] == engineer_principal.email
        # Naive times from the browser are stored as UTC
        assert datetime.fromisoformat(data["maintenance_time"]).replace(tzinfo=UTC) == datetime(
            2026, 10, 18, 9, 30, tzinfo=UTC
        )

        photos = await db_session.scalar(
            select(func.count(DocumentPhoto.id)).where(DocumentPhoto.document_id == UUID(data["id"]))
        )
        assert photos == 2

    async def test_blank_specific_detail_is_stored_as_none(self, client, engineer_headers):
        data = await create_document(client, engineer_headers, specific_detail="   ")

        assert data["specific_detail"] is None

    async def test_blank_maintenance_name_returns_422(self, client, engineer_headers):
        response = await client.post(
            "/api/documents", json=document_payload(maintenance_name="  "), headers=engineer_headers
        )

        assert response.status_code == 422

    async def test_duplicate_photo_position_returns_422(self, client, engineer_headers):
        photos = [{"index": 1, "photo_data": PHOTO}, {"index": 1, "photo_data": PHOTO}]

        response = await client.post(
            "/api/documents", json=document_payload(photos=photos), headers=engineer_headers
        )

        assert response.status_code == 422

    async def test_non_image_photo_returns_415(self, client, engineer_headers):
        photos = [{"index": 1, "photo_data": "data:application/pdf;base64,JVBERi0="}]

        response = await client.post(
            "/api/documents", json=document_payload(photos=photos), headers=engineer_headers
        )

        assert response.status_code == 415
        assert response.json()["details"] == {"field": "photos[0]"}

    async def test_oversized_photo_returns_413(self, client, engineer_headers):
        settings = get_settings()
        with patch.object(settings, "attachment_record_ceiling", 64):
            response = await client.post(
                "/api/documents",
                json=document_payload(photos=[{"index": 1, "photo_data": PHOTO + "A" * 64}]),
                headers=engineer_headers,
            )

        assert response.status_code == 413

    async def test_rejected_photo_records_nothing(self, client, engineer_headers, db_session):
        photos = [{"index": 1, "photo_data": PHOTO}, {"index": 2, "photo_data": "not-an-image"}]

        await client.post("/api/documents", json=document_payload(photos=photos), headers=engineer_headers)

        assert await db_session.scalar(select(func.count(MaintenanceDocument.id))) == 0

    async def test_unauthenticated_is_rejected(self, client):
        response = await client.post("/api/documents", json=document_payload())

        assert response.status_code == 401


@pytest.mark.integration
class TestListDocuments:
    """Tests for GET /api/documents."""

    async def test_engineer_sees_only_own_documents(self, client, engineer_headers, admin_headers):
        mine = await create_document(client, engineer_headers, file_name="mine.pdf")
        await create_document(client, admin_headers, file_name="theirs.pdf")

        response = await client.get("/api/documents", headers=engineer_headers)

        data = response.json()
        assert data["total"] == 1
        assert [d["id"] for d in data["items"]] == [mine["id"]]

    async def test_admin_sees_everyone(self, client, engineer_headers, admin_headers):
        await create_document(client, engineer_headers, file_name="mine.pdf")
        await create_document(client, admin_headers, file_name="theirs.pdf")

        response = await client.get("/api/documents", headers=admin_headers)

        assert response.json()["total"] == 2

    async def test_search_matches_name_and_creator(self, client, engineer_headers, admin_headers):
        await create_document(client, engineer_headers, maintenance_name="UPS Battery Check")
        await create_document(client, admin_headers, maintenance_name="Genset Run Test")

        by_name = await client.get("/api/documents", params={"search": "ups battery"}, headers=admin_headers)
        by_email = await client.get(
            "/api/documents", params={"search": "ENGINEER.session"}, headers=admin_headers
        )

        assert [d["maintenance_name"] for d in by_name.json()["items"]] == ["UPS Battery Check"]
        assert [d["maintenance_name"] for d in by_email.json()["items"]] == ["UPS Battery Check"]

    async def test_type_filter(self, client, admin_headers):
        await create_document(client, admin_headers, document_type="excel", file_name="pm.xlsx")
        await create_document(client, admin_headers, document_type="pdf", file_name="pm.pdf")

        excel = await client.get("/api/documents", params={"document_type": "excel"}, headers=admin_headers)
        every = await client.get("/api/documents", params={"document_type": "all"}, headers=admin_headers)

        assert [d["file_name"] for d in excel.json()["items"]] == ["pm.xlsx"]
        assert every.json()["total"] == 2

    async def test_date_filters_and_sort(self, client, admin_headers, db_session):
        recent = await create_document(client, admin_headers, file_name="recent.pdf")
        old = await create_document(client, admin_headers, file_name="old.pdf")
        await db_session.execute(
            update(MaintenanceDocument)
            .where(MaintenanceDocument.id == UUID(old["id"]))
            .values(created_at=datetime.now(UTC) - timedelta(days=10))
        )
        await db_session.commit()

        today = await client.get("/api/documents", params={"date_range": "today"}, headers=admin_headers)
        week = await client.get("/api/documents", params={"date_range": "week"}, headers=admin_headers)
        month = await client.get("/api/documents", params={"date_range": "month"}, headers=admin_headers)
        oldest = await client.get("/api/documents", params={"sort": "oldest"}, headers=admin_headers)

        assert [d["id"] for d in today.json()["items"]] == [recent["id"]]
        assert [d["id"] for d in week.json()["items"]] == [recent["id"]]
        assert month.json()["total"] == 2
        assert [d["id"] for d in oldest.json()["items"]] == [old["id"], recent["id"]]

    async def test_custom_range_includes_end_day(self, client, admin_headers, db_session):
        doc = await create_document(client, admin_headers)
        await db_session.execute(
            update(MaintenanceDocument)
            .where(MaintenanceDocument.id == UUID(doc["id"]))
            .values(created_at=datetime(2026, 3, 31, 23, 0, tzinfo=UTC))
        )
        await db_session.commit()

        inside = await client.get(
            "/api/documents",
            params={"date_range": "custom", "start_date": "2026-03-01", "end_date": "2026-03-31"},
            headers=admin_headers,
        )
        outside = await client.get(
            "/api/documents",
            params={"date_range": "custom", "start_date": "2026-04-01", "end_date": "2026-04-30"},
            headers=admin_headers,
        )

        assert inside.json()["total"] == 1
        assert outside.json()["total"] == 0

    async def test_inverted_custom_range_returns_422(self, client, admin_headers):
        response = await client.get(
            "/api/documents",
            params={"date_range": "custom", "start_date": "2026-04-30", "end_date": "2026-04-01"},
            headers=admin_headers,
        )

        assert response.status_code == 422


@pytest.mark.integration
class TestDocumentStats:
    """Tests for GET /api/documents/stats."""

    async def test_admin_gets_totals(self, client, admin_headers, engineer_headers):
        await create_document(client, engineer_headers, document_type="excel")
        await create_document(client, engineer_headers, document_type="pdf")
        await create_document(client, admin_headers, document_type="pdf")

        response = await client.get("/api/documents/stats", headers=admin_headers)

        assert response.status_code == 200
        assert response.json() == {
            "total_documents": 3,
            "total_excel": 1,
            "total_pdf": 2,
            "total_users": 2,
        }

    async def test_engineer_is_forbidden(self, client, engineer_headers):
        response = await client.get("/api/documents/stats", headers=engineer_headers)

        assert response.status_code == 403


@pytest.mark.integration
class TestGetAndDeleteDocument:
    """Tests for GET and DELETE /api/documents/{id}."""

    async def test_owner_gets_photos_in_position_order(self, client, engineer_headers):
        photos = [
            {"index": 3, "photo_data": PHOTO, "description": "third"},
            {"index": 1, "photo_data": PHOTO, "description": "first"},
        ]
        doc = await create_document(client, engineer_headers, photos=photos)

        response = await client.get(f"/api/documents/{doc['id']}", headers=engineer_headers)

        assert response.status_code == 200
        assert [p["description"] for p in response.json()["photos"]] == ["first", "third"]

    async def test_other_engineer_is_forbidden(self, client, admin_headers, engineer_headers):
        doc = await create_document(client, admin_headers)

        read = await client.get(f"/api/documents/{doc['id']}", headers=engineer_headers)
        removed = await client.delete(f"/api/documents/{doc['id']}", headers=engineer_headers)

        assert read.status_code == 403
        assert removed.status_code == 403

    async def test_owner_deletes_document_and_photos(self, client, engineer_headers, db_session):
        doc = await create_document(client, engineer_headers)

        response = await client.delete(f"/api/documents/{doc['id']}", headers=engineer_headers)

        assert response.status_code == 204
        assert await db_session.scalar(select(func.count(MaintenanceDocument.id))) == 0
        assert await db_session.scalar(select(func.count(DocumentPhoto.id))) == 0

    async def test_admin_deletes_any_document(self, client, engineer_headers, admin_headers):
        doc = await create_document(client, engineer_headers)

        response = await client.delete(f"/api/documents/{doc['id']}", headers=admin_headers)
        followup = await client.get(f"/api/documents/{doc['id']}", headers=engineer_headers)

        assert response.status_code == 204
        assert followup.status_code == 404

    async def test_unknown_document_returns_404(self, client, admin_headers):
        response = await client.delete(f"/api/documents/{uuid4()}", headers=admin_headers)

        assert response.status_code == 404
