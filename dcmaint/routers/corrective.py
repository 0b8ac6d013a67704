"""
Corrective Reports Router

Provides endpoints for corrective maintenance reports:
- List and search reports
- Create (standby engineers only)
- Delete (the reporter or an admin)

Changes are announced on the "corrective_reports" topic for the live list.
"""

import logging
from uuid import UUID

from fastapi import APIRouter, HTTPException, Query, status

from dcmaint.config import get_settings
from dcmaint.core.auth import CurrentActiveUser, RequireStandbyEngineer
from dcmaint.core.database import DbSession
from dcmaint.core.pubsub import publish_corrective_changed
from dcmaint.models.contracts.report import (
    CorrectiveReportCreate,
    CorrectiveReportList,
    CorrectiveReportPublic,
)
from dcmaint.models.enums import CorrectiveStatus
from dcmaint.models.orm.report import CorrectiveReport
from dcmaint.repositories.report import CorrectiveReportRepository
from dcmaint.services.upload_validation import validate_photo_data

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/corrective-reports", tags=["corrective-reports"])


@router.get("", response_model=CorrectiveReportList)
async def list_corrective_reports(
    current_user: CurrentActiveUser,
    db: DbSession,
    report_status: CorrectiveStatus | None = Query(None, alias="status"),
    search: str | None = Query(None, description="Match on issue, action or location"),
    limit: int = Query(100, ge=1, le=1000),
    offset: int = Query(0, ge=0),
) -> CorrectiveReportList:
    """List corrective reports, newest first."""
    reports, total = await CorrectiveReportRepository(db).list_reports(
        status=report_status,
        search=search.strip() if search else None,
        limit=limit,
        offset=offset,
    )
    return CorrectiveReportList(
        items=[CorrectiveReportPublic.model_validate(r) for r in reports],
        total=total,
    )


@router.post("", response_model=CorrectiveReportPublic, status_code=status.HTTP_201_CREATED)
async def create_corrective_report(
    report_data: CorrectiveReportCreate,
    current_user: RequireStandbyEngineer,
    db: DbSession,
) -> CorrectiveReportPublic:
    """
    File a corrective maintenance report.

    Raises:
        UploadValidationError: If the photo is not an image or is too large
    """
    validate_photo_data(report_data.photo_data, get_settings().attachment_record_ceiling)

    report = await CorrectiveReportRepository(db).create(
        CorrectiveReport(
            **report_data.model_dump(),
            reported_by=current_user.user_id,
            reported_by_email=current_user.email,
        )
    )
    # Subscribers reload from the database, so the row must be visible first
    await db.commit()
    await publish_corrective_changed("created", report.id)

    logger.info(
        f"Corrective report filed at {report.location}",
        extra={"report_id": str(report.id), "user_id": str(current_user.user_id)},
    )
    return CorrectiveReportPublic.model_validate(report)


@router.delete("/{report_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_corrective_report(
    report_id: UUID,
    current_user: CurrentActiveUser,
    db: DbSession,
) -> None:
    """Delete a corrective report. Only its reporter or an admin may do so."""
    repo = CorrectiveReportRepository(db)
    report = await repo.get_by_id(report_id)
    if report is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Report not found")
    if report.reported_by != current_user.user_id and not current_user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only the reporter or an admin can delete this report",
        )

    await repo.delete(report)
    await db.commit()
    await publish_corrective_changed("deleted", report_id)

    logger.info(
        f"Deleted corrective report {report_id}",
        extra={"report_id": str(report_id), "user_id": str(current_user.user_id)},
    )
