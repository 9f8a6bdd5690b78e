from fastapi import APIRouter, HTTPException, Depends, Query
from typing import List, Optional

from models import InsertReport, Report, ReportStatus, ReportUpdate, User, TargetType
from schemas.moderation import ReportCreate, ReportUpdateRequest
from storage import IStorage
from utils.route_helpers import get_storage, get_current_user, require_moderator, audit

router = APIRouter(prefix="/api/reports", tags=["moderation"])

@router.post("", response_model=Report, status_code=201)
def create_report(data: ReportCreate, current_user: User = Depends(get_current_user), storage: IStorage = Depends(get_storage)):
    return storage.create_report(InsertReport(reporter_id=current_user.id, **data.model_dump()))

@router.get("", response_model=List[Report])
def list_reports(
    status: Optional[ReportStatus] = None,
    limit: int = Query(100, ge=1, le=500),
    current_user: User = Depends(require_moderator),
    storage: IStorage = Depends(get_storage),
):
    return storage.get_reports(status=status, limit=limit)

@router.put("/{report_id}", response_model=Report)
def update_report(report_id: str, data: ReportUpdateRequest, current_user: User = Depends(require_moderator), storage: IStorage = Depends(get_storage)):
    report = storage.update_report(report_id, ReportUpdate(status=data.status, handled_by=current_user.id))
    if not report:
        raise HTTPException(status_code=404, detail="Report not found")
    audit(storage, "REPORT_HANDLED", current_user.id, TargetType.REPORT, report_id,
          metadata={"status": data.status.value})
    return report
