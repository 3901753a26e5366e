"""Reports router - execution statistics scoped to the caller."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from gensheet.core.deps import get_current_session, get_db
from gensheet.core.permissions import require_http
from gensheet.schemas.auth import UserSession
from gensheet.schemas.report import DashboardSummary, ReportSummary
from gensheet.services import analytics_service

router = APIRouter()


@router.get("/summary", response_model=ReportSummary)
def get_summary(
    days: int = Query(analytics_service.DEFAULT_TREND_DAYS, ge=1, le=90),
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """
    Completion rate, daily execution trend, category histogram and
    pass/fail breakdown over every result the caller may see.
    """
    require_http(session, "report", "view")
    return analytics_service.build_report_summary(db, session, days=days)


@router.get("/dashboard", response_model=DashboardSummary)
def get_dashboard(
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    require_http(session, "report", "view")
    return analytics_service.build_dashboard(db, session)
