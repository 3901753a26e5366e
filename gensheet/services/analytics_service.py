"""Reporting aggregator - counts, rates, trends and histograms.

The aggregation functions are pure: they take records already fetched
through the visibility filter and make a single pass over them. The
`build_*` helpers do the scoped fetching for the report endpoints.
"""

from collections import Counter
from datetime import date, datetime, timedelta, timezone
from typing import Any, Iterable

from sqlalchemy.orm import Session, selectinload

from gensheet.core.access import checksheet_scope
from gensheet.db.enums import ChecksheetStatus, ResponseStatus, ResultStatus
from gensheet.db.models import Checksheet
from gensheet.schemas.auth import UserSession
from gensheet.services import result_service


DEFAULT_TREND_DAYS = 7
RECENT_CHECKSHEETS_LIMIT = 5


def _percent(part: int, whole: int) -> int:
    return round(part / whole * 100) if whole else 0


def _utc_date(value: datetime) -> date:
    """Calendar day in UTC; naive datetimes are taken as UTC."""
    if value.tzinfo is None:
        return value.date()
    return value.astimezone(timezone.utc).date()


# =============================================================================
# Pure aggregations
# =============================================================================

def summarize_results(results: Iterable[Any]) -> dict[str, int]:
    """Total / completed / in-progress counts and the completion rate (0-100)."""
    total = completed = in_progress = 0
    for result in results:
        total += 1
        if result.status == ResultStatus.COMPLETED.value:
            completed += 1
        elif result.status == ResultStatus.IN_PROGRESS.value:
            in_progress += 1
    return {
        "total": total,
        "completed": completed,
        "in_progress": in_progress,
        "completion_rate": _percent(completed, total),
    }


def daily_trend(
    results: Iterable[Any],
    days: int = DEFAULT_TREND_DAYS,
    today: date | None = None,
) -> list[dict[str, Any]]:
    """Executions per day for the trailing `days` days, oldest first, zero days included."""
    today = today or datetime.now(timezone.utc).date()
    start = today - timedelta(days=days - 1)

    counts: Counter = Counter()
    for result in results:
        day = _utc_date(result.created_at)
        if start <= day <= today:
            counts[day] += 1

    return [
        {"date": start + timedelta(days=offset), "executions": counts[start + timedelta(days=offset)]}
        for offset in range(days)
    ]


def category_histogram(checksheets: Iterable[Any]) -> list[dict[str, Any]]:
    """Checksheets per category, most common first; uncategorized ones are skipped."""
    counts = Counter(cs.category for cs in checksheets if cs.category)
    return [
        {"category": category, "count": count}
        for category, count in sorted(counts.items(), key=lambda item: (-item[1], item[0]))
    ]


def response_outcomes(responses: Iterable[Any]) -> dict[str, int]:
    """Response verdict counts; pass_rate is pass / (pass + fail)."""
    counts = Counter(r.status for r in responses)
    passed = counts[ResponseStatus.PASS.value]
    failed = counts[ResponseStatus.FAIL.value]
    return {
        "total": sum(counts.values()),
        "pass_count": passed,
        "fail_count": failed,
        "na_count": counts[ResponseStatus.NA.value],
        "pending_count": counts[ResponseStatus.PENDING.value],
        "pass_rate": _percent(passed, passed + failed),
    }


# =============================================================================
# Scoped reports
# =============================================================================

def build_report_summary(
    db: Session,
    session: UserSession,
    days: int = DEFAULT_TREND_DAYS,
    today: date | None = None,
) -> dict[str, Any]:
    checksheets = db.query(Checksheet).filter(checksheet_scope(session)).all()
    results = result_service.visible_results(db, session)
    responses = [response for result in results for response in result.responses]

    return {
        "checksheet_count": len(checksheets),
        "results": summarize_results(results),
        "trend": daily_trend(results, days=days, today=today),
        "categories": category_histogram(checksheets),
        "responses": response_outcomes(responses),
    }


def build_dashboard(db: Session, session: UserSession) -> dict[str, Any]:
    checksheets = (
        db.query(Checksheet)
        .options(selectinload(Checksheet.checkpoints))
        .filter(checksheet_scope(session))
        .order_by(Checksheet.created_at.desc())
        .all()
    )
    results = result_service.visible_results(db, session)

    return {
        "checksheet_count": len(checksheets),
        "active_checksheet_count": sum(
            1 for cs in checksheets if cs.status == ChecksheetStatus.ACTIVE.value
        ),
        "results": summarize_results(results),
        "recent_checksheets": [
            {
                "id": cs.id,
                "title": cs.title,
                "category": cs.category,
                "status": cs.status,
                "checkpoint_count": len(cs.checkpoints),
                "created_at": cs.created_at,
            }
            for cs in checksheets[:RECENT_CHECKSHEETS_LIMIT]
        ],
    }
