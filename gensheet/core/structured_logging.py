"""Structured logging helpers.

Log context carries identifiers only. Prompt bodies, file contents and
checkpoint answers never go into log records.
"""

from typing import Any
from uuid import UUID


def build_log_context(
    *,
    user_id: UUID | str | None = None,
    org_id: UUID | str | None = None,
    route: str | None = None,
    method: str | None = None,
    checksheet_id: UUID | str | None = None,
    result_id: UUID | str | None = None,
) -> dict[str, Any]:
    """Return a log context dict suitable for `logger.info(..., extra=...)`."""
    context: dict[str, Any] = {}
    if user_id:
        context["user_id"] = str(user_id)
    if org_id:
        context["org_id"] = str(org_id)
    if route:
        context["route"] = route
    if method:
        context["method"] = method
    if checksheet_id:
        context["checksheet_id"] = str(checksheet_id)
    if result_id:
        context["result_id"] = str(result_id)
    return context
