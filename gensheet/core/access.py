"""Checksheet and result visibility - the query predicate behind every list/detail fetch.

Visibility rules:
- ADMIN: everything
- Checksheets: creator, or same organization
- Results: INSPECTOR sees own results only; SUPERVISOR/VIEWER see own
  results plus results of checksheets in their organization

The same predicate backs list queries (`*_scope`) and the in-memory
checks on already-loaded records (`can_view_*`), so a detail fetch
can never succeed where the list would have hidden the record.
"""

from sqlalchemy import or_, true
from sqlalchemy.sql.elements import ColumnElement

from gensheet.db.enums import Role
from gensheet.db.models import Checksheet, ChecksheetResult
from gensheet.schemas.auth import UserSession


def checksheet_scope(session: UserSession) -> ColumnElement[bool]:
    """Return the WHERE clause limiting checksheets to those visible to the user."""
    if session.role == Role.ADMIN:
        return true()

    clauses = [Checksheet.creator_id == session.user_id]
    if session.org_id is not None:
        clauses.append(Checksheet.organization_id == session.org_id)
    return or_(*clauses)


def result_scope(session: UserSession) -> ColumnElement[bool]:
    """
    Return the WHERE clause limiting results to those visible to the user.

    Callers must join ChecksheetResult.checksheet (the org clause reads
    Checksheet.organization_id).
    """
    if session.role == Role.ADMIN:
        return true()

    own = ChecksheetResult.inspector_id == session.user_id
    if session.role == Role.INSPECTOR:
        return own
    if session.org_id is None:
        return own
    return or_(own, Checksheet.organization_id == session.org_id)


def can_view_checksheet(session: UserSession, checksheet: Checksheet) -> bool:
    if session.role == Role.ADMIN:
        return True
    if checksheet.creator_id == session.user_id:
        return True
    return session.org_id is not None and checksheet.organization_id == session.org_id


def can_view_result(session: UserSession, result: ChecksheetResult) -> bool:
    if session.role == Role.ADMIN:
        return True
    if result.inspector_id == session.user_id:
        return True
    if session.role == Role.INSPECTOR or session.org_id is None:
        return False
    return result.checksheet.organization_id == session.org_id

