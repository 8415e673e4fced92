"""
Account event log: logins, registrations, refreshes, logouts, password resets.
Only the event, user id, client address and outcome are stored; never tokens or passwords.
GET /audit lists recent events (development only).
"""
from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from identity_provider.database import get_db
from identity_provider.models import AuditLog

EVENT_LOGIN_OK = "login_ok"
EVENT_LOGIN_FAIL = "login_fail"
EVENT_REGISTER = "register"
EVENT_TOKEN_REFRESHED = "token_refreshed"
EVENT_REFRESH_FAIL = "refresh_fail"
EVENT_LOGOUT = "logout"
EVENT_RESET_REQUESTED = "reset_requested"
EVENT_PASSWORD_RESET = "password_reset"

OUTCOME_SUCCESS = "success"
OUTCOME_FAIL = "fail"

_MAX_ROWS = 500


def client_address(request: Request | None) -> str | None:
    """Peer address of the request; X-Forwarded-For is ignored."""
    client = request.client if request is not None else None
    return client.host if client is not None else None


def record_event(
    db: Session,
    event_type: str,
    request: Request | None = None,
    *,
    user_id: int | None = None,
    outcome: str = OUTCOME_SUCCESS,
) -> None:
    db.add(AuditLog(event_type=event_type, user_id=user_id, ip=client_address(request), outcome=outcome))
    db.commit()


def _as_dict(row: AuditLog) -> dict:
    return {
        "created_at": row.created_at.isoformat() if row.created_at else None,
        "event_type": row.event_type,
        "user_id": row.user_id,
        "ip": row.ip,
        "outcome": row.outcome,
    }


router = APIRouter(tags=["audit"])


@router.get("/audit")
def list_events(
    limit: int = 100,
    event_type: str | None = None,
    outcome: str | None = None,
    user_id: int | None = None,
    db: Session = Depends(get_db),
):
    """Most recent events first, optionally filtered."""
    query = db.query(AuditLog)
    for column, value in ((AuditLog.event_type, event_type), (AuditLog.outcome, outcome), (AuditLog.user_id, user_id)):
        if value is not None:
            query = query.filter(column == value)
    rows = query.order_by(AuditLog.id.desc()).limit(max(1, min(limit, _MAX_ROWS))).all()
    return [_as_dict(r) for r in rows]
