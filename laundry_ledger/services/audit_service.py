import logging
from typing import Optional

from sqlalchemy import inspect
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from laundry_ledger.models.audit_log import AuditLog
from laundry_ledger.models.client import Client


logger = logging.getLogger(__name__)


def _ledger_context(entity) -> tuple[str, Optional[int], Optional[int]]:
    """Return ``(entity_type, entity_id, client_id)`` for a ledger row.

    Rows deleted earlier in the request are described from whatever state
    was loaded before the delete.
    """
    state = inspect(entity)
    entity_type = type(entity).__name__
    identity = state.identity[0] if state.identity else state.dict.get("id")

    if isinstance(entity, Client):
        return entity_type, identity, identity

    if state.persistent:
        return entity_type, identity, getattr(entity, "client_id", None)
    return entity_type, identity, state.dict.get("client_id")


def log_action(
    db: Session,
    user_id: Optional[int],
    action: str,
    entity=None,
    details: str = None,
    entity_type: str = None,
    entity_id: int = None,
):
    """Record a staff action against a ledger row.

    Pass the row as ``entity`` and its type, id and owning client are taken
    from it. ``entity_type``/``entity_id`` are for actions with no row
    (auth events, rows already gone).
    """
    client_id = None
    if entity is not None:
        entity_type, entity_id, client_id = _ledger_context(entity)

    if not entity_type:
        raise ValueError("An audit entry needs an entity or an entity_type")

    if client_id is not None and entity_type != "Client":
        details = f"Client #{client_id} | {details}" if details else f"Client #{client_id}"

    try:
        db.add(
            AuditLog(
                user_id=user_id,
                action=action,
                entity_type=entity_type,
                entity_id=entity_id,
                details=details,
            )
        )
        db.commit()
    except SQLAlchemyError:
        # The ledger change is already committed; a lost audit row must not undo it
        logger.exception("Failed to write audit entry %s for %s %s", action, entity_type, entity_id)
        db.rollback()
        return

    logger.info("%s %s %s by user %s", action, entity_type, entity_id, user_id)


def log_auth_event(
    db: Session,
    action: str,
    email: str,
    user_id: Optional[int] = None,
    details: str = None
):
    message = f"Email: {email}"
    if details:
        message = f"{message} | {details}"

    log_action(
        db=db,
        user_id=user_id,
        action=action,
        entity_type="Auth",
        entity_id=user_id,
        details=message
    )
