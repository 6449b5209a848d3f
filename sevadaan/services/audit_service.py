# sevadaan/services/audit_service.py

from typing import Any, Dict, Optional

from fastapi.encoders import jsonable_encoder
from sqlalchemy.ext.asyncio import AsyncSession

from sevadaan.models.audit import AuditLog
from sevadaan.models.user import User


def record_audit(
    session: AsyncSession,
    actor: Optional[User],
    action: str,
    resource_type: str,
    resource_id: Any = None,
    remarks: Optional[str] = None,
    details: Optional[Dict[str, Any]] = None,
) -> AuditLog:
    """
    Adds an audit entry to the caller's session. It is committed (or
    rolled back) together with the change it describes.
    """
    entry = AuditLog(
        actor_id=actor.id if actor else None,
        actor_role=actor.role.value if actor else None,
        actor_name=actor.name if actor else None,
        action=action,
        resource_type=resource_type,
        resource_id=str(resource_id) if resource_id is not None else None,
        remarks=remarks,
        details=jsonable_encoder(details or {}),
    )
    session.add(entry)
    return entry
