#sevadaan/models/audit.py

from sqlmodel import SQLModel, Field
from sqlalchemy import JSON, Column, Uuid
from typing import Optional, Dict, Any
from uuid import UUID, uuid4
from datetime import datetime

from sevadaan.models.common import created_column, utcnow


class AuditLog(SQLModel, table=True):
    __tablename__ = "audit_logs"

    id: UUID = Field(default_factory=uuid4, sa_column=Column(Uuid, primary_key=True))
    actor_id: Optional[UUID] = Field(default=None, sa_column=Column(Uuid, nullable=True, index=True))
    actor_role: Optional[str] = None

    # Snapshot, survives user renames/deletes
    actor_name: Optional[str] = None

    action: str = Field(index=True)
    resource_type: str
    resource_id: Optional[str] = None
    remarks: Optional[str] = None

    details: Dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON))

    timestamp: datetime = Field(default_factory=utcnow, sa_column=created_column())
