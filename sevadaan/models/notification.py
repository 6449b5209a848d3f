# sevadaan/models/notification.py

import uuid
from datetime import datetime
from typing import Dict, Optional

from sqlmodel import SQLModel, Field, Column
from sqlalchemy import JSON, Boolean, String, Text, Uuid

from sevadaan.models.common import created_column, enum_column, utcnow
from sevadaan.models.enums import NotificationType


class Notification(SQLModel, table=True):
    __tablename__ = "notifications"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        sa_column=Column(Uuid, primary_key=True)
    )
    user_id: uuid.UUID = Field(sa_column=Column(Uuid, nullable=False, index=True))

    title: str = Field(sa_column=Column(String(200), nullable=False))
    message: str = Field(sa_column=Column(Text, nullable=False))
    type: NotificationType = Field(
        default=NotificationType.General,
        sa_column=enum_column(NotificationType, "notification_type")
    )
    read: bool = Field(default=False, sa_column=Column(Boolean, nullable=False, default=False, index=True))
    action_url: Optional[str] = Field(default=None, sa_column=Column(String, nullable=True))
    extra: Dict = Field(default_factory=dict, sa_column=Column(JSON, nullable=False, default=dict))

    created_at: datetime = Field(default_factory=utcnow, sa_column=created_column())
