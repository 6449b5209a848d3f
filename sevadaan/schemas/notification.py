from typing import Optional

from pydantic import BaseModel, Field

from sevadaan.core.permissions import Role
from sevadaan.models.enums import NotificationType


class BroadcastRequest(BaseModel):
    role: Role
    title: str = Field(min_length=1, max_length=200)
    message: str = Field(min_length=1, max_length=2000)
    type: NotificationType = NotificationType.General
    action_url: Optional[str] = None
