"""
Pydantic models for derived alerts and notification authorization
"""

from datetime import datetime
from enum import Enum
from pydantic import BaseModel, ConfigDict, Field


class NotificationAuthorization(str, Enum):
    """Platform notification permission reported by the client"""

    NOT_DETERMINED = "not_determined"
    AUTHORIZED = "authorized"
    DENIED = "denied"


class ScheduledAlert(BaseModel):
    """A local alert derived from the current solar context"""

    model_config = ConfigDict(frozen=True)

    identifier: str = Field(..., description="Stable alert identifier")
    title: str = Field(..., description="Notification title")
    body: str = Field(..., description="Notification body")
    fire_at: datetime = Field(..., description="Instant the alert fires (aware)")
