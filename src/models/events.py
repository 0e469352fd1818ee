"""
Event messages consumed by the synchronization engine's coordination loop
"""

from typing import Any, Dict, Optional
from pydantic import BaseModel, ConfigDict, Field

from .solar import AuthorizationState, Place, Placemark, ResolutionMode


class EngineEvent(BaseModel):
    model_config = ConfigDict(frozen=True)


class InitialResolution(EngineEvent):
    """First resolution cycle, posted when the engine starts"""


class AuthorizationChanged(EngineEvent):
    state: AuthorizationState


class PlacemarkUpdated(EngineEvent):
    placemark: Optional[Placemark] = None


class RequestDeviceLocation(EngineEvent):
    pass


class SelectPlace(EngineEvent):
    place: Place


class SearchPlace(EngineEvent):
    text: str


class Refresh(EngineEvent):
    pass


class SetResolutionMode(EngineEvent):
    mode: ResolutionMode


class SettingsChanged(EngineEvent):
    changes: Dict[str, Any] = Field(default_factory=dict)
