"""
Synchronization engine package
"""

from .solar_sync_engine import SolarSyncEngine, PipelineState

__all__ = [
    "SolarSyncEngine",
    "PipelineState",
]
