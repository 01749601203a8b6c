"""
Services Module

Key Submodules:
- catalog: Application catalog lookups (ports, images, persisted dirs)
- events: Best-effort audit/event sink
- orchestration.kubernetes: StatefulSet synthesis and reconciliation
"""

from .catalog import AppCatalog, StaticAppCatalog, CatalogError
from .events import EventRecorder, EVENT_REASON_NO_EVENT

__all__ = [
    "AppCatalog",
    "StaticAppCatalog",
    "CatalogError",
    "EventRecorder",
    "EVENT_REASON_NO_EVENT",
]
