"""
Observability for the Dice Menu tool.

Records configuration loads, rolls and resolutions for a session.
"""

from dice_menu.observability.run_log import (
    RunLog,
    LogEvent,
    EventType,
    ConfigLoadEvent,
    RollEvent,
    ResolutionEvent,
    get_run_log,
    reset_run_log,
)

__all__ = [
    "RunLog",
    "LogEvent",
    "EventType",
    "ConfigLoadEvent",
    "RollEvent",
    "ResolutionEvent",
    "get_run_log",
    "reset_run_log",
]
