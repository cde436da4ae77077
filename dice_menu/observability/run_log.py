"""
Run Log for menu generation sessions.

Captures configuration loads, dice rolls made on the user's behalf, and
every resolution with its outcome, so a session can be reviewed afterwards.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Optional
import json
import logging

logger = logging.getLogger(__name__)


class EventType(str, Enum):
    """Types of events that can be logged."""

    CONFIG_LOAD = "config_load"  # Menu data load attempt
    ROLL = "roll"  # Dice roll
    RESOLUTION = "resolution"  # Genre + dice resolved to a menu or failure


@dataclass
class LogEvent:
    """Base class for all logged events."""

    # Subclasses set the correct value in __post_init__
    event_type: Optional[EventType] = None
    timestamp: datetime = field(default_factory=datetime.now)
    sequence_number: int = 0
    context: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "event_type": self.event_type.value,
            "timestamp": self.timestamp.isoformat(),
            "sequence_number": self.sequence_number,
            "context": self.context,
        }

    def __str__(self) -> str:
        return f"[{self.sequence_number}] {self.event_type.value.upper()} {self.context}"


@dataclass
class ConfigLoadEvent(LogEvent):
    """A menu data load attempt."""

    source: str = ""
    success: bool = False
    genres_loaded: int = 0
    failure_kind: Optional[str] = None
    errors: list[str] = field(default_factory=list)

    def __post_init__(self):
        self.event_type = EventType.CONFIG_LOAD

    def to_dict(self) -> dict[str, Any]:
        base = super().to_dict()
        base.update(
            {
                "source": self.source,
                "success": self.success,
                "genres_loaded": self.genres_loaded,
                "failure_kind": self.failure_kind,
                "errors": self.errors,
            }
        )
        return base

    def __str__(self) -> str:
        if self.success:
            return f"[{self.sequence_number}] LOAD {self.source}: {self.genres_loaded} genres"
        return f"[{self.sequence_number}] LOAD {self.source}: FAILED ({self.failure_kind}, {len(self.errors)} errors)"


@dataclass
class RollEvent(LogEvent):
    """A dice roll event."""

    notation: str = ""  # e.g., "2d6"
    rolls: list[int] = field(default_factory=list)  # Individual die results
    total: int = 0
    reason: str = ""  # Why this roll was made

    def __post_init__(self):
        self.event_type = EventType.ROLL

    def to_dict(self) -> dict[str, Any]:
        base = super().to_dict()
        base.update(
            {
                "notation": self.notation,
                "rolls": self.rolls,
                "total": self.total,
                "reason": self.reason,
            }
        )
        return base

    def __str__(self) -> str:
        return f"[{self.sequence_number}] ROLL {self.notation}: {self.rolls} = {self.total} ({self.reason})"


@dataclass
class ResolutionEvent(LogEvent):
    """A genre and its dice resolved into a menu or a failure."""

    genre: str = ""
    dice_results: list[Any] = field(default_factory=list)
    success: bool = False
    failure_kind: Optional[str] = None
    result_text: str = ""
    judge: Optional[int] = None  # d100 judgement roll, for genres that use one

    def __post_init__(self):
        self.event_type = EventType.RESOLUTION

    def to_dict(self) -> dict[str, Any]:
        base = super().to_dict()
        base.update(
            {
                "genre": self.genre,
                "dice_results": self.dice_results,
                "success": self.success,
                "failure_kind": self.failure_kind,
                "result_text": self.result_text,
                "judge": self.judge,
            }
        )
        return base

    def __str__(self) -> str:
        outcome = self.result_text.splitlines()[0] if self.success and self.result_text else self.failure_kind
        judge = f" judge={self.judge}" if self.judge is not None else ""
        return f"[{self.sequence_number}] RESOLVE {self.genre} {self.dice_results}{judge}: {outcome}"


class RunLog:
    """
    Central run log for a menu session.

    Singleton pattern - use get_run_log() to access.
    """

    _instance: Optional["RunLog"] = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self):
        if self._initialized:
            return
        self._initialized = True
        self._events: list[LogEvent] = []
        self._sequence: int = 0
        self._seed: Optional[int] = None
        self._session_start: datetime = datetime.now()
        self._subscribers: list[Callable[[LogEvent], None]] = []

    def reset(self) -> None:
        """Reset the log for a new session."""
        self._events = []
        self._sequence = 0
        self._seed = None
        self._session_start = datetime.now()
        logger.debug("RunLog reset")

    def set_seed(self, seed: int) -> None:
        """Record the RNG seed used for this session."""
        self._seed = seed
        logger.info(f"RunLog seed set: {seed}")

    def get_seed(self) -> Optional[int]:
        """Get the RNG seed for this session."""
        return self._seed

    def subscribe(self, callback: Callable[[LogEvent], None]) -> None:
        """Subscribe to receive events as they are logged."""
        self._subscribers.append(callback)

    def unsubscribe(self, callback: Callable[[LogEvent], None]) -> None:
        """Unsubscribe from events."""
        if callback in self._subscribers:
            self._subscribers.remove(callback)

    def _log_event(self, event: LogEvent) -> None:
        self._sequence += 1
        event.sequence_number = self._sequence
        self._events.append(event)

        for subscriber in self._subscribers:
            try:
                subscriber(event)
            except Exception as e:
                logger.warning(f"Subscriber error: {e}")

    def log_config_load(
        self,
        source: str,
        success: bool,
        genres_loaded: int = 0,
        failure_kind: Optional[str] = None,
        errors: Optional[list[str]] = None,
    ) -> ConfigLoadEvent:
        """Log a menu data load attempt."""
        event = ConfigLoadEvent(
            source=source,
            success=success,
            genres_loaded=genres_loaded,
            failure_kind=failure_kind,
            errors=list(errors or []),
        )
        self._log_event(event)
        return event

    def log_roll(
        self,
        notation: str,
        rolls: list[int],
        total: int,
        reason: str = "",
        context: Optional[dict[str, Any]] = None,
    ) -> RollEvent:
        """Log a dice roll."""
        event = RollEvent(
            notation=notation,
            rolls=list(rolls),
            total=total,
            reason=reason,
            context=context or {},
        )
        self._log_event(event)
        return event

    def log_resolution(
        self,
        genre: str,
        dice_results: list[Any],
        success: bool,
        failure_kind: Optional[str] = None,
        result_text: str = "",
        judge: Optional[int] = None,
    ) -> ResolutionEvent:
        """Log a resolution outcome."""
        event = ResolutionEvent(
            genre=genre,
            dice_results=list(dice_results),
            success=success,
            failure_kind=failure_kind,
            result_text=result_text,
            judge=judge,
        )
        self._log_event(event)
        return event

    def get_events(
        self,
        event_type: Optional[EventType] = None,
        since_sequence: int = 0,
    ) -> list[LogEvent]:
        """
        Get logged events.

        Args:
            event_type: Filter by event type (None = all)
            since_sequence: Only events after this sequence number

        Returns:
            List of events
        """
        events = [e for e in self._events if e.sequence_number > since_sequence]
        if event_type:
            events = [e for e in events if e.event_type == event_type]
        return events

    def get_rolls(self) -> list[RollEvent]:
        """Get all roll events."""
        return [e for e in self._events if isinstance(e, RollEvent)]

    def get_resolutions(self) -> list[ResolutionEvent]:
        """Get all resolution events."""
        return [e for e in self._events if isinstance(e, ResolutionEvent)]

    def get_event_count(self) -> int:
        """Get total number of logged events."""
        return len(self._events)

    def get_summary(self) -> dict[str, Any]:
        """Get a summary of the run log."""
        resolutions = self.get_resolutions()
        return {
            "session_start": self._session_start.isoformat(),
            "seed": self._seed,
            "total_events": len(self._events),
            "loads": len(self.get_events(EventType.CONFIG_LOAD)),
            "rolls": len(self.get_rolls()),
            "resolutions": len(resolutions),
            "failures": sum(1 for e in resolutions if not e.success),
            "last_sequence": self._sequence,
        }

    def to_dict(self) -> dict[str, Any]:
        """Serialize the entire log to a dictionary."""
        return {
            "session_start": self._session_start.isoformat(),
            "seed": self._seed,
            "sequence": self._sequence,
            "events": [e.to_dict() for e in self._events],
        }

    def to_json(self, indent: int = 2) -> str:
        """Serialize the log to JSON."""
        return json.dumps(self.to_dict(), indent=indent, default=str, ensure_ascii=False)

    def save(self, filepath: str) -> None:
        """Save the log to a file."""
        with open(filepath, "w", encoding="utf-8") as f:
            f.write(self.to_json())
        logger.info(f"RunLog saved to {filepath}")

    def format_log(
        self,
        event_types: Optional[list[EventType]] = None,
        max_events: Optional[int] = None,
    ) -> str:
        """
        Format the log as a human-readable string.

        Args:
            event_types: Filter by event types (None = all)
            max_events: Maximum number of events to include

        Returns:
            Formatted log string
        """
        lines = [
            "=== Run Log ===",
            f"Session: {self._session_start.isoformat()}",
            f"Seed: {self._seed if self._seed is not None else 'not set'}",
            f"Total Events: {len(self._events)}",
            "",
        ]

        events = self._events
        if event_types:
            events = [e for e in events if e.event_type in event_types]
        if max_events:
            events = events[-max_events:]

        for event in events:
            lines.append(str(event))

        return "\n".join(lines)


# Singleton access
_run_log: Optional[RunLog] = None


def get_run_log() -> RunLog:
    """Get the global RunLog instance."""
    global _run_log
    if _run_log is None:
        _run_log = RunLog()
    return _run_log


def reset_run_log() -> RunLog:
    """Reset and return the global RunLog instance."""
    log = get_run_log()
    log.reset()
    return log
