"""Typed progress events pushed by the analysis pipeline."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, List, Optional

from .utils.logger import app_logger

PHASES = ("parsing", "detecting", "enriching", "saving")


@dataclass(frozen=True, slots=True)
class ProgressEvent:
    phase: str
    processed_files: int
    total_files: int
    processed_nodes: int
    total_nodes: Optional[int] = None
    current_file: Optional[str] = None


ProgressListener = Callable[[ProgressEvent], None]


class ProgressChannel:
    """Fan-out of progress events to any number of listeners.

    A listener that raises is logged and skipped; it never stops the run.
    """

    def __init__(self, listeners: Optional[List[ProgressListener]] = None):
        self.logger = app_logger.bind(component="progress")
        self._listeners: List[ProgressListener] = list(listeners or [])

    def subscribe(self, listener: ProgressListener) -> None:
        self._listeners.append(listener)

    def unsubscribe(self, listener: ProgressListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def publish(self, event: ProgressEvent) -> None:
        if event.phase not in PHASES:
            raise ValueError(f"Unknown progress phase: {event.phase}")
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception as e:
                self.logger.warning(f"Progress listener failed during {event.phase}: {e}")
