"""
Build lifecycle events

The Builder reports progress through a BuildObserver instead of bare
callbacks. Every hook is a no-op by default; observers override what they
need. Hooks are notifications only and cannot influence the build.
"""

from typing import Any, Dict, List, Sequence


class BuildObserver:
    """Receives build lifecycle events"""

    def on_before_compile(self, files: Sequence[str]) -> None:
        """Called once, before the first service file is read."""

    def on_compile(self, file: str) -> None:
        """Called once per processed service file."""

    def on_skip(self, file: str, reason: str) -> None:
        """Called for every file skipped because of ignore_errors."""

    def on_after_compile(self, files: Sequence[str], summary: Dict[str, Any]) -> None:
        """Called once after the container has been compiled."""


class CompositeObserver(BuildObserver):
    """Fans events out to several observers"""

    def __init__(self, *observers: BuildObserver):
        self.observers: List[BuildObserver] = list(observers)

    def on_before_compile(self, files):
        for observer in self.observers:
            observer.on_before_compile(files)

    def on_compile(self, file):
        for observer in self.observers:
            observer.on_compile(file)

    def on_skip(self, file, reason):
        for observer in self.observers:
            observer.on_skip(file, reason)

    def on_after_compile(self, files, summary):
        for observer in self.observers:
            observer.on_after_compile(files, summary)


class RecordingObserver(BuildObserver):
    """Keeps every event in order; handy for tests and scripted builds"""

    def __init__(self):
        self.events: List[tuple] = []

    def on_before_compile(self, files):
        self.events.append(('before_compile', list(files)))

    def on_compile(self, file):
        self.events.append(('compile', file))

    def on_skip(self, file, reason):
        self.events.append(('skip', file, reason))

    def on_after_compile(self, files, summary):
        self.events.append(('after_compile', list(files), dict(summary)))

    def names(self) -> List[str]:
        return [event[0] for event in self.events]
