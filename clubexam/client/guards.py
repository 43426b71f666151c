"""
Exam-page guards: context menu, clipboard and keyboard shortcut blocking.

These are UX nudges, not a security boundary. A UI that forwards its events
here can cancel the default action and show the returned message, but any
student with dev tools, a second device or a phone camera gets around all of
it. Anything that needs to be enforced belongs on the server.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Optional

from clubexam.client.api import ExamApiError, NetworkError

log = logging.getLogger(__name__)

KEYCODE_PRINT_SCREEN = 44
KEYCODE_I = 73
KEYCODE_J = 74
KEYCODE_F10 = 121
KEYCODE_F11 = 122
KEYCODE_F12 = 123

SCREENSHOT_MESSAGE = "Screenshots are not allowed during exam"


@dataclass
class KeyEvent:
    key: str = ""
    key_code: int = 0
    ctrl: bool = False
    meta: bool = False
    shift: bool = False
    alt: bool = False


@dataclass
class GuardVerdict:
    event_type: str
    message: Optional[str] = None
    level: str = "warning"
    blocked: bool = True


def classify_key(event: KeyEvent) -> Optional[GuardVerdict]:
    """Return a verdict for a blocked key combination, None if the key is allowed."""
    key = (event.key or "").lower()
    command = event.ctrl or event.meta
    windows = event.meta or key == "meta"

    if command and not event.shift and key in ("c", "x", "a", "p"):
        return GuardVerdict("shortcut_key", "This action is disabled during exam")

    # dev tools: F12, Ctrl+Shift+I, Ctrl+Shift+J
    if event.key_code == KEYCODE_F12 or key == "f12":
        return GuardVerdict("devtools_key")
    if command and event.shift and (event.key_code in (KEYCODE_I, KEYCODE_J) or key in ("i", "j")):
        return GuardVerdict("devtools_key")

    # PrtScn with or without Alt / Ctrl / Win
    if event.key_code == KEYCODE_PRINT_SCREEN or key == "printscreen":
        return GuardVerdict("screenshot_key", SCREENSHOT_MESSAGE, "error")

    # some laptops map Fn+F10 / Fn+F11 to screenshots
    if event.key_code in (KEYCODE_F10, KEYCODE_F11) or key in ("f10", "f11"):
        return GuardVerdict("screenshot_key", SCREENSHOT_MESSAGE, "error")

    # Win+Shift+S (snipping tool), Win+G (game bar recording)
    if windows and event.shift and key == "s":
        return GuardVerdict("screenshot_key", SCREENSHOT_MESSAGE, "error")
    if windows and key == "g":
        return GuardVerdict("screenshot_key", "Screen recording is not allowed during exam", "error")

    return None


class IntegrityGuard:
    """
    Turns UI events into toasts and (optionally) reports them to the server.

    notify(message, level) shows a toast; report(event_type, details) sends
    the event to the integrity log. Reporting is best-effort.
    """

    def __init__(
        self,
        notify: Callable[[str, str], None],
        report: Optional[Callable[[str, str], None]] = None,
    ):
        self.notify = notify
        self.report = report
        self.counts = {}

    def _record(self, verdict: GuardVerdict, details: str = "") -> bool:
        self.counts[verdict.event_type] = self.counts.get(verdict.event_type, 0) + 1
        if verdict.message:
            self.notify(verdict.message, verdict.level)
        if self.report is not None:
            try:
                self.report(verdict.event_type, details)
            except (ExamApiError, NetworkError) as e:
                log.warning("Could not report %s event: %s", verdict.event_type, e)
        return verdict.blocked

    def record(self, event_type: str, details: str = "") -> None:
        """Count and report an event without showing a toast."""
        self._record(GuardVerdict(event_type, blocked=False), details)

    def on_key(self, event: KeyEvent) -> bool:
        """True when the UI should cancel the key's default action."""
        verdict = classify_key(event)
        if verdict is None:
            return False
        return self._record(verdict, details=event.key or str(event.key_code))

    def on_context_menu(self) -> bool:
        return self._record(GuardVerdict("context_menu", "Right-click is disabled during exam"))

    def on_copy(self) -> bool:
        return self._record(GuardVerdict("copy", "Copying is disabled during exam"))

    def on_cut(self) -> bool:
        return self._record(GuardVerdict("cut"))

    def on_tab_hidden(self) -> None:
        self._record(
            GuardVerdict("tab_hidden", "Tab switch detected: this activity may be reported", "error", blocked=False)
        )

    def on_window_blur(self) -> None:
        self._record(GuardVerdict("window_blur", "Suspicious activity detected", "warning", blocked=False))
