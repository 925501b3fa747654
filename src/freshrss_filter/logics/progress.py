import logging
import threading
from typing import Optional

from freshrss_filter.models import ItemEvent, ProcessAction, RunOutcome
from freshrss_filter.utils.text import truncate

# Maximum length of titles in progress lines.
TITLE_MAX_LENGTH = 60

class RunStatus:
    """
    Thread-safe holder of the latest run summary.
    """
    def __init__(self, initial: str = "n/a"):
        self._lock = threading.Lock()
        self._value = initial

    def get(self) -> str:
        with self._lock:
            return self._value

    def set(self, value: str):
        with self._lock:
            self._value = value

class NullProgressReporter:
    """
    Progress reporter that ignores every event.
    """
    def run_started(self, total: int):
        pass

    def item_finished(self, event: ItemEvent):
        pass

    def run_finished(self, outcome: RunOutcome):
        pass

    def close(self):
        pass

class LoggingProgressReporter:
    """
    Progress reporter writing one log line per item and the run summary into a `RunStatus`.
    """
    _INDICATORS = {
        ProcessAction.KEPT: "[+]",
        ProcessAction.MARKED_READ: "[-]",
        ProcessAction.LABELED: "[-]",
        ProcessAction.DELETED: "[-]",
        ProcessAction.SKIPPED_EXISTS: "[=]",
        ProcessAction.WOULD_ACT: "[~]",
    }

    def __init__(self, status: Optional[RunStatus] = None):
        self.status = status or RunStatus()
        self._total = 0
        self._done = 0

    def run_started(self, total: int):
        self._total = total
        self._done = 0
        if total == 0:
            logging.info("No unread items")

    def item_finished(self, event: ItemEvent):
        self._done += 1
        title = truncate(event.title, TITLE_MAX_LENGTH)
        progress = f"{self._done}/{self._total}"
        if event.error is not None:
            logging.warning(f"[!] {progress} {title}: {event.error}")
        elif event.action is ProcessAction.SKIPPED_EXISTS:
            logging.debug(f"{self._INDICATORS[event.action]} {progress} {title}: {event.action.label}")
        else:
            logging.info(f"{self._INDICATORS[event.action]} {progress} {title}: {event.action.label}")

    def run_finished(self, outcome: RunOutcome):
        self.status.set(outcome.summary())

    def close(self):
        logging.info(f"Last run: {self.status.get()}")
