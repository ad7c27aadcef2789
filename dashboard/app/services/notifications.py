import logging
from collections import deque
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Literal

logger = logging.getLogger(__name__)


@dataclass
class Notice:
    level: Literal["success", "error"]
    title: str
    message: str
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def as_dict(self) -> dict:
        return asdict(self)


class Notifier:
    """Bounded backlog of user-facing notices, drained by the page."""

    def __init__(self, backlog: int = 50) -> None:
        self._notices: deque[Notice] = deque(maxlen=backlog)

    def success(self, title: str, message: str) -> Notice:
        logger.info("%s: %s", title, message)
        return self._push(Notice("success", title, message))

    def error(self, title: str, message: str) -> Notice:
        logger.warning("%s: %s", title, message)
        return self._push(Notice("error", title, message))

    def _push(self, notice: Notice) -> Notice:
        self._notices.append(notice)
        return notice

    def peek(self) -> list[Notice]:
        return list(self._notices)

    def drain(self) -> list[Notice]:
        notices = list(self._notices)
        self._notices.clear()
        return notices
