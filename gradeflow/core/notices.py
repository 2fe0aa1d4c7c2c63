"""User-visible notices and the channel that fans them out to subscribers."""

from dataclasses import dataclass
from enum import Enum
from typing import Callable, List


class NoticeLevel(str, Enum):
    SUCCESS = "success"
    ERROR = "error"


@dataclass(frozen=True)
class Notice:
    level: NoticeLevel
    message: str


class NoticeChannel:
    def __init__(self):
        self._subscribers: List[Callable[[Notice], None]] = []

    def subscribe(self, callback: Callable[[Notice], None]) -> Callable[[], None]:
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def publish(self, notice: Notice) -> Notice:
        for callback in list(self._subscribers):
            callback(notice)
        return notice

    def success(self, message: str) -> Notice:
        return self.publish(Notice(NoticeLevel.SUCCESS, message))

    def error(self, message: str) -> Notice:
        return self.publish(Notice(NoticeLevel.ERROR, message))
