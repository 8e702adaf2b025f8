import logging
from dataclasses import dataclass
from enum import IntEnum
from typing import Callable, List, Optional

logger = logging.getLogger("simulator")


class NotificationKind(IntEnum):
    START_TRIAL = 0
    START_RUN = 1
    START_WARMUP = 2
    END_WARMUP = 3
    START_CLOCK = 4
    ANIMATE = 5
    END_CLOCK = 6
    STOP_RUN = 7
    CONTINUE_RUN = 8
    BEFORE_RESET = 9
    END_RUN = 10
    RESET = 11
    END_TRIAL = 12
    ERROR = 13


@dataclass(frozen=True)
class Notification:
    """
    Progress message sent by the simulator to its observers. run is the
    0-based trial index and clock the tick the message refers to.
    """

    kind: NotificationKind
    run: int = 0
    clock: int = 0
    message: Optional[str] = None


Observer = Callable[[Notification], None]


class Observers:
    """
    Plain list of callables notified synchronously, in subscription order.
    An observer that raises is logged and does not stop the delivery.
    """

    def __init__(self):
        self._observers: List[Observer] = []

    def subscribe(self, observer: Observer):
        if observer not in self._observers:
            self._observers.append(observer)

    def unsubscribe(self, observer: Observer):
        if observer in self._observers:
            self._observers.remove(observer)

    def __len__(self):
        return len(self._observers)

    def notify(self, notification: Notification):
        for observer in list(self._observers):
            try:
                observer(notification)
            except Exception:
                logger.exception(
                    f"Observer {observer!r} failed handling {notification.kind.name}"
                )
