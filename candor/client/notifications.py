from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable

from loguru import logger

DEFAULT = "default"
DESTRUCTIVE = "destructive"


@dataclass(frozen=True)
class Notification:
    title: str
    description: str | None = None
    variant: str = DEFAULT

    @property
    def is_error(self) -> bool:
        return self.variant == DESTRUCTIVE


@dataclass
class Notifier:
    """Collects user-facing messages; listeners render them."""

    history: list[Notification] = field(default_factory=list)
    listeners: list[Callable[[Notification], None]] = field(default_factory=list)

    def notify(self, title: str, description: str | None = None, variant: str = DEFAULT) -> Notification:
        notification = Notification(title=title, description=description, variant=variant)
        self.history.append(notification)
        if notification.is_error:
            logger.warning("{title}: {description}", title=title, description=description)
        else:
            logger.info("{title}: {description}", title=title, description=description)
        for listener in self.listeners:
            listener(notification)
        return notification

    def error(self, title: str, description: str | None = None) -> Notification:
        return self.notify(title, description, DESTRUCTIVE)

    @property
    def last(self) -> Notification | None:
        return self.history[-1] if self.history else None
