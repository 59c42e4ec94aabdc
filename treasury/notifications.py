from typing import List, NamedTuple, Protocol


class Notification(NamedTuple):
    title: str
    description: str = ""
    variant: str = "default"  # or "destructive"


class Notifier(Protocol):
    def notify(self, notification: Notification) -> None: ...


class CollectingNotifier:
    """Keeps notifications until someone drains them (tests, the UI)."""

    def __init__(self):
        self.pending: List[Notification] = []

    def notify(self, notification: Notification) -> None:
        self.pending.append(notification)

    def drain(self) -> List[Notification]:
        out, self.pending = self.pending, []
        return out
