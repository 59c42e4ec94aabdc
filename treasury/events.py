from typing import Callable, Dict, List, NamedTuple, Optional
from datetime import datetime

__all__ = [
    'Event', 'EventBus',
    'TRANSACTIONS_CHANGED', 'REPORT_GENERATED', 'SHEET_MANAGED',
    'LEVEL_UP', 'ACHIEVEMENT_UNLOCKED',
]

class Event(NamedTuple):
    name: str
    ts: str
    payload: dict

    @property
    def user_id(self) -> Optional[str]:
        return self.payload.get("user_id")

Handler = Callable[[Event, dict], dict]

class Subscription(NamedTuple):
    handler: Handler
    user_id: Optional[str]  # None: every user

    def accepts(self, event: Event) -> bool:
        return self.user_id is None or self.user_id == event.user_id

class EventBus:
    """Activity events of the dashboard users, dispatched in-process.

    A handler subscribed with a user_id only receives events whose payload
    carries the same "user_id"; several users may share one bus.
    """

    def __init__(self, clock: Callable[[], datetime] = datetime.now):
        self._subscriptions: Dict[str, List[Subscription]] = {}
        self._clock = clock

    def subscribe(self, name: str, handler: Handler, user_id: Optional[str] = None) -> None:
        self._subscriptions.setdefault(name, []).append(Subscription(handler, user_id))

    def unsubscribe(self, name: str, handler: Handler) -> None:
        subs = self._subscriptions.get(name)
        if subs:
            self._subscriptions[name] = [s for s in subs if s.handler != handler]

    def publish(self, name: str, payload: dict) -> List[dict]:
        subs = self._subscriptions.get(name)
        if not subs:
            return []

        event = Event(name=name, ts=self._clock().isoformat(), payload=payload)
        # snapshot: handlers may subscribe or unsubscribe while we dispatch
        return [s.handler(event, payload) for s in list(subs) if s.accepts(event)]

TRANSACTIONS_CHANGED = "TRANSACTIONS_CHANGED"
REPORT_GENERATED = "REPORT_GENERATED"
SHEET_MANAGED = "SHEET_MANAGED"
LEVEL_UP = "LEVEL_UP"
ACHIEVEMENT_UNLOCKED = "ACHIEVEMENT_UNLOCKED"
