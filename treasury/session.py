from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable

from treasury.events import EventBus
from treasury.notifications import CollectingNotifier, Notifier
from treasury.store import KeyValueStore, user_key


@dataclass
class Session:
    """Everything an operation needs to know about the signed-in user.

    Passed explicitly to the ledger, tracker and services; the user id comes
    from whatever authentication provider sits in front of the dashboard.
    """

    user_id: str
    store: KeyValueStore
    name: str = ""
    email: str = ""
    bus: EventBus = field(default_factory=EventBus)
    notifier: Notifier = field(default_factory=CollectingNotifier)
    clock: Callable[[], datetime] = datetime.now
    key_prefix: str = ""

    def key(self, namespace: str) -> str:
        return user_key(namespace, self.user_id, self.key_prefix)
