"""Levels, XP and achievements of the signed-in user.

The tracker reacts to four kinds of activity (accessing the dashboard,
recording transactions, exporting reports, managing sheets). Each reaction
writes the stats and the achievement list back to the store before the
in-memory copy is replaced, so the store is never behind memory.
"""

import logging
from dataclasses import replace
from typing import Iterable, Tuple

from treasury.domain import Achievement, UserStats
from treasury.events import (
    ACHIEVEMENT_UNLOCKED,
    LEVEL_UP,
    REPORT_GENERATED,
    SHEET_MANAGED,
    TRANSACTIONS_CHANGED,
    Event,
)
from treasury.notifications import Notification
from treasury.session import Session
from treasury.store import (
    ACHIEVEMENTS,
    FIRST_ACCESS,
    LAST_ACCESS,
    REPORTS_GENERATED,
    STATS,
    TRANSACTIONS,
    read_int,
    read_json,
    write_json,
)

logger = logging.getLogger(__name__)

FIRST_STEPS = "1"
FINANCIAL_MANAGER = "2"
REPORT_MASTER = "3"
DEDICATED_USER = "4"
TREASURY_SPECIALIST = "5"

CATALOGUE: Tuple[Achievement, ...] = (
    Achievement(FIRST_STEPS, "First Steps", "Completed the first login",
                unlocked=True, progress=1, max_progress=1),
    Achievement(FINANCIAL_MANAGER, "Financial Manager", "Recorded more than 20 transactions",
                progress=0, max_progress=20),
    Achievement(REPORT_MASTER, "Report Master", "Generated more than 10 reports",
                progress=0, max_progress=10),
    Achievement(DEDICATED_USER, "Dedicated User", "Accessed the system on 30 days",
                progress=1, max_progress=30),
    Achievement(TREASURY_SPECIALIST, "Treasury Specialist", "Reached level 5",
                progress=1, max_progress=5),
)

XP_FIRST_ACCESS = 5
XP_DAILY_ACCESS = 5
XP_PER_TRANSACTION = 10
XP_PER_REPORT = 15
XP_PER_SHEET = 20


def advance(
    achievements: Iterable[Achievement], achievement_id: str, progress: int
) -> Tuple[Achievement, ...]:
    return tuple(a.advance(progress) if a.id == achievement_id else a for a in achievements)


def merge_with_catalogue(stored: Iterable[Achievement]) -> Tuple[Achievement, ...]:
    """Catalogue definitions with the persisted counters laid over them."""
    by_id = {a.id: a for a in stored}
    merged = []
    for base in CATALOGUE:
        saved = by_id.get(base.id)
        if saved is None:
            merged.append(base)
        else:
            merged.append(replace(base, unlocked=saved.unlocked, progress=saved.progress))
    return tuple(merged)


class ProgressionTracker:
    def __init__(self, session: Session):
        self.session = session
        self.stats = UserStats()
        self.achievements: Tuple[Achievement, ...] = CATALOGUE

    def start(self) -> UserStats:
        """Load the user's state and apply the access rules of a new session."""
        self.stats = self._load_stats()
        self.achievements = self._load_achievements()
        self.first_access()
        self.daily_access()
        self.poll()
        return self.stats

    def subscribe(self) -> None:
        bus, uid = self.session.bus, self.session.user_id
        bus.subscribe(TRANSACTIONS_CHANGED, self._on_transactions_event, user_id=uid)
        bus.subscribe(REPORT_GENERATED, self._on_report_event, user_id=uid)
        bus.subscribe(SHEET_MANAGED, self._on_sheet_event, user_id=uid)

    def unsubscribe(self) -> None:
        bus = self.session.bus
        bus.unsubscribe(TRANSACTIONS_CHANGED, self._on_transactions_event)
        bus.unsubscribe(REPORT_GENERATED, self._on_report_event)
        bus.unsubscribe(SHEET_MANAGED, self._on_sheet_event)

    # transitions

    def first_access(self) -> bool:
        store = self.session.store
        key = self.session.key(FIRST_ACCESS)
        if store.get(key) is not None:
            return False
        store.set(key, self.session.clock().isoformat())
        self._commit(self.stats.with_xp(self.stats.xp + XP_FIRST_ACCESS), self.achievements)
        return True

    def daily_access(self) -> bool:
        store = self.session.store
        key = self.session.key(LAST_ACCESS)
        today = self.session.clock().date().isoformat()
        last = store.get(key)
        if last == today:
            return False
        store.set(key, today)
        if last is None:
            # the very first day is already counted in the defaults
            return False
        days = self.stats.days_active + 1
        stats = replace(self.stats, days_active=days).with_xp(self.stats.xp + XP_DAILY_ACCESS)
        self._commit(stats, advance(self.achievements, DEDICATED_USER, days))
        return True

    def on_transactions_changed(self, count: int) -> bool:
        if count == self.stats.transactions_created:
            return False
        # a floor rather than a grant, re-observing the same list never adds xp
        xp = max(self.stats.xp, count * XP_PER_TRANSACTION)
        stats = replace(self.stats, transactions_created=count).with_xp(xp)
        self._commit(stats, advance(self.achievements, FINANCIAL_MANAGER, count))
        return True

    def on_report_generated(self, count: int) -> bool:
        if count == self.stats.reports_generated:
            return False
        # additive on the whole count, unlike the transaction floor
        stats = replace(self.stats, reports_generated=count).with_xp(
            self.stats.xp + count * XP_PER_REPORT
        )
        self._commit(stats, advance(self.achievements, REPORT_MASTER, count))
        return True

    def on_sheet_managed(self) -> bool:
        stats = replace(self.stats, sheets_managed=self.stats.sheets_managed + 1).with_xp(
            self.stats.xp + XP_PER_SHEET
        )
        self._commit(stats, self.achievements)
        return True

    def poll(self) -> bool:
        """Re-read the counters other views write to the store."""
        changed = False
        data = read_json(self.session.store, self.session.key(TRANSACTIONS))
        if isinstance(data, list):
            changed |= self.on_transactions_changed(len(data))
        reports = read_int(self.session.store, self.session.key(REPORTS_GENERATED))
        if reports > 0:
            changed |= self.on_report_generated(reports)
        return changed

    # bus handlers

    def _on_transactions_event(self, event: Event, payload: dict) -> dict:
        changed = self.on_transactions_changed(int(payload["count"]))
        return {"changed": changed, "xp": self.stats.xp, "level": self.stats.level}

    def _on_report_event(self, event: Event, payload: dict) -> dict:
        changed = self.on_report_generated(int(payload["count"]))
        return {"changed": changed, "xp": self.stats.xp, "level": self.stats.level}

    def _on_sheet_event(self, event: Event, payload: dict) -> dict:
        self.on_sheet_managed()
        return {"changed": True, "xp": self.stats.xp, "level": self.stats.level}

    # persistence

    def _load_stats(self) -> UserStats:
        key = self.session.key(STATS)
        data = read_json(self.session.store, key)
        if isinstance(data, dict):
            try:
                return UserStats.from_dict(data)
            except (TypeError, ValueError) as exc:
                logger.warning("Invalid stats under %s, resetting: %s", key, exc)
        stats = UserStats()
        write_json(self.session.store, key, stats.to_dict())
        return stats

    def _load_achievements(self) -> Tuple[Achievement, ...]:
        key = self.session.key(ACHIEVEMENTS)
        data = read_json(self.session.store, key)
        if isinstance(data, list):
            try:
                return merge_with_catalogue(Achievement.from_dict(d) for d in data)
            except (KeyError, TypeError, ValueError) as exc:
                logger.warning("Invalid achievements under %s, resetting: %s", key, exc)
        write_json(self.session.store, key, [a.to_dict() for a in CATALOGUE])
        return CATALOGUE

    def _commit(self, stats: UserStats, achievements: Tuple[Achievement, ...]) -> None:
        previous = self.stats
        stats = stats.with_xp(stats.xp)
        if stats.level != previous.level:
            achievements = advance(achievements, TREASURY_SPECIALIST, stats.level)

        was_unlocked = {a.id for a in self.achievements if a.unlocked}
        unlocked_now = [a for a in achievements if a.unlocked and a.id not in was_unlocked]

        write_json(self.session.store, self.session.key(STATS), stats.to_dict())
        write_json(self.session.store, self.session.key(ACHIEVEMENTS), [a.to_dict() for a in achievements])
        self.stats = stats
        self.achievements = achievements

        if stats.level > previous.level:
            logger.info("User %s reached level %d", self.session.user_id, stats.level)
            self.session.notifier.notify(Notification(
                f"Congratulations! You reached level {stats.level}",
                "Keep using the system to earn more XP and unlock achievements.",
            ))
            self.session.bus.publish(LEVEL_UP, {"user_id": self.session.user_id, "level": stats.level})

        for a in unlocked_now:
            logger.info("User %s unlocked achievement %s", self.session.user_id, a.title)
            self.session.notifier.notify(Notification(f"Achievement unlocked: {a.title}", a.description))
            self.session.bus.publish(ACHIEVEMENT_UNLOCKED, {"user_id": self.session.user_id, "id": a.id})
