import logging
from dataclasses import replace

from treasury.domain import XP_PER_LEVEL, Profile, UserStats
from treasury.session import Session
from treasury.store import PROFILE, read_json, write_json

logger = logging.getLogger(__name__)

DEFAULT_BIO = "Member of the treasury team."


def default_profile(session: Session) -> Profile:
    return Profile(name=session.name, email=session.email, bio=DEFAULT_BIO)


def load_profile(session: Session) -> Profile:
    base = default_profile(session)
    key = session.key(PROFILE)
    if session.store.get(key) is None:
        return base
    data = read_json(session.store, key)
    if not isinstance(data, dict):
        logger.warning("Invalid profile under %s, resetting", key)
        write_json(session.store, key, base.to_dict())
        return base
    return replace(
        base,
        name=str(data.get("name", base.name)),
        email=str(data.get("email", base.email)),
        username=str(data.get("username", base.username)),
        bio=str(data.get("bio", base.bio)),
        photo_url=str(data.get("photoUrl", base.photo_url)),
    )


def save_profile(session: Session, profile: Profile) -> Profile:
    write_json(session.store, session.key(PROFILE), profile.to_dict())
    return profile


def initials(name: str) -> str:
    return "".join(part[0] for part in name.split()[:2]).upper()


def level_progress(stats: UserStats) -> int:
    """XP earned inside the current level, 0..99."""
    return stats.xp % XP_PER_LEVEL
