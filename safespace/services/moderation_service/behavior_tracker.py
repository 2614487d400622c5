"""Per-author posting behavior: rolling counters and duplicate detection.

The content hash is a heuristic duplicate signal, not a security
boundary. Collisions and the short history are acceptable.
"""
import logging
import re
from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Dict, Optional

from safespace.shared.database import BehaviorRepository
from safespace.shared.errors import PersistenceError
from safespace.shared.models import BehaviorRecord
from safespace.shared.utils import Clock, hash_identifier, utc_now
from .config import ModerationConfig

logger = logging.getLogger(__name__)

HOUR_WINDOW = timedelta(hours=1)
DAY_WINDOW = timedelta(hours=24)

_NON_WORD = re.compile(r"[^a-z0-9_\s]")
_WHITESPACE = re.compile(r"\s+")


def content_hash(content: str, prefix_length: int = 100) -> str:
    """Normalized rolling hash of the first characters of content.

    Lowercase, strip punctuation, collapse whitespace, trim, truncate,
    then h = h * 31 + code as a signed 32-bit integer. Returns the
    absolute value as a decimal string.
    """
    normalized = _NON_WORD.sub("", (content or "").lower())
    normalized = _WHITESPACE.sub(" ", normalized).strip()[:prefix_length]

    h = 0
    for ch in normalized:
        h = (h * 31 + ord(ch)) & 0xFFFFFFFF
    if h >= 0x80000000:
        h -= 0x100000000
    return str(abs(h))


@dataclass(frozen=True)
class BehaviorSignal:
    posts_in_last_hour: int = 0
    posts_in_last_day: int = 0
    is_duplicate: bool = False
    is_rapid: bool = False

    @property
    def should_flag(self) -> bool:
        return self.is_duplicate or self.is_rapid

    def to_dict(self) -> Dict[str, Any]:
        return {
            "posts_in_last_hour": self.posts_in_last_hour,
            "posts_in_last_day": self.posts_in_last_day,
            "is_duplicate": self.is_duplicate,
            "is_rapid": self.is_rapid,
            "should_flag": self.should_flag,
        }


class BehaviorTracker:
    """Tracks posting rate and recent content hashes per author.

    Windows are anchored at the first post of the window and recomputed
    from stored timestamps on every call. Concurrent posts by the same
    author may lose an update, which only weakens the signal.
    """

    def __init__(
        self,
        repository: BehaviorRepository,
        config: Optional[ModerationConfig] = None,
        clock: Clock = utc_now,
    ):
        self.repository = repository
        self.config = config or ModerationConfig()
        self._clock = clock

    def track(self, author_id: str, action: str, content: str) -> BehaviorSignal:
        """Record one post and return the resulting behavior signal.

        Args:
            author_id: Posting member
            action: What was posted ("topic" or "reply")
            content: Plain text of the post

        Returns:
            BehaviorSignal

        Raises:
            PersistenceError: If the behavior record cannot be read or written
        """
        now = self._clock()
        record = self.repository.find_by_id(author_id) or BehaviorRecord(user_id=author_id)
        digest = content_hash(content, self.config.hash_prefix_length)

        is_duplicate = digest in record.recent_content_hashes

        if record.hour_window_started_at is None or now - record.hour_window_started_at >= HOUR_WINDOW:
            record.posts_in_last_hour = 1
            record.hour_window_started_at = now
        else:
            record.posts_in_last_hour += 1

        if record.day_window_started_at is None or now - record.day_window_started_at >= DAY_WINDOW:
            record.posts_in_last_day = 1
            record.day_window_started_at = now
        else:
            record.posts_in_last_day += 1

        is_rapid = record.posts_in_last_hour >= self.config.rapid_posting_threshold

        history = [digest] + [h for h in record.recent_content_hashes if h != digest]
        record.recent_content_hashes = history[:self.config.hash_history_size]
        record.duplicate_detected = is_duplicate
        record.rapid_posting_detected = is_rapid
        record.last_post_at = now
        record.last_action = action
        record.updated_at = now

        self.repository.save(record)

        signal = BehaviorSignal(
            posts_in_last_hour=record.posts_in_last_hour,
            posts_in_last_day=record.posts_in_last_day,
            is_duplicate=is_duplicate,
            is_rapid=is_rapid,
        )

        if signal.should_flag:
            logger.warning(
                "BEHAVIOR_SIGNAL_RAISED",
                extra={
                    "user_id_hash": hash_identifier(author_id),
                    "action": action,
                    "is_duplicate": is_duplicate,
                    "is_rapid": is_rapid,
                    "posts_in_last_hour": record.posts_in_last_hour,
                }
            )
        return signal

    def release(self, author_id: str, content: str) -> None:
        """Forget the hash of a post that was never stored.

        Lets the author retry after a persistence failure or a rapid-posting
        rejection without being told the post is a duplicate. Failures are
        logged, not raised.
        """
        digest = content_hash(content, self.config.hash_prefix_length)
        try:
            record = self.repository.find_by_id(author_id)
            if record is None or digest not in record.recent_content_hashes:
                return
            record.recent_content_hashes = [h for h in record.recent_content_hashes if h != digest]
            record.updated_at = self._clock()
            self.repository.save(record)
        except PersistenceError as e:
            logger.error(
                "BEHAVIOR_RELEASE_FAILED",
                extra={"user_id_hash": hash_identifier(author_id), "error": str(e)}
            )

    def get_record(self, author_id: str) -> Optional[BehaviorRecord]:
        return self.repository.find_by_id(author_id)
