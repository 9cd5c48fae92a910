"""
Slack 2FA Data Models

ChannelMessage is a read-only view of one conversations.history entry.
PollConfiguration holds everything one code lookup needs and is fixed for
the lifetime of that lookup.
"""

import time
from dataclasses import dataclass, field, replace
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional, Tuple

from runtime.retry_scheduler import RetryPolicy


@dataclass(frozen=True)
class ChannelMessage:
    """A single channel history entry"""
    type: str
    author: Optional[str]
    text: str
    timestamp: str
    reply_count: int = 0
    reactions: Tuple[Dict[str, Any], ...] = field(default_factory=tuple)

    @classmethod
    def from_slack(cls, payload: Dict[str, Any]) -> "ChannelMessage":
        """Build from a raw Slack message dict, tolerating absent fields"""
        return cls(
            type=payload.get('type', ''),
            author=payload.get('user'),
            text=payload.get('text') or '',
            timestamp=str(payload.get('ts', '0')),
            reply_count=int(payload.get('reply_count') or 0),
            reactions=tuple(payload.get('reactions') or ()),
        )

    @property
    def numeric_timestamp(self) -> Decimal:
        # Slack ts values are decimal strings; string ordering breaks on width changes
        try:
            value = Decimal(self.timestamp)
        except InvalidOperation:
            return Decimal(0)
        if not value.is_finite():
            return Decimal(0)
        return value


@dataclass(frozen=True)
class PollConfiguration:
    """Settings for one verification code lookup"""
    channel_id: str
    referrer: str
    expected_author: Optional[str] = None
    allow_any_author: bool = False
    max_attempts: int = 3
    wait_seconds: float = 20.0
    deadline_seconds: Optional[float] = None
    opening_timestamp: Optional[str] = None
    verbose: bool = False

    def __post_init__(self):
        if not self.channel_id:
            raise ValueError("channel_id is required")
        self._validate_retry_policy()

    def _validate_retry_policy(self):
        # RetryPolicy raises ValueError on a bad attempt budget
        _ = self.retry_policy

    @property
    def accepts_any_author(self) -> bool:
        return self.allow_any_author or self.expected_author is None

    @property
    def retry_policy(self) -> RetryPolicy:
        return RetryPolicy(
            max_attempts=self.max_attempts,
            wait_seconds=self.wait_seconds,
            deadline_seconds=self.deadline_seconds,
        )

    def opened(self, now: Optional[float] = None) -> "PollConfiguration":
        """Return a copy with the opening timestamp pinned, keeping one already set"""
        if self.opening_timestamp is not None:
            return self
        stamp = int(now if now is not None else time.time())
        return replace(self, opening_timestamp=str(stamp))


def messages_from_history(payloads: List[Dict[str, Any]]) -> List[ChannelMessage]:
    return [ChannelMessage.from_slack(payload) for payload in payloads]
