"""
Slack Code Resolver

Picks the unused verification code out of one page of channel history:
- filters to plain messages whose text is exactly six ASCII digits
- skips anything already threaded or reacted to (treated as consumed)
- optionally restricts to a single author
- takes the most recent candidate by numeric timestamp

After a code is chosen, a reply is posted in its thread so later lookups
see it as consumed.
"""

import logging
import re
from typing import Iterable, List, Optional

from ..errors import REQUIRED_SLACK_SCOPES, SlackMissingScopeError
from ..models import ChannelMessage, PollConfiguration

CODE_PATTERN = re.compile(r'[0-9]{6}')

CONSUMED_TEMPLATE = "This 6-digit token has been consumed by {referrer}."


def is_unused_code(message: ChannelMessage, config: PollConfiguration) -> bool:
    """True when `message` is a six-digit code nobody has acknowledged yet"""
    if message.type != 'message':
        return False
    if not config.accepts_any_author and message.author != config.expected_author:
        return False
    if message.reply_count != 0:
        return False
    if message.reactions:
        return False
    return CODE_PATTERN.fullmatch(message.text) is not None


def select_latest(candidates: Iterable[ChannelMessage]) -> Optional[ChannelMessage]:
    """Most recent candidate by numeric timestamp, or None"""
    return max(candidates, key=lambda message: message.numeric_timestamp, default=None)


class CodeResolver:
    """Resolves one history snapshot to a code and marks it consumed"""

    def __init__(self, history_service, logger: Optional[logging.Logger] = None):
        self.history_service = history_service
        self.logger = logger or logging.getLogger(__name__)

    async def resolve_once(self, messages: List[ChannelMessage], config: PollConfiguration) -> Optional[str]:
        trace = logging.INFO if config.verbose else logging.DEBUG

        candidates = [message for message in messages if is_unused_code(message, config)]
        self.logger.log(trace, f"{len(candidates)} of {len(messages)} messages look like unused codes")

        message = select_latest(candidates)
        if message is None:
            return None

        self.logger.log(trace, f"Found 2FA code in message ts={message.timestamp}")
        await self.mark_consumed(message, config)
        return message.text

    async def mark_consumed(self, message: ChannelMessage, config: PollConfiguration) -> None:
        """
        Reply in the message thread so the code reads as used from now on.

        A missing chat:write scope only costs the marker, not the code, so it is
        logged and dropped. Other transport errors propagate.
        """
        text = CONSUMED_TEMPLATE.format(referrer=config.referrer)
        try:
            await self.history_service.post_reply(
                config.channel_id,
                message.timestamp,
                text,
                unfurl_links=False,
            )
        except SlackMissingScopeError as e:
            self.logger.warning(
                f"Could not mark code as consumed: {e}. "
                f"Make sure your Slack app has {list(REQUIRED_SLACK_SCOPES)} in the scope."
            )
