"""
Slack Verification Code Orchestration

Wires the retry scheduler, history service and code resolver into a single
obtain_code() call. The opening timestamp is pinned once per call and every
attempt reads history from that same lower bound.
"""

import logging
from typing import Optional

from runtime.retry_scheduler import RetryScheduler

from .errors import VerificationCodeNotFound
from .models import PollConfiguration
from .services.code_resolver import CodeResolver
from .services.history_service import SlackHistoryService


class SlackCodeProvider:
    """
    Polls a Slack channel for an unused 6-digit verification code.

    Attempts run strictly one after another; each finishes its acknowledgment
    post before the scheduler waits or starts the next one.
    """

    def __init__(self,
                 history_service: SlackHistoryService,
                 logger: Optional[logging.Logger] = None,
                 scheduler_factory=RetryScheduler):
        self.history_service = history_service
        self.logger = logger or logging.getLogger(__name__)
        self.resolver = CodeResolver(history_service, logger=self.logger)
        self.scheduler_factory = scheduler_factory

    @classmethod
    def from_client(cls, slack_client, logger: Optional[logging.Logger] = None) -> "SlackCodeProvider":
        return cls(SlackHistoryService(slack_client), logger=logger)

    async def obtain_code(self, config: PollConfiguration) -> str:
        """
        Return the newest unused code posted since this call started.

        Raises VerificationCodeNotFound once attempts run out. Transport errors
        from reading history end the lookup on the spot.
        """
        config = config.opened()
        trace = logging.INFO if config.verbose else logging.DEBUG
        scheduler = self.scheduler_factory(config.retry_policy, logger=self.logger)

        async def attempt(i: int) -> Optional[str]:
            self.logger.log(trace, f"Attempt #{i}.")
            messages = await self.history_service.fetch_history(config.channel_id, config.opening_timestamp)
            self.logger.log(trace, f"Found {len(messages)} messages.")
            return await self.resolver.resolve_once(messages, config)

        code = await scheduler.run(attempt)
        if code is None:
            raise VerificationCodeNotFound()
        return code
