"""
Login Flow Integration

The login flow that needs a two-factor code takes a code provider as a plain
argument: an async callable with no parameters that returns the code. It
never sees polling, filtering or acknowledgment details.

Example:
    provider = bind_code_provider(config, token=os.environ["SLACK_API_TOKEN"])
    await login_flow.submit_two_factor(provider)
"""

import logging
from typing import Awaitable, Callable, Optional

from slack_sdk.web.async_client import AsyncWebClient

from interfaces.slack.code_orchestration import SlackCodeProvider
from interfaces.slack.models import PollConfiguration

CodeProvider = Callable[[], Awaitable[str]]


def create_code_provider(token: Optional[str] = None,
                         slack_client=None,
                         logger: Optional[logging.Logger] = None) -> SlackCodeProvider:
    """Build a SlackCodeProvider from an existing client or a bot token"""
    if slack_client is None:
        if not token:
            raise ValueError("Either a Slack token or a Slack client is required")
        slack_client = AsyncWebClient(token=token)
    return SlackCodeProvider.from_client(slack_client, logger=logger)


def bind_code_provider(config: PollConfiguration,
                       token: Optional[str] = None,
                       slack_client=None,
                       logger: Optional[logging.Logger] = None) -> CodeProvider:
    """
    Close over `config` and return the zero-argument callable a login flow expects.

    Each call is a fresh invocation with its own opening timestamp.
    """
    provider = create_code_provider(token=token, slack_client=slack_client, logger=logger)

    async def provide_code() -> str:
        return await provider.obtain_code(config)

    return provide_code


async def obtain_code(config: PollConfiguration,
                      token: Optional[str] = None,
                      slack_client=None,
                      logger: Optional[logging.Logger] = None) -> str:
    """One-shot lookup: returns the code or raises from the error taxonomy"""
    provider = create_code_provider(token=token, slack_client=slack_client, logger=logger)
    return await provider.obtain_code(config)
