"""
Slack History Service

Thin adapter over the Slack Web API client for the two calls code lookup
needs: reading channel history and posting a thread reply. slack_sdk errors
and aiohttp connection failures are translated into the package's own error
types here so nothing above this layer depends on transport exceptions.
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional

import aiohttp
from slack_sdk.errors import SlackApiError

from ..errors import (
    AUTHENTICATION_ERROR_CODES,
    SlackAuthenticationError,
    SlackMissingScopeError,
    SlackTransportError,
)
from ..models import ChannelMessage, messages_from_history

logger = logging.getLogger(__name__)


def translate_slack_error(error: SlackApiError) -> SlackTransportError:
    """Map a SlackApiError onto the transport error taxonomy"""
    response = error.response
    error_code = response.get('error') if response is not None else None
    message = f"{error_code or 'slack_api_error'}: {error}"

    if error_code in AUTHENTICATION_ERROR_CODES:
        return SlackAuthenticationError(message, error_code=error_code)
    if error_code == 'missing_scope':
        return SlackMissingScopeError(
            message,
            needed=response.get('needed'),
            provided=response.get('provided'),
        )
    return SlackTransportError(message, error_code=error_code)


def translate_network_error(error: Exception) -> SlackTransportError:
    """Wrap a connection failure or timeout from the HTTP layer"""
    return SlackTransportError(f"Slack request failed: {type(error).__name__}: {error}", error_code=None)


class SlackHistoryService:
    """Reads channel history and posts thread replies"""

    def __init__(self, slack_client, page_size: int = 200):
        self.slack_client = slack_client
        self.page_size = page_size

    async def fetch_history(self, channel_id: str, oldest: Optional[str]) -> List[ChannelMessage]:
        """
        Fetch every message in the channel newer than `oldest`.

        Follows response_metadata.next_cursor until the window is exhausted.
        """
        payloads: List[Dict[str, Any]] = []
        cursor = None

        while True:
            params: Dict[str, Any] = {'channel': channel_id, 'limit': self.page_size}
            if oldest is not None:
                params['oldest'] = oldest
            if cursor:
                params['cursor'] = cursor

            try:
                response = await self.slack_client.conversations_history(**params)
            except SlackApiError as e:
                raise translate_slack_error(e) from e
            except (aiohttp.ClientError, asyncio.TimeoutError) as e:
                raise translate_network_error(e) from e

            payloads.extend(response.get('messages') or [])

            cursor = (response.get('response_metadata') or {}).get('next_cursor')
            if not cursor:
                break

        return messages_from_history(payloads)

    async def post_reply(self, channel_id: str, thread_ts: str, text: str, unfurl_links: bool = False) -> None:
        """Post `text` in the thread rooted at `thread_ts`"""
        try:
            await self.slack_client.chat_postMessage(
                channel=channel_id,
                thread_ts=thread_ts,
                text=text,
                unfurl_links=unfurl_links,
            )
        except SlackApiError as e:
            raise translate_slack_error(e) from e
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise translate_network_error(e) from e
