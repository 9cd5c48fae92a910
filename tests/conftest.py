import os
import sys
from unittest.mock import AsyncMock

import pytest
from slack_sdk.errors import SlackApiError

# Add project root to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from interfaces.slack.models import PollConfiguration  # noqa: E402

CHANNEL_ID = "C1234567890"
USER_ID = "U012AB3CDE"


def slack_message(text="123456", ts="1512104434.000490", user=USER_ID, **extra):
    """A conversations.history entry as Slack returns it"""
    message = {"type": "message", "user": user, "text": text, "ts": ts}
    message.update(extra)
    return message


def history_response(*messages, next_cursor=""):
    return {
        "ok": True,
        "messages": list(messages),
        "has_more": bool(next_cursor),
        "response_metadata": {"next_cursor": next_cursor},
    }


def slack_api_error(error, **fields):
    response = {"ok": False, "error": error}
    response.update(fields)
    return SlackApiError("The request to the Slack API failed.", response)


class RecordingSleep:
    """Stands in for asyncio.sleep and remembers every wait"""

    def __init__(self):
        self.calls = []

    async def __call__(self, seconds):
        self.calls.append(seconds)


@pytest.fixture
def mock_client():
    client = AsyncMock()
    client.conversations_history.return_value = history_response()
    client.chat_postMessage.return_value = {"ok": True, "ts": "1512104440.000100"}
    return client


@pytest.fixture
def config():
    return PollConfiguration(
        channel_id=CHANNEL_ID,
        expected_author=USER_ID,
        referrer="release bot",
        max_attempts=0,
        wait_seconds=0.1,
    )


@pytest.fixture
def recording_sleep():
    return RecordingSleep()
