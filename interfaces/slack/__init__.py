"""
Slack Verification Code Module

Retrieves one-time 2FA codes delivered into a Slack channel:
- Channel history polling with bounded retries
- Unused-code detection and selection
- Thread replies that mark a code as consumed
"""

from .code_orchestration import SlackCodeProvider
from .errors import (
    SlackAuthenticationError,
    SlackMissingScopeError,
    SlackTransportError,
    VerificationCodeNotFound,
)
from .models import ChannelMessage, PollConfiguration

__all__ = [
    'SlackCodeProvider',
    'ChannelMessage',
    'PollConfiguration',
    'VerificationCodeNotFound',
    'SlackTransportError',
    'SlackAuthenticationError',
    'SlackMissingScopeError',
]
