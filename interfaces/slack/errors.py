"""
Slack 2FA Error Taxonomy

None of these are retried by the polling loop. VerificationCodeNotFound in
particular must not be retried by callers either: each retry usually means a
fresh code request against the login provider, and repeated requests can lock
the account.
"""

from typing import Optional

REQUIRED_SLACK_SCOPES = ('channels:history', 'chat:write')

AUTHENTICATION_ERROR_CODES = frozenset({
    'not_authed',
    'invalid_auth',
    'account_inactive',
    'token_revoked',
    'token_expired',
})


class VerificationCodeNotFound(Exception):
    """Raised when every attempt finished without an unused code"""

    MESSAGE = "2FA code was sent but not found in Slack. Please make sure your code is successfully sent."

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.MESSAGE)


class SlackTransportError(Exception):
    """A Slack Web API call failed"""

    def __init__(self, message: str, error_code: Optional[str] = None):
        super().__init__(message)
        self.error_code = error_code


class SlackAuthenticationError(SlackTransportError):
    """The token was rejected"""


class SlackMissingScopeError(SlackTransportError):
    """The token lacks a scope the call needs"""

    def __init__(self, message: str, needed: Optional[str] = None, provided: Optional[str] = None):
        super().__init__(message, error_code='missing_scope')
        self.needed = needed
        self.provided = provided
