import argparse
import asyncio
import logging
import os
import sys
from typing import Any, Dict, Mapping, Optional

from dotenv import load_dotenv

from interfaces.login_interface import obtain_code
from interfaces.slack.errors import SlackTransportError, VerificationCodeNotFound
from interfaces.slack.models import PollConfiguration
from runtime.retry_scheduler import load_config_from_yaml

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_NOT_FOUND = 1
EXIT_TRANSPORT_ERROR = 2
EXIT_USAGE = 64


class UsageError(Exception):
    """Required settings are missing"""


def configure_logging(verbose: bool = False):
    """Send logs to stderr so stdout only ever carries the code"""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format='%(levelname)s: %(message)s',
        stream=sys.stderr,
    )


def create_argument_parser():
    """Create command line argument parser"""
    parser = argparse.ArgumentParser(
        prog="slack2fa",
        description="Fetch an unused 6-digit verification code from a Slack channel",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  slack2fa --channel C0123456789 --user U012AB3CDE --referrer "release bot"
  slack2fa --channel C0123456789 --any-user --profile ci -v

Do not re-run automatically after "not found": every new code request
counts against the login provider and may lock the account.
        """
    )

    parser.add_argument("--channel", help="Channel ID to read (env: SLACK2FA_CHANNEL_ID)")
    parser.add_argument("--user", help="Only accept codes posted by this user ID (env: SLACK2FA_USER_ID)")
    parser.add_argument(
        "--any-user",
        action="store_true",
        help="Accept codes from any author"
    )
    parser.add_argument("--referrer", help="Name shown in the 'consumed by' thread reply (env: SLACK2FA_REFERRER)")
    parser.add_argument("--retry-count", type=int, help="Retries after the first attempt")
    parser.add_argument("--retry-interval", type=float, help="Seconds to wait between attempts")
    parser.add_argument("--timeout", type=float, help="Overall time budget in seconds")
    parser.add_argument("--profile", help="Polling profile from config/slack2fa.yaml (env: SLACK2FA_PROFILE)")
    parser.add_argument("--config", help="Path to an alternative polling config file")
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose output with detailed logs"
    )

    return parser


def _first(*values):
    for value in values:
        if value is not None:
            return value
    return None


def build_config(args: argparse.Namespace, env: Mapping[str, str]) -> PollConfiguration:
    """Merge CLI flags over environment over YAML defaults"""
    defaults: Dict[str, Any] = load_config_from_yaml(
        profile=args.profile or env.get('SLACK2FA_PROFILE'),
        config_path=args.config,
    )

    channel_id = args.channel or env.get('SLACK2FA_CHANNEL_ID')
    if not channel_id:
        raise UsageError("A channel ID is required (--channel or SLACK2FA_CHANNEL_ID)")

    expected_author = args.user or env.get('SLACK2FA_USER_ID')
    allow_any_author = args.any_user or bool(defaults.get('allow_any_author', False))
    if not expected_author and not allow_any_author:
        raise UsageError("A user ID is required unless --any-user is given")

    deadline = _first(args.timeout, defaults.get('deadline_seconds'))

    return PollConfiguration(
        channel_id=channel_id,
        expected_author=expected_author,
        allow_any_author=allow_any_author,
        referrer=args.referrer or env.get('SLACK2FA_REFERRER') or 'slack2fa',
        max_attempts=int(_first(args.retry_count, defaults.get('max_attempts'), 3)),
        wait_seconds=float(_first(args.retry_interval, defaults.get('wait_seconds'), 20.0)),
        deadline_seconds=float(deadline) if deadline is not None else None,
        verbose=args.verbose,
    )


def slack_token(env: Mapping[str, str]) -> str:
    token = env.get('SLACK_API_TOKEN') or env.get('SLACK_BOT_TOKEN')
    if not token:
        raise UsageError("Set SLACK_API_TOKEN (or SLACK_BOT_TOKEN) to a Slack bot token")
    return token


async def run(args: argparse.Namespace, env: Optional[Mapping[str, str]] = None, slack_client=None) -> int:
    """Resolve one code and print it; returns the process exit status"""
    env = os.environ if env is None else env

    try:
        config = build_config(args, env)
        token = None if slack_client is not None else slack_token(env)
    except (UsageError, ValueError) as e:
        print(f"❌ {e}", file=sys.stderr)
        return EXIT_USAGE

    try:
        code = await obtain_code(config, token=token, slack_client=slack_client)
    except VerificationCodeNotFound as e:
        print(f"❌ {e}", file=sys.stderr)
        return EXIT_NOT_FOUND
    except SlackTransportError as e:
        print(f"❌ Slack error: {e}", file=sys.stderr)
        if args.verbose:
            logger.exception("Slack error details:")
        return EXIT_TRANSPORT_ERROR

    print(code)
    return EXIT_OK


def main():
    """Console entry point"""
    load_dotenv('.env.local', override=True)

    parser = create_argument_parser()
    args = parser.parse_args()
    configure_logging(args.verbose)

    try:
        status = asyncio.run(run(args))
    except KeyboardInterrupt:
        print("\n👋 Cancelled", file=sys.stderr)
        status = 130
    sys.exit(status)


if __name__ == "__main__":
    main()
