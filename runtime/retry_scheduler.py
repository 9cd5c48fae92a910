"""
Retry Scheduler for Verification Code Polling

Drives a bounded sequence of attempts:
- attempt 0 is the first try, followed by up to max_attempts retries
- a fixed wait between attempts, never after the last one
- the first attempt that produces a value ends the loop
- an optional overall deadline that cuts waiting short

Errors raised by an attempt are never retried here; they propagate to the
caller immediately.
"""

import asyncio
import logging
import os
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Optional, TypeVar

import yaml

logger = logging.getLogger(__name__)

T = TypeVar('T')

DEFAULT_CONFIG_PATH = os.path.join(os.path.dirname(__file__), '..', 'config', 'slack2fa.yaml')


@dataclass(frozen=True)
class RetryPolicy:
    """Attempt budget for one invocation"""
    max_attempts: int = 3
    wait_seconds: float = 20.0
    deadline_seconds: Optional[float] = None

    def __post_init__(self):
        if self.max_attempts < 0:
            raise ValueError(f"max_attempts must be >= 0, got {self.max_attempts}")
        if self.wait_seconds < 0:
            raise ValueError(f"wait_seconds must be >= 0, got {self.wait_seconds}")
        if self.deadline_seconds is not None and self.deadline_seconds <= 0:
            raise ValueError(f"deadline_seconds must be > 0, got {self.deadline_seconds}")

    @property
    def total_attempts(self) -> int:
        return self.max_attempts + 1


class RetryScheduler:
    """Runs attempts sequentially until one yields a value or the budget runs out"""

    def __init__(self,
                 policy: Optional[RetryPolicy] = None,
                 sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
                 clock: Optional[Callable[[], float]] = None,
                 logger: Optional[logging.Logger] = None):
        self.policy = policy or RetryPolicy()
        self.logger = logger or logging.getLogger(__name__)
        self._sleep = sleep
        self._clock = clock

    def _now(self) -> float:
        if self._clock is not None:
            return self._clock()
        return asyncio.get_running_loop().time()

    async def run(self, attempt: Callable[[int], Awaitable[Optional[T]]]) -> Optional[T]:
        """
        Call attempt(i) for i in 0..max_attempts until it returns a non-empty value.

        Returns None when every attempt came back empty, or when the deadline
        leaves no room for the next wait. Exceptions from attempt propagate
        without consuming the remaining attempts.
        """
        deadline = None
        if self.policy.deadline_seconds is not None:
            deadline = self._now() + self.policy.deadline_seconds

        for i in range(self.policy.total_attempts):
            if i > 0:
                if deadline is not None and self._now() + self.policy.wait_seconds > deadline:
                    self.logger.warning(
                        f"Deadline of {self.policy.deadline_seconds}s reached after "
                        f"{i} of {self.policy.total_attempts} attempts"
                    )
                    return None
                await self._sleep(self.policy.wait_seconds)

            result = await attempt(i)
            if result:
                return result

            self.logger.debug(f"Attempt #{i} produced nothing ({i + 1}/{self.policy.total_attempts})")

        return None


def load_config_from_yaml(profile: Optional[str] = None,
                          config_path: Optional[str] = None) -> Dict[str, Any]:
    """
    Load polling defaults from YAML.

    The file holds a `default` mapping and an optional `profiles` mapping whose
    entries override it. Returns an empty dict when the file is unusable.
    """
    path = config_path or DEFAULT_CONFIG_PATH

    try:
        with open(path, 'r') as f:
            yaml_config = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        logger.warning(f"Failed to load polling config from {path}: {e}. Using defaults.")
        return {}

    config_dict = dict(yaml_config.get('default') or {})

    profiles = yaml_config.get('profiles') or {}
    if profile:
        if profile in profiles:
            config_dict.update(profiles[profile] or {})
        else:
            logger.warning(f"Unknown polling profile '{profile}', using defaults")

    return config_dict


def policy_from_config(config_dict: Dict[str, Any]) -> RetryPolicy:
    """Build a RetryPolicy from a loaded config mapping"""
    deadline = config_dict.get('deadline_seconds')
    return RetryPolicy(
        max_attempts=int(config_dict.get('max_attempts', 3)),
        wait_seconds=float(config_dict.get('wait_seconds', 20.0)),
        deadline_seconds=float(deadline) if deadline is not None else None,
    )
