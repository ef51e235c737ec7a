"""
Runtime configuration for gh-projects.

Settings come from the process environment, optionally seeded from a .env
file in the working directory. Command-line options override them.
"""
import logging
import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

from .constants import EnvVars, GITHUB_GRAPHQL_URL, QueryLimits
from .validation import validate_timeout, ValidationError


@dataclass
class Settings:
    """Resolved runtime settings"""
    token: Optional[str] = None
    api_url: str = GITHUB_GRAPHQL_URL
    timeout: float = QueryLimits.DEFAULT_TIMEOUT_SECONDS
    log_level: int = logging.WARNING

    @classmethod
    def from_env(cls, load_env_file: bool = True) -> "Settings":
        """
        Build settings from the environment.

        Args:
            load_env_file: Load a .env file first (existing variables win)

        Raises:
            ValidationError: If GH_PROJECTS_TIMEOUT or GH_PROJECTS_LOG_LEVEL is invalid
        """
        if load_env_file:
            load_dotenv()

        timeout = os.getenv(EnvVars.TIMEOUT)

        return cls(
            token=os.getenv(EnvVars.TOKEN) or None,
            api_url=os.getenv(EnvVars.API_URL) or GITHUB_GRAPHQL_URL,
            timeout=validate_timeout(timeout) if timeout else QueryLimits.DEFAULT_TIMEOUT_SECONDS,
            log_level=parse_log_level(os.getenv(EnvVars.LOG_LEVEL)),
        )


def parse_log_level(value: Optional[str], default: int = logging.WARNING) -> int:
    """Translate a level name such as 'debug' into a logging level"""
    if not value:
        return default

    level = logging.getLevelName(value.strip().upper())
    if not isinstance(level, int):
        raise ValidationError(f"Unknown log level: '{value}'", EnvVars.LOG_LEVEL)
    return level


def configure_logging(level: int) -> None:
    """Send library logs to stderr at the given level"""
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logging.getLogger("gh_projects").setLevel(level)
