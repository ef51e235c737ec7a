"""
Authentication handling for GitHub
Supports both Personal Access Tokens and the GitHub CLI's stored login
"""
import logging
import os
import subprocess
from typing import Optional

from .constants import EnvVars
from .errors import AuthenticationError
from .log_sanitizer import sanitize_log_message

logger = logging.getLogger(__name__)


class GitHubAuth:
    """
    Resolves GitHub credentials, trying in order:
    1. Token passed explicitly (--token)
    2. GITHUB_TOKEN environment variable
    3. GitHub CLI login (gh auth status), in which case requests go through gh
    """

    METHOD_TOKEN = "Personal Access Token"
    METHOD_ENV = "GITHUB_TOKEN environment variable"
    METHOD_CLI = "GitHub CLI"

    STATUS_TIMEOUT_SECONDS = 15

    def __init__(self, token: Optional[str] = None, gh_executable: str = "gh"):
        """
        Initialize authentication handler

        Args:
            token: Explicit token, takes precedence over the environment
            gh_executable: Name or path of the GitHub CLI binary
        """
        self._explicit_token = token
        self.gh_executable = gh_executable
        self.token: Optional[str] = None
        self._auth_method: Optional[str] = None

    def initialize(self) -> None:
        """
        Resolve credentials.

        Raises:
            AuthenticationError: If no token is available and gh is not logged in
        """
        if self._explicit_token:
            self.token = self._explicit_token
            self._auth_method = self.METHOD_TOKEN
        elif os.getenv(EnvVars.TOKEN):
            self.token = os.getenv(EnvVars.TOKEN)
            self._auth_method = self.METHOD_ENV
        else:
            self._check_cli_login()
            self._auth_method = self.METHOD_CLI

        logger.info(f"Authenticated using: {self._auth_method}")

    def _check_cli_login(self) -> None:
        try:
            result = subprocess.run(
                [self.gh_executable, "auth", "status"],
                capture_output=True,
                text=True,
                timeout=self.STATUS_TIMEOUT_SECONDS,
            )
        except FileNotFoundError as e:
            raise AuthenticationError(
                message=(
                    "GitHub CLI authentication failed: gh is not installed. "
                    "Pass --token or set GITHUB_TOKEN."
                ),
                original_error=e
            )
        except subprocess.TimeoutExpired as e:
            raise AuthenticationError(
                message=(
                    f"GitHub CLI authentication failed: gh auth status timed out "
                    f"after {self.STATUS_TIMEOUT_SECONDS} seconds"
                ),
                original_error=e
            )
        except OSError as e:
            raise AuthenticationError(
                message=f"GitHub CLI authentication failed: could not run {self.gh_executable}: {e}",
                original_error=e
            )

        if result.returncode != 0:
            output = sanitize_log_message((result.stderr or result.stdout or "").strip())
            raise AuthenticationError(
                message=f"GitHub CLI authentication failed: not authenticated with GitHub CLI: {output}"
            )

    @property
    def is_initialized(self) -> bool:
        return self._auth_method is not None

    @property
    def uses_token(self) -> bool:
        """True when requests go straight to the API with a token"""
        return self.token is not None

    def get_auth_info(self) -> dict:
        """Get information about current authentication"""
        return {
            "method": self._auth_method,
            "uses_token": self.uses_token,
            "authenticated": self.is_initialized
        }
