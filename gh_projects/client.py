"""
GraphQL transport for the GitHub API.

Requests go over HTTPS with a token when one is available, otherwise through
`gh api graphql`, which reuses the GitHub CLI's stored login.
"""
import json
import logging
import subprocess
from typing import Any, Dict, List, Optional

import requests

from .auth import GitHubAuth
from .constants import GITHUB_GRAPHQL_URL, QueryLimits
from .errors import FetchError, map_status_code_to_error
from .log_sanitizer import sanitize_error, sanitize_log_message

logger = logging.getLogger(__name__)

USER_AGENT = "gh-projects"


class GraphQLClient:
    """Executes GraphQL documents against GitHub"""

    def __init__(
        self,
        auth: GitHubAuth,
        api_url: str = GITHUB_GRAPHQL_URL,
        timeout: float = QueryLimits.DEFAULT_TIMEOUT_SECONDS
    ):
        """
        Args:
            auth: Initialized GitHubAuth instance
            api_url: GraphQL endpoint (GitHub Enterprise installs differ)
            timeout: Per-request timeout in seconds
        """
        if not auth.is_initialized:
            raise ValueError("GraphQLClient requires an initialized GitHubAuth. Call auth.initialize() first.")

        self.auth = auth
        self.api_url = api_url
        self.timeout = timeout
        self._session: Optional[requests.Session] = None

    @property
    def session(self) -> requests.Session:
        """Lazy load HTTP session"""
        if self._session is None:
            self._session = requests.Session()
            self._session.headers["Authorization"] = f"bearer {self.auth.token}"
            self._session.headers["Accept"] = "application/vnd.github+json"
            self._session.headers["User-Agent"] = USER_AGENT
        return self._session

    def execute(
        self,
        query: str,
        variables: Optional[Dict[str, Any]] = None,
        allow_partial: bool = False
    ) -> Dict[str, Any]:
        """
        Run a GraphQL document and return its `data` object.

        Args:
            query: GraphQL document
            variables: Variables; entries whose value is None are omitted
            allow_partial: Accept responses that carry both data and errors.
                           Needed for documents that probe several paths, such
                           as looking a login up as both user and organization.

        Returns:
            The response's data object

        Raises:
            FetchError: On transport failure, HTTP error, unparsable output or
                        GraphQL errors
        """
        variables = {k: v for k, v in (variables or {}).items() if v is not None}

        if self.auth.uses_token:
            payload = self._execute_with_token(query, variables)
        else:
            payload = self._execute_with_cli(query, variables)

        return self._extract_data(payload, allow_partial)

    def _execute_with_token(self, query: str, variables: Dict[str, Any]) -> Dict[str, Any]:
        try:
            response = self.session.post(
                self.api_url,
                json={"query": query, "variables": variables},
                timeout=self.timeout,
            )
        except requests.Timeout as e:
            raise FetchError(
                message=f"GraphQL request timed out after {self.timeout:g} seconds",
                original_error=e
            )
        except requests.RequestException as e:
            raise FetchError(
                message=f"GraphQL request failed: {sanitize_error(e)}",
                original_error=e
            )

        if response.status_code >= 400:
            raise map_status_code_to_error(
                response.status_code,
                body=sanitize_log_message(response.text)
            )

        try:
            return response.json()
        except ValueError as e:
            raise FetchError(
                message=f"failed to decode GraphQL response: {e}",
                status_code=response.status_code,
                original_error=e
            )

    def _execute_with_cli(self, query: str, variables: Dict[str, Any]) -> Dict[str, Any]:
        args = self._cli_args(query, variables)

        try:
            result = subprocess.run(
                args,
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired as e:
            raise FetchError(
                message=f"GraphQL query timed out after {self.timeout:g} seconds",
                original_error=e
            )
        except OSError as e:
            raise FetchError(
                message=f"GraphQL query failed: could not run {self.auth.gh_executable}: {e}",
                original_error=e
            )

        stderr = sanitize_log_message((result.stderr or "").strip())

        # gh exits non-zero for partial GraphQL errors too, so parse first
        try:
            payload = json.loads(result.stdout)
        except ValueError as e:
            if result.returncode != 0:
                raise FetchError(message=f"GraphQL query failed: {stderr}", original_error=e)
            raise FetchError(message=f"failed to parse GraphQL response: {e}", original_error=e)

        if not isinstance(payload, dict):
            raise FetchError(message="failed to parse GraphQL response: expected a JSON object")

        if result.returncode != 0 and not payload.get("data") and not payload.get("errors"):
            raise FetchError(message=f"GraphQL query failed: {stderr}")

        return payload

    def _cli_args(self, query: str, variables: Dict[str, Any]) -> List[str]:
        args = [self.auth.gh_executable, "api", "graphql", "-f", f"query={query}"]
        for key, value in variables.items():
            # -F lets gh send typed values; -f always sends strings
            if isinstance(value, bool):
                args.extend(["-F", f"{key}={str(value).lower()}"])
            elif isinstance(value, (int, float)):
                args.extend(["-F", f"{key}={int(value)}"])
            else:
                args.extend(["-f", f"{key}={value}"])
        return args

    @staticmethod
    def _extract_data(payload: Dict[str, Any], allow_partial: bool) -> Dict[str, Any]:
        data = payload.get("data")
        errors = payload.get("errors")

        if errors:
            messages = "; ".join(
                str(error.get("message", error)) if isinstance(error, dict) else str(error)
                for error in errors
            )
            if allow_partial and data:
                logger.debug(f"Ignoring partial GraphQL errors: {messages}")
            else:
                raise FetchError(message=f"GraphQL errors: {messages}", details=errors)

        if not isinstance(data, dict):
            raise FetchError(message="GraphQL response has no data")

        return data

    def close(self) -> None:
        """Clean up resources"""
        if self._session is not None:
            self._session.close()
            self._session = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
