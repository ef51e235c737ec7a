"""
Unit tests for the GraphQL transport.

Covers the token (HTTPS) path and the gh CLI path, including partial
GraphQL errors and HTTP status mapping.
"""
import json
import subprocess
from unittest.mock import Mock, patch

import pytest
import requests

from gh_projects.auth import GitHubAuth
from gh_projects.client import GraphQLClient
from gh_projects.errors import AuthenticationError, FetchError


def token_auth(token="ghp_" + "a" * 36):
    auth = GitHubAuth(token=token)
    auth.initialize()
    return auth


def cli_auth():
    auth = GitHubAuth()
    auth.token = None
    auth._auth_method = GitHubAuth.METHOD_CLI
    return auth


def http_response(status_code=200, payload=None, text=None):
    response = Mock()
    response.status_code = status_code
    response.text = text if text is not None else json.dumps(payload)
    if payload is None:
        response.json.side_effect = ValueError("No JSON object could be decoded")
    else:
        response.json.return_value = payload
    return response


def completed(stdout="", stderr="", returncode=0):
    return subprocess.CompletedProcess(args=["gh"], returncode=returncode, stdout=stdout, stderr=stderr)


class TestClientConstruction:
    """Test client setup."""

    def test_requires_initialized_auth(self):
        with pytest.raises(ValueError):
            GraphQLClient(GitHubAuth(token="x"))

    def test_session_headers(self):
        client = GraphQLClient(token_auth("abc123"))
        assert client.session.headers["Authorization"] == "bearer abc123"
        assert client.session.headers["User-Agent"] == "gh-projects"

    def test_close_releases_session(self):
        client = GraphQLClient(token_auth())
        session = client.session
        with patch.object(session, "close") as close:
            client.close()
        close.assert_called_once()
        assert client._session is None

    def test_context_manager_closes(self):
        with GraphQLClient(token_auth()) as client:
            client._session = Mock()
            session = client._session
        session.close.assert_called_once()


class TestTokenTransport:
    """Test GraphQL over HTTPS."""

    def setup_method(self):
        self.client = GraphQLClient(token_auth(), api_url="https://api.example.test/graphql", timeout=12)
        self.client._session = Mock()

    def test_returns_data(self):
        self.client._session.post.return_value = http_response(payload={"data": {"viewer": {"login": "me"}}})

        data = self.client.execute("query { viewer { login } }", {"a": 1, "after": None})

        assert data == {"viewer": {"login": "me"}}
        _, kwargs = self.client._session.post.call_args
        assert kwargs["json"] == {"query": "query { viewer { login } }", "variables": {"a": 1}}
        assert kwargs["timeout"] == 12
        assert self.client._session.post.call_args[0][0] == "https://api.example.test/graphql"

    def test_graphql_errors_raise(self):
        self.client._session.post.return_value = http_response(
            payload={"data": None, "errors": [{"message": "Could not resolve to a node"}]}
        )
        with pytest.raises(FetchError) as exc_info:
            self.client.execute("query")
        assert "Could not resolve to a node" in str(exc_info.value)

    def test_partial_errors_rejected_by_default(self):
        self.client._session.post.return_value = http_response(
            payload={"data": {"user": None}, "errors": [{"message": "NOT_FOUND"}]}
        )
        with pytest.raises(FetchError):
            self.client.execute("query")

    def test_partial_errors_allowed(self):
        """Test that probing documents may return data alongside errors."""
        self.client._session.post.return_value = http_response(
            payload={
                "data": {"user": None, "organization": {"projectV2": {"id": "PVT_1"}}},
                "errors": [{"type": "NOT_FOUND", "message": "Could not resolve to a User"}],
            }
        )
        data = self.client.execute("query", allow_partial=True)
        assert data["organization"]["projectV2"]["id"] == "PVT_1"

    def test_unauthorized(self):
        self.client._session.post.return_value = http_response(401, text='{"message": "Bad credentials"}')
        with pytest.raises(AuthenticationError) as exc_info:
            self.client.execute("query")
        assert exc_info.value.status_code == 401

    def test_server_error(self):
        self.client._session.post.return_value = http_response(502, text="Bad Gateway")
        with pytest.raises(FetchError) as exc_info:
            self.client.execute("query")
        assert exc_info.value.status_code == 502

    def test_invalid_json(self):
        self.client._session.post.return_value = http_response(200, payload=None, text="<html>")
        with pytest.raises(FetchError) as exc_info:
            self.client.execute("query")
        assert "decode" in str(exc_info.value)

    def test_timeout(self):
        self.client._session.post.side_effect = requests.Timeout("read timed out")
        with pytest.raises(FetchError) as exc_info:
            self.client.execute("query")
        assert "timed out" in str(exc_info.value)

    def test_connection_error(self):
        self.client._session.post.side_effect = requests.ConnectionError("refused")
        with pytest.raises(FetchError) as exc_info:
            self.client.execute("query")
        assert "refused" in str(exc_info.value)

    def test_missing_data(self):
        self.client._session.post.return_value = http_response(payload={})
        with pytest.raises(FetchError):
            self.client.execute("query")


class TestCliTransport:
    """Test GraphQL through `gh api graphql`."""

    def setup_method(self):
        self.client = GraphQLClient(cli_auth(), timeout=5)

    def test_arguments(self):
        """Test that ints use -F and strings use -f."""
        with patch("gh_projects.client.subprocess.run") as run:
            run.return_value = completed(stdout=json.dumps({"data": {"ok": True}}))
            self.client.execute("query Q", {"owner": "acme", "number": 7, "after": None})

        args = run.call_args[0][0]
        assert args[:5] == ["gh", "api", "graphql", "-f", "query=query Q"]
        assert ["-f", "owner=acme"] == args[5:7]
        assert ["-F", "number=7"] == args[7:9]
        assert "after" not in " ".join(args)
        assert run.call_args[1]["timeout"] == 5

    def test_nonzero_exit_with_partial_data(self):
        """Test that gh's non-zero exit for partial errors still yields data."""
        payload = {
            "data": {"user": None, "organization": {"projectV2": {"id": "PVT_1"}}},
            "errors": [{"message": "Could not resolve to a User"}],
        }
        with patch("gh_projects.client.subprocess.run") as run:
            run.return_value = completed(stdout=json.dumps(payload), returncode=1)
            data = self.client.execute("query", allow_partial=True)
        assert data["organization"]["projectV2"]["id"] == "PVT_1"

    def test_nonzero_exit_without_output(self):
        with patch("gh_projects.client.subprocess.run") as run:
            run.return_value = completed(stdout="", stderr="HTTP 502", returncode=1)
            with pytest.raises(FetchError) as exc_info:
                self.client.execute("query")
        assert "HTTP 502" in str(exc_info.value)

    def test_unparsable_output(self):
        with patch("gh_projects.client.subprocess.run") as run:
            run.return_value = completed(stdout="not json")
            with pytest.raises(FetchError) as exc_info:
                self.client.execute("query")
        assert "parse" in str(exc_info.value)

    def test_errors_without_data(self):
        with patch("gh_projects.client.subprocess.run") as run:
            run.return_value = completed(
                stdout=json.dumps({"errors": [{"message": "Something went wrong"}]}), returncode=1
            )
            with pytest.raises(FetchError) as exc_info:
                self.client.execute("query")
        assert "Something went wrong" in str(exc_info.value)

    def test_timeout(self):
        with patch("gh_projects.client.subprocess.run") as run:
            run.side_effect = subprocess.TimeoutExpired(cmd="gh", timeout=5)
            with pytest.raises(FetchError) as exc_info:
                self.client.execute("query")
        assert "timed out" in str(exc_info.value)

    def test_gh_missing(self):
        with patch("gh_projects.client.subprocess.run") as run:
            run.side_effect = FileNotFoundError("gh")
            with pytest.raises(FetchError):
                self.client.execute("query")

    def test_stderr_is_sanitized(self):
        secret = "ghp_" + "z" * 36
        with patch("gh_projects.client.subprocess.run") as run:
            run.return_value = completed(stdout="", stderr=f"bad token {secret}", returncode=1)
            with pytest.raises(FetchError) as exc_info:
                self.client.execute("query")
        assert secret not in str(exc_info.value)
