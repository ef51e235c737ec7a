"""
Custom exception classes for the GitHub Projects rollover tool.

Provides structured error handling with helpful messages for project
lookup, iteration resolution, GitHub API and mutation failures.
"""

from typing import Optional, Any


class GitHubProjectsError(Exception):
    """
    Base exception for all gh-projects errors.

    Attributes:
        message: Human-readable error message
        original_error: The original exception that was caught
        details: Additional error details
        stage: Step of the rollover that failed, set by the orchestration
    """

    def __init__(
        self,
        message: str = "GitHub Projects error",
        original_error: Optional[Exception] = None,
        details: Optional[Any] = None
    ):
        self.message = message
        self.original_error = original_error
        self.details = details
        self.stage: Optional[str] = None
        super().__init__(message)

    def __str__(self) -> str:
        return self.message

    def describe(self) -> str:
        """Message prefixed with the failed stage, for display to the user."""
        if self.stage:
            return f"{self.stage}: {self}"
        return str(self)

    def to_dict(self) -> dict:
        """Convert error to dictionary for JSON serialization."""
        return {
            'error': self.__class__.__name__,
            'message': self.message,
            'stage': self.stage,
            'details': str(self.details) if self.details else None
        }


# ============================================================================
# Project lookup
# ============================================================================

class InvalidProjectURLError(GitHubProjectsError):
    """Raised when a project URL cannot be parsed into owner and number."""

    def __init__(self, url: Optional[str] = None, reason: Optional[str] = None):
        message = (
            "Invalid GitHub project URL: expected format "
            "https://github.com/{owner}/projects/{number}"
        )
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message=message, details={'url': url} if url else None)
        self.url = url


class ProjectNotFoundError(GitHubProjectsError):
    """
    Raised when neither a user nor an organization owns the project.

    This can occur when:
    - The owner login or project number is wrong
    - The credentials cannot see the project (private project, missing scope)
    """

    def __init__(self, owner: Optional[str] = None, number: Optional[int] = None):
        if owner and number:
            message = (
                f"Project {owner}/{number} not found. Please verify the URL "
                "and that your token has the 'project' scope."
            )
        else:
            message = "Project not found."
        super().__init__(
            message=message,
            details={'owner': owner, 'number': number}
        )


class NoIterationFieldError(GitHubProjectsError):
    """Raised when the project has no field of iteration type."""

    def __init__(self, message: str = "No iteration field found in project"):
        super().__init__(message=message)


# ============================================================================
# Iteration resolution
# ============================================================================

class IterationResolutionError(GitHubProjectsError):
    """Base class for failures choosing the current and previous iterations."""


class NoIterationsConfiguredError(IterationResolutionError):
    """Raised when the iteration field holds no iterations at all."""

    def __init__(self, message: str = "No iterations found in project"):
        super().__init__(message=message)


class InsufficientIterationsError(IterationResolutionError):
    """Raised when fewer than two usable iterations exist."""

    def __init__(self, count: int = 0):
        super().__init__(
            message=(
                f"Found {count} usable iteration(s); need at least 2 iterations "
                "to perform rollover"
            ),
            details={'count': count}
        )
        self.count = count


class NoCurrentIterationError(IterationResolutionError):
    """Raised when no iteration contains now and none starts in the future."""

    def __init__(self, message: str = "No current or future iteration found"):
        super().__init__(message=message)


class NoPreviousIterationError(IterationResolutionError):
    """Raised when a current iteration exists but nothing precedes it."""

    def __init__(self, current_title: Optional[str] = None):
        message = "No previous iteration found - need at least 2 iterations to perform rollover"
        if current_title:
            message = (
                f"No previous iteration found before '{current_title}' - "
                "need at least 2 iterations to perform rollover"
            )
        super().__init__(message=message)


# ============================================================================
# API failures
# ============================================================================

class FetchError(GitHubProjectsError):
    """
    Raised when a GitHub API call fails or returns an unusable payload.

    This covers transport errors, non-2xx responses, GraphQL errors without
    data and responses that do not match the expected shape.
    """

    def __init__(
        self,
        message: str = "GitHub API request failed",
        status_code: Optional[int] = None,
        original_error: Optional[Exception] = None,
        details: Optional[Any] = None
    ):
        super().__init__(message=message, original_error=original_error, details=details)
        self.status_code = status_code

    def __str__(self) -> str:
        if self.status_code:
            return f"[{self.status_code}] {self.message}"
        return self.message

    def to_dict(self) -> dict:
        data = super().to_dict()
        data['status_code'] = self.status_code
        return data


class AuthenticationError(FetchError):
    """
    Raised when no usable GitHub credentials exist or they are rejected (HTTP 401).

    This can occur when:
    - No token was given and GITHUB_TOKEN is unset
    - The gh CLI is missing or not logged in
    - The token has expired or was revoked
    """

    def __init__(
        self,
        message: str = (
            "Authentication failed. Pass --token, set GITHUB_TOKEN, "
            "or run 'gh auth login'."
        ),
        status_code: Optional[int] = None,
        original_error: Optional[Exception] = None
    ):
        super().__init__(
            message=message,
            status_code=status_code,
            original_error=original_error
        )


class MutationError(GitHubProjectsError):
    """Raised when moving a single project item fails. Never aborts a rollover."""

    def __init__(
        self,
        item_id: Optional[str] = None,
        original_error: Optional[Exception] = None
    ):
        message = "Failed to update item iteration"
        if item_id:
            message = f"Failed to update iteration of item {item_id}"
        if original_error:
            message = f"{message}: {original_error}"
        super().__init__(
            message=message,
            original_error=original_error,
            details={'item_id': item_id} if item_id else None
        )
        self.item_id = item_id


class RolloverCancelled(GitHubProjectsError):
    """Raised when the user quits the interactive review."""

    def __init__(self, message: str = "Operation cancelled by user"):
        super().__init__(message=message)


def map_status_code_to_error(
    status_code: int,
    original_error: Optional[Exception] = None,
    body: Optional[str] = None
) -> FetchError:
    """
    Map an HTTP status code from the GraphQL endpoint to an error class.

    Args:
        status_code: HTTP status code
        original_error: The original exception
        body: Response body, kept as details

    Returns:
        Appropriate FetchError instance
    """
    if status_code == 401:
        return AuthenticationError(
            message="Authentication failed. Your token may have expired or been revoked.",
            status_code=status_code,
            original_error=original_error
        )
    if status_code == 403:
        return FetchError(
            message="Permission denied or rate limit exceeded. Check the token's 'project' scope.",
            status_code=status_code,
            original_error=original_error,
            details=body
        )
    if status_code in (500, 502, 503, 504):
        return FetchError(
            message=f"GitHub API temporarily unavailable (HTTP {status_code})",
            status_code=status_code,
            original_error=original_error,
            details=body
        )
    return FetchError(
        message=f"GitHub API error: HTTP {status_code}",
        status_code=status_code,
        original_error=original_error,
        details=body
    )
