"""
Input validation for GitHub Projects operations.

This module parses project URLs into an owner and project number and checks
identifiers before they are sent to the GraphQL API.
"""

import re
from dataclasses import dataclass
from typing import Optional, Any

from .errors import GitHubProjectsError, InvalidProjectURLError


class ValidationError(GitHubProjectsError):
    """Raised when input validation fails."""

    def __init__(self, message: str, field_name: Optional[str] = None):
        if field_name:
            message = f"{field_name}: {message}"
        super().__init__(message=message, details={'field': field_name} if field_name else None)
        self.field_name = field_name


@dataclass(frozen=True)
class ProjectRef:
    """Owner login and project number parsed from a project URL."""
    owner: str
    number: int

    def __str__(self) -> str:
        return f"{self.owner}/{self.number}"


class ProjectURLValidator:
    """Validator for GitHub project URLs."""

    # github.com/{owner}/projects/{n}, with optional users/ or orgs/ segment.
    # Trailing segments such as /views/1 and query strings are ignored.
    URL_PATTERN = re.compile(
        r'^(?:https?://)?(?:www\.)?github\.com/'
        r'(?:(?:users|orgs)/)?'
        r'(?P<owner>[A-Za-z0-9](?:[A-Za-z0-9-]*[A-Za-z0-9])?)'
        r'/projects/(?P<number>\d+)'
        r'(?:[/?#].*)?$',
        re.IGNORECASE
    )

    @staticmethod
    def parse(url: str) -> ProjectRef:
        """
        Parse a project URL.

        Args:
            url: e.g. https://github.com/orgs/acme/projects/7

        Returns:
            ProjectRef with owner and number

        Raises:
            InvalidProjectURLError: If the URL is not a GitHub project URL
        """
        if not url or not isinstance(url, str):
            raise InvalidProjectURLError(url, "URL cannot be empty")

        candidate = url.strip()
        if 'github.com' not in candidate.lower() or '/projects/' not in candidate.lower():
            raise InvalidProjectURLError(url, "must be a github.com URL with /projects/")

        match = ProjectURLValidator.URL_PATTERN.match(candidate)
        if not match:
            raise InvalidProjectURLError(url)

        number = int(match.group('number'))
        if number <= 0:
            raise InvalidProjectURLError(url, "project number must be a positive integer")

        return ProjectRef(owner=match.group('owner'), number=number)


class NodeIdValidator:
    """Validator for GraphQL global node IDs."""

    MAX_LENGTH = 256
    NODE_ID_PATTERN = re.compile(r'^[A-Za-z0-9_\-=]+$')

    @staticmethod
    def validate(node_id: Any, field_name: str = "id") -> str:
        """
        Validate a node ID such as PVTI_... or PVTIF_...

        Iteration option IDs are short hex strings and pass the same check.

        Raises:
            ValidationError: If the ID is empty, too long or has illegal characters
        """
        if not node_id or not isinstance(node_id, str):
            raise ValidationError("ID cannot be empty", field_name)

        if len(node_id) > NodeIdValidator.MAX_LENGTH:
            raise ValidationError(
                f"ID exceeds maximum length of {NodeIdValidator.MAX_LENGTH} characters",
                field_name
            )

        if not NodeIdValidator.NODE_ID_PATTERN.fullmatch(node_id):
            raise ValidationError(f"Invalid ID: '{node_id}'", field_name)

        return node_id


def parse_project_url(url: str) -> ProjectRef:
    """Parse a GitHub project URL into owner and number."""
    return ProjectURLValidator.parse(url)


def validate_node_id(node_id: Any, field_name: str = "id") -> str:
    """Validate a GraphQL node ID."""
    return NodeIdValidator.validate(node_id, field_name)


def validate_timeout(value: Any) -> float:
    """
    Validate a request timeout in seconds.

    Accepts numbers and numeric strings (as read from the environment).

    Raises:
        ValidationError: If the value is not a positive number
    """
    try:
        timeout = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"Timeout must be a number, got '{value}'", "timeout")

    if timeout <= 0:
        raise ValidationError("Timeout must be positive", "timeout")

    return timeout
