"""
Constants and GraphQL documents for GitHub Projects (v2) operations.

Defines the queries used to read project metadata and items, the mutation
used to move an item between iterations, and the vocabulary used to decide
whether an issue counts as complete.
"""

from typing import FrozenSet


# ============================================================================
# API Endpoints and Environment
# ============================================================================

GITHUB_GRAPHQL_URL = "https://api.github.com/graphql"


class EnvVars:
    """Environment variable names read at startup."""

    TOKEN = "GITHUB_TOKEN"
    API_URL = "GH_PROJECTS_API_URL"
    TIMEOUT = "GH_PROJECTS_TIMEOUT"
    LOG_LEVEL = "GH_PROJECTS_LOG_LEVEL"


# ============================================================================
# Query Limits
# ============================================================================

class QueryLimits:
    """Page sizes and request limits."""

    # GitHub caps connection pages at 100 nodes
    ITEMS_PAGE_SIZE = 100
    FIELDS_PAGE_SIZE = 100
    FIELD_VALUES_PAGE_SIZE = 20

    DEFAULT_TIMEOUT_SECONDS = 30

    # Pagination runs slower than this are logged as warnings
    SLOW_PAGINATION_MS = 5000.0


# ============================================================================
# GraphQL Typenames and Data Types
# ============================================================================

class TypeNames:
    """GraphQL __typename values for project item field values."""

    ITERATION_VALUE = "ProjectV2ItemFieldIterationValue"
    SINGLE_SELECT_VALUE = "ProjectV2ItemFieldSingleSelectValue"


class FieldDataTypes:
    """ProjectV2 field dataType values."""

    ITERATION = "ITERATION"


class IssueStates:
    """Issue lifecycle states reported by GitHub."""

    CLOSED = "CLOSED"


# ============================================================================
# Completion Vocabulary
# ============================================================================

# Single-select field names (lowercase) that carry an item's status
STATUS_FIELD_NAMES: FrozenSet[str] = frozenset({"status", "state"})

# Status values (lowercase) that mark an item as finished
COMPLETED_STATUS_VALUES: FrozenSet[str] = frozenset({"done", "completed", "closed"})

NO_STATUS = "No Status"


# ============================================================================
# GraphQL Documents
# ============================================================================

GET_PROJECT_QUERY = """
query($owner: String!, $number: Int!) {
  user(login: $owner) {
    projectV2(number: $number) {
      id
      title
      number
    }
  }
  organization(login: $owner) {
    projectV2(number: $number) {
      id
      title
      number
    }
  }
}
"""

GET_PROJECT_FIELDS_QUERY = """
query($projectId: ID!) {
  node(id: $projectId) {
    ... on ProjectV2 {
      fields(first: %d) {
        nodes {
          ... on ProjectV2Field {
            id
            name
            dataType
          }
          ... on ProjectV2IterationField {
            id
            name
            dataType
            configuration {
              iterations {
                id
                title
                startDate
                duration
              }
              completedIterations {
                id
                title
                startDate
                duration
              }
            }
          }
          ... on ProjectV2SingleSelectField {
            id
            name
            dataType
          }
        }
      }
    }
  }
}
""" % QueryLimits.FIELDS_PAGE_SIZE

GET_ITERATION_ITEMS_QUERY = """
query($projectId: ID!, $after: String) {
  node(id: $projectId) {
    ... on ProjectV2 {
      items(first: %d, after: $after) {
        pageInfo {
          hasNextPage
          endCursor
        }
        nodes {
          id
          content {
            ... on Issue {
              id
              number
              title
              state
              repository {
                name
                owner {
                  login
                }
              }
            }
          }
          fieldValues(first: %d) {
            nodes {
              ... on ProjectV2ItemFieldIterationValue {
                __typename
                field {
                  ... on ProjectV2IterationField {
                    id
                    name
                  }
                }
                iterationId
                title
              }
              ... on ProjectV2ItemFieldSingleSelectValue {
                __typename
                field {
                  ... on ProjectV2SingleSelectField {
                    id
                    name
                  }
                }
                name
              }
            }
          }
        }
      }
    }
  }
}
""" % (QueryLimits.ITEMS_PAGE_SIZE, QueryLimits.FIELD_VALUES_PAGE_SIZE)

UPDATE_ITEM_ITERATION_MUTATION = """
mutation($projectId: ID!, $itemId: ID!, $fieldId: ID!, $iterationId: String!) {
  updateProjectV2ItemFieldValue(input: {
    projectId: $projectId
    itemId: $itemId
    fieldId: $fieldId
    value: {
      iterationId: $iterationId
    }
  }) {
    projectV2Item {
      id
    }
  }
}
"""
