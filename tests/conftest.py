"""
Shared builders for GitHub Projects test data.
"""
from datetime import date

import pytest

from gh_projects.constants import TypeNames
from gh_projects.models import Issue, Iteration, ProjectItem, SingleSelectValue


def make_iteration(iteration_id, start, duration=14, title=None):
    """Iteration starting on an ISO date string"""
    return Iteration(
        id=iteration_id,
        title=title or f"Sprint {iteration_id}",
        start_date=date.fromisoformat(start),
        duration=duration,
        field_id="PVTIF_iteration",
        field_name="Iteration",
    )


def make_issue(number, state="OPEN", status=None, status_field="Status", item_id=None):
    """Open issue with one project item and an optional status value"""
    values = []
    if status is not None:
        values.append(SingleSelectValue(field_id="PVTSSF_status", field_name=status_field, name=status))
    return Issue(
        id=f"I_{number}",
        number=number,
        title=f"Issue {number}",
        state=state,
        project_items=[ProjectItem(id=item_id or f"PVTI_{number}", field_values=values)],
    )


def iteration_node(iteration_id, start, duration=14, title=None):
    return {
        "id": iteration_id,
        "title": title or f"Sprint {iteration_id}",
        "startDate": start,
        "duration": duration,
    }


def fields_response(active=None, completed=None, field_name="Iteration"):
    """Payload of GET_PROJECT_FIELDS_QUERY"""
    return {
        "node": {
            "fields": {
                "nodes": [
                    {"id": "PVTF_title", "name": "Title", "dataType": "TITLE"},
                    {"id": "PVTSSF_status", "name": "Status", "dataType": "SINGLE_SELECT"},
                    {
                        "id": "PVTIF_iteration",
                        "name": field_name,
                        "dataType": "ITERATION",
                        "configuration": {
                            "iterations": active or [],
                            "completedIterations": completed or [],
                        },
                    },
                ]
            }
        }
    }


def item_node(item_id, number=None, iteration_id=None, status=None, state="OPEN", content=True):
    """One node of GET_ITERATION_ITEMS_QUERY"""
    values = []
    if iteration_id is not None:
        values.append({
            "__typename": TypeNames.ITERATION_VALUE,
            "field": {"id": "PVTIF_iteration", "name": "Iteration"},
            "iterationId": iteration_id,
            "title": f"Sprint {iteration_id}",
        })
    if status is not None:
        values.append({
            "__typename": TypeNames.SINGLE_SELECT_VALUE,
            "field": {"id": "PVTSSF_status", "name": "Status"},
            "name": status,
        })
    # Fields GitHub returns for other value types come back as empty objects
    values.append({})

    if not content:
        node_content = None
    elif number is None:
        # Pull requests and drafts do not match the Issue fragment
        node_content = {}
    else:
        node_content = {
            "id": f"I_{number}",
            "number": number,
            "title": f"Issue {number}",
            "state": state,
            "repository": {"name": "widgets", "owner": {"login": "acme"}},
        }

    return {"id": item_id, "content": node_content, "fieldValues": {"nodes": values}}


def items_response(nodes, has_next_page=False, end_cursor=None):
    """Payload of GET_ITERATION_ITEMS_QUERY"""
    return {
        "node": {
            "items": {
                "pageInfo": {"hasNextPage": has_next_page, "endCursor": end_cursor},
                "nodes": nodes,
            }
        }
    }


@pytest.fixture
def two_sprints():
    return [
        make_iteration("a", "2024-01-01", 14, "Sprint A"),
        make_iteration("b", "2024-01-15", 14, "Sprint B"),
    ]
