"""Tool definitions and dispatch for the Huly tracker."""

import json
import logging
from typing import Any, Dict, List

from mcp import types

from ..exceptions import InvalidArgumentError
from ..tracker.service import TrackerService

logger = logging.getLogger(__name__)

_ISSUE_ID = {
    "type": "string",
    "description": 'Issue identifier (e.g., "PRYLA-42")',
}
_PROJECT = {
    "type": "string",
    "description": 'Project identifier (e.g., "PRYLA")',
}
_PRIORITY = {
    "type": "string",
    "description": "Priority: urgent, high, medium, low, none",
}


def get_tools() -> List[types.Tool]:
    """Tools exposed by the server."""
    return [
        # 1. list_projects
        types.Tool(
            name="list_projects",
            description="List all projects in the Huly workspace",
            inputSchema={"type": "object", "properties": {}, "required": []},
        ),
        # 2. get_project
        types.Tool(
            name="get_project",
            description='Get a project by identifier (e.g., "PRYLA")',
            inputSchema={
                "type": "object",
                "properties": {"identifier": _PROJECT},
                "required": ["identifier"],
            },
        ),
        # 3. list_issues
        types.Tool(
            name="list_issues",
            description=(
                "List issues in a project with optional filtering. The limit is "
                "applied before the status and label filters. A label that does not "
                "exist matches no issues."
            ),
            inputSchema={
                "type": "object",
                "properties": {
                    "project": _PROJECT,
                    "status": {
                        "type": "string",
                        "description": "Filter by status (Backlog, Todo, In Progress, Done, Canceled)",
                    },
                    "priority": {
                        "type": "string",
                        "description": "Filter by priority (urgent, high, medium, low, none)",
                    },
                    "label": {
                        "type": "string",
                        "description": "Filter by label name",
                    },
                    "limit": {
                        "type": "integer",
                        "minimum": 1,
                        "default": 50,
                        "description": "Maximum number of issues to return (default: 50)",
                    },
                },
                "required": ["project"],
            },
        ),
        # 4. get_issue
        types.Tool(
            name="get_issue",
            description='Get a specific issue by number (e.g., "PRYLA-42")',
            inputSchema={
                "type": "object",
                "properties": {"issueId": _ISSUE_ID},
                "required": ["issueId"],
            },
        ),
        # 5. create_issue
        types.Tool(
            name="create_issue",
            description="Create a new issue in a project",
            inputSchema={
                "type": "object",
                "properties": {
                    "project": _PROJECT,
                    "title": {"type": "string", "description": "Issue title"},
                    "description": {
                        "type": "string",
                        "description": "Issue description (Markdown supported)",
                    },
                    "priority": _PRIORITY,
                    "status": {
                        "type": "string",
                        "description": "Initial status (default: Todo)",
                    },
                    "labels": {
                        "type": "array",
                        "items": {"type": "string"},
                        "description": "Labels to apply to the issue",
                    },
                },
                "required": ["project", "title"],
            },
        ),
        # 6. update_issue
        types.Tool(
            name="update_issue",
            description="Update an existing issue. Unknown status names are ignored.",
            inputSchema={
                "type": "object",
                "properties": {
                    "issueId": _ISSUE_ID,
                    "title": {"type": "string", "description": "New title"},
                    "description": {"type": "string", "description": "New description"},
                    "priority": _PRIORITY,
                    "status": {
                        "type": "string",
                        "description": "New status: Backlog, Todo, In Progress, Done, Canceled",
                    },
                },
                "required": ["issueId"],
            },
        ),
        # 7. add_label
        types.Tool(
            name="add_label",
            description="Add a label to an issue",
            inputSchema={
                "type": "object",
                "properties": {
                    "issueId": _ISSUE_ID,
                    "label": {"type": "string", "description": "Label name to add"},
                },
                "required": ["issueId", "label"],
            },
        ),
        # 8. remove_label
        types.Tool(
            name="remove_label",
            description="Remove a label from an issue",
            inputSchema={
                "type": "object",
                "properties": {
                    "issueId": _ISSUE_ID,
                    "label": {"type": "string", "description": "Label name to remove"},
                },
                "required": ["issueId", "label"],
            },
        ),
        # 9. list_labels
        types.Tool(
            name="list_labels",
            description="List all available labels",
            inputSchema={"type": "object", "properties": {}, "required": []},
        ),
        # 10. create_label
        types.Tool(
            name="create_label",
            description="Create a new label",
            inputSchema={
                "type": "object",
                "properties": {
                    "name": {"type": "string", "description": "Label name"},
                    "color": {
                        "type": ["integer", "string"],
                        "description": 'Label color as a number (e.g., 0xFF6B6B) or "#FF6B6B"',
                    },
                },
                "required": ["name"],
            },
        ),
        # 11. add_relation
        types.Tool(
            name="add_relation",
            description="Mark an issue as related to another issue",
            inputSchema={
                "type": "object",
                "properties": {
                    "issueId": _ISSUE_ID,
                    "relatedToIssueId": {
                        "type": "string",
                        "description": 'Related issue identifier (e.g., "PRYLA-7")',
                    },
                },
                "required": ["issueId", "relatedToIssueId"],
            },
        ),
        # 12. add_blocked_by
        types.Tool(
            name="add_blocked_by",
            description="Mark an issue as blocked by another issue",
            inputSchema={
                "type": "object",
                "properties": {
                    "issueId": _ISSUE_ID,
                    "blockedByIssueId": {
                        "type": "string",
                        "description": 'Blocking issue identifier (e.g., "PRYLA-7")',
                    },
                },
                "required": ["issueId", "blockedByIssueId"],
            },
        ),
        # 13. set_parent
        types.Tool(
            name="set_parent",
            description="Set the parent issue, replacing any existing parent",
            inputSchema={
                "type": "object",
                "properties": {
                    "issueId": _ISSUE_ID,
                    "parentIssueId": {
                        "type": "string",
                        "description": 'Parent issue identifier (e.g., "PRYLA-1")',
                    },
                },
                "required": ["issueId", "parentIssueId"],
            },
        ),
    ]


def _require(arguments: Dict[str, Any], key: str) -> Any:
    value = arguments.get(key)
    if value is None or (isinstance(value, str) and not value.strip()):
        raise InvalidArgumentError(f"Missing required argument: {key}")
    return value


async def execute_tool(tracker: TrackerService, tool_name: str, arguments: Dict[str, Any]) -> str:
    """Run a tool and return its JSON result. Errors propagate to the caller."""
    if tool_name == "list_projects":
        result = await tracker.projects.list_projects()
    elif tool_name == "get_project":
        result = await tracker.projects.get_project(_require(arguments, "identifier"))
    elif tool_name == "list_issues":
        result = await tracker.issues.list_issues(
            _require(arguments, "project"),
            status=arguments.get("status"),
            priority=arguments.get("priority"),
            label=arguments.get("label"),
            limit=arguments.get("limit"),
        )
    elif tool_name == "get_issue":
        result = await tracker.issues.get_issue(_require(arguments, "issueId"))
    elif tool_name == "create_issue":
        result = await tracker.issues.create_issue(
            _require(arguments, "project"),
            _require(arguments, "title"),
            description=arguments.get("description"),
            priority=arguments.get("priority"),
            status=arguments.get("status"),
            labels=arguments.get("labels"),
        )
    elif tool_name == "update_issue":
        result = await tracker.issues.update_issue(
            _require(arguments, "issueId"),
            title=arguments.get("title"),
            description=arguments.get("description"),
            priority=arguments.get("priority"),
            status=arguments.get("status"),
        )
    elif tool_name == "add_label":
        result = await tracker.add_label(
            _require(arguments, "issueId"), _require(arguments, "label")
        )
    elif tool_name == "remove_label":
        result = await tracker.remove_label(
            _require(arguments, "issueId"), _require(arguments, "label")
        )
    elif tool_name == "list_labels":
        result = await tracker.labels.list_labels()
    elif tool_name == "create_label":
        result = await tracker.labels.create_label(
            _require(arguments, "name"), arguments.get("color")
        )
    elif tool_name == "add_relation":
        result = await tracker.relations.add_relation(
            _require(arguments, "issueId"), _require(arguments, "relatedToIssueId")
        )
    elif tool_name == "add_blocked_by":
        result = await tracker.relations.add_blocked_by(
            _require(arguments, "issueId"), _require(arguments, "blockedByIssueId")
        )
    elif tool_name == "set_parent":
        result = await tracker.relations.set_parent(
            _require(arguments, "issueId"), _require(arguments, "parentIssueId")
        )
    else:
        raise InvalidArgumentError(f"Unknown tool: {tool_name}")

    return json.dumps(result, indent=2)
