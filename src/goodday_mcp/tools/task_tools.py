"""
GoodDay Tools — project, user and task operations

Tools:
  list_projects  — All projects in the organization
  list_users     — All users in the organization
  get_project    — One project by ID
  get_user       — One user by ID
  list_tasks     — Tasks, optionally scoped to a project (by ID or name)
  get_task       — One task by ID
  create_task    — New task
  update_task    — Change an existing task
  delete_task    — Remove a task
  health_check   — GoodDay API reachability

Arguments are validated against a pydantic model per tool before any
remote call. Tool argument names are translated to the GoodDay write
vocabulary here (description -> message, assignee_id -> toUserId,
due_date -> deadline, estimated_hours -> estimate in minutes, priority
label -> numeric level).
"""

from typing import Any, Dict, List, Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from goodday_mcp.api.client import GoodDayClient, RemoteRequestError
from goodday_mcp.models import Project, Task, TaskCreateRequest, TaskUpdateRequest, User
from goodday_mcp.server.logger import get_logger
from goodday_mcp.server.protocol import tool_error, tool_ok

log = get_logger("tools.goodday")

_client: Optional[GoodDayClient] = None


def set_client(client: Optional[GoodDayClient]):
    """Called by the CLI to inject the shared API client."""
    global _client
    _client = client


def _require_client() -> GoodDayClient:
    if _client is None:
        raise RuntimeError("GoodDay client not configured")
    return _client


class ToolValidationError(Exception):
    """Tool arguments missing or out of range."""


PRIORITY_LEVELS = {"low": 1, "normal": 3, "high": 5, "urgent": 7}
DEFAULT_PRIORITY = PRIORITY_LEVELS["normal"]

PriorityLabel = Literal["low", "normal", "high", "urgent"]


def priority_level(label: Optional[str]) -> int:
    """Numeric GoodDay priority for a label; unknown or missing means normal."""
    return PRIORITY_LEVELS.get((label or "").lower(), DEFAULT_PRIORITY)


def hours_to_minutes(hours: Optional[float]) -> Optional[int]:
    if hours is None:
        return None
    return int(round(hours * 60))


# ── Argument models ─────────────────────────────────────────────────────────


class _ToolInput(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore")


def _fold_priority(value):
    return value.strip().lower() if isinstance(value, str) else value


class NoInput(_ToolInput):
    pass


class ProjectIdInput(_ToolInput):
    project_id: str = Field(..., min_length=1)


class UserIdInput(_ToolInput):
    user_id: str = Field(..., min_length=1)


class TaskIdInput(_ToolInput):
    task_id: str = Field(..., min_length=1)


class ListTasksInput(_ToolInput):
    project_id: Optional[str] = None
    project_name: Optional[str] = None


class CreateTaskInput(_ToolInput):
    title: str = Field(..., min_length=1)
    description: Optional[str] = None
    project_id: Optional[str] = None
    project_name: Optional[str] = None
    assignee_id: Optional[str] = None
    from_user_id: Optional[str] = None
    priority: Optional[PriorityLabel] = None
    due_date: Optional[str] = None
    estimated_hours: Optional[float] = Field(default=None, ge=0)
    tags: List[str] = Field(default_factory=list)

    @field_validator("priority", mode="before")
    @classmethod
    def fold_priority(cls, value):
        return _fold_priority(value)


class UpdateTaskInput(_ToolInput):
    task_id: str = Field(..., min_length=1)
    title: Optional[str] = None
    description: Optional[str] = None
    status: Optional[str] = None
    priority: Optional[PriorityLabel] = None
    assignee_id: Optional[str] = None
    due_date: Optional[str] = None
    estimated_hours: Optional[float] = Field(default=None, ge=0)
    progress: Optional[float] = Field(default=None, ge=0, le=100)
    tags: List[str] = Field(default_factory=list)

    @field_validator("priority", mode="before")
    @classmethod
    def fold_priority(cls, value):
        return _fold_priority(value)


def validate_arguments(model, args: Dict[str, Any]):
    """Parse raw tool arguments, raising ToolValidationError with a readable summary."""
    try:
        return model.model_validate(args or {})
    except ValidationError as exc:
        problems = []
        for err in exc.errors():
            field = ".".join(str(p) for p in err["loc"]) or "arguments"
            if err["type"] == "missing":
                problems.append(f"missing required argument '{field}'")
            else:
                problems.append(f"{field}: {err['msg']}")
        raise ToolValidationError("; ".join(problems)) from exc


# ── Tool catalog ────────────────────────────────────────────────────────────

_PRIORITY_SCHEMA = {
    "type": "string",
    "enum": list(PRIORITY_LEVELS),
}

TOOLS: List[Dict[str, Any]] = [
    {
        "name": "list_projects",
        "description": "List all GoodDay projects in the organization",
        "inputSchema": {"type": "object", "properties": {}, "required": []},
    },
    {
        "name": "list_users",
        "description": "List all users in the GoodDay organization",
        "inputSchema": {"type": "object", "properties": {}, "required": []},
    },
    {
        "name": "get_project",
        "description": "Get details of a specific GoodDay project by ID",
        "inputSchema": {
            "type": "object",
            "properties": {
                "project_id": {"type": "string", "description": "The ID of the project to retrieve"},
            },
            "required": ["project_id"],
        },
    },
    {
        "name": "get_user",
        "description": "Get details of a specific GoodDay user by ID",
        "inputSchema": {
            "type": "object",
            "properties": {
                "user_id": {"type": "string", "description": "The ID of the user to retrieve"},
            },
            "required": ["user_id"],
        },
    },
    {
        "name": "list_tasks",
        "description": "List GoodDay tasks, optionally filtered by project ID or project name",
        "inputSchema": {
            "type": "object",
            "properties": {
                "project_id": {
                    "type": "string",
                    "description": "Only list tasks of this project",
                },
                "project_name": {
                    "type": "string",
                    "description": "Only list tasks of the first project whose name contains this text (case-insensitive). Ignored when project_id is given.",
                },
            },
            "required": [],
        },
    },
    {
        "name": "get_task",
        "description": "Get details of a specific GoodDay task by ID",
        "inputSchema": {
            "type": "object",
            "properties": {
                "task_id": {"type": "string", "description": "The ID of the task to retrieve"},
            },
            "required": ["task_id"],
        },
    },
    {
        "name": "create_task",
        "description": "Create a new task in GoodDay",
        "inputSchema": {
            "type": "object",
            "properties": {
                "title": {"type": "string", "description": "Title of the task"},
                "description": {"type": "string", "description": "Description of the task"},
                "project_id": {
                    "type": "string",
                    "description": "ID of the project to create the task in (optional if project_name is provided)",
                },
                "project_name": {
                    "type": "string",
                    "description": "Name of the project to create the task in (resolved to a project ID)",
                },
                "assignee_id": {"type": "string", "description": "ID of the user to assign the task to"},
                "from_user_id": {
                    "type": "string",
                    "description": "ID of the user recorded as the task creator (defaults to the server's configured user)",
                },
                "priority": dict(_PRIORITY_SCHEMA, description="Priority level of the task"),
                "due_date": {"type": "string", "description": "Due date for the task (YYYY-MM-DD)"},
                "estimated_hours": {
                    "type": "number",
                    "minimum": 0,
                    "description": "Estimated hours for the task",
                },
                "tags": {
                    "type": "array",
                    "items": {"type": "string"},
                    "description": "Tags for the task (not supported by GoodDay; reported back, not applied)",
                },
            },
            "required": ["title"],
        },
    },
    {
        "name": "update_task",
        "description": "Update an existing GoodDay task",
        "inputSchema": {
            "type": "object",
            "properties": {
                "task_id": {"type": "string", "description": "ID of the task to update"},
                "title": {"type": "string", "description": "New title for the task"},
                "description": {"type": "string", "description": "New description for the task"},
                "status": {"type": "string", "description": "New status for the task"},
                "priority": dict(_PRIORITY_SCHEMA, description="New priority level for the task"),
                "assignee_id": {"type": "string", "description": "ID of the new assignee for the task"},
                "due_date": {"type": "string", "description": "New due date for the task (YYYY-MM-DD)"},
                "estimated_hours": {
                    "type": "number",
                    "minimum": 0,
                    "description": "New estimated hours for the task",
                },
                "progress": {
                    "type": "number",
                    "minimum": 0,
                    "maximum": 100,
                    "description": "Progress percentage for the task (0-100)",
                },
                "tags": {
                    "type": "array",
                    "items": {"type": "string"},
                    "description": "New tags for the task (not supported by GoodDay; reported back, not applied)",
                },
            },
            "required": ["task_id"],
        },
    },
    {
        "name": "delete_task",
        "description": "Delete a GoodDay task by ID",
        "inputSchema": {
            "type": "object",
            "properties": {
                "task_id": {"type": "string", "description": "ID of the task to delete"},
            },
            "required": ["task_id"],
        },
    },
    {
        "name": "health_check",
        "description": "Check the health status of the GoodDay API connection",
        "inputSchema": {"type": "object", "properties": {}, "required": []},
    },
]


# ── Dispatch ────────────────────────────────────────────────────────────────


async def handle_tool(name: str, args: Dict[str, Any]) -> Dict[str, Any]:
    entry = _HANDLERS.get(name)
    if not entry:
        return tool_error(f"❌ Unknown GoodDay tool: {name}")

    model, handler, action = entry
    try:
        params = validate_arguments(model, args)
        return await handler(params)
    except ToolValidationError as exc:
        log.warning(f"Tool {name} rejected arguments: {exc}")
        return tool_error(f"❌ **Invalid arguments for {name}:** {exc}")
    except RemoteRequestError as exc:
        log.error(f"Tool {name} failed: {exc}")
        return tool_error(f"❌ **Error {action}:** {exc}")
    except Exception as exc:
        log.error(f"Tool {name} failed: {exc}", exc_info=True)
        return tool_error(f"❌ **Error {action}:** {exc}")


# ── Project name resolution ─────────────────────────────────────────────────


def find_project(projects: List[Project], name: str) -> Optional[Project]:
    """First project whose name contains `name`, ignoring case. Ambiguity is not reported."""
    needle = name.lower()
    for project in projects:
        if needle in project.name.lower():
            return project
    return None


def _project_not_found(name: str, projects: List[Project]) -> Dict[str, Any]:
    available = "\n".join(f"- {p.name} (ID: {p.id})" for p in projects) or "(none)"
    return tool_error(
        f"❌ **Project not found!**\n\n"
        f"Could not find a project matching \"{name}\".\n\n"
        f"Available projects:\n{available}"
    )


async def _resolve_project(project_id: Optional[str], project_name: Optional[str]) -> Tuple[Optional[str], Optional[str], Optional[Dict]]:
    """
    Returns (project_id, display_name, not_found_result).
    The name is only looked up when no ID is given.
    """
    if project_id or not project_name:
        return project_id, project_id, None

    projects = await _require_client().list_projects()
    project = find_project(projects, project_name)
    if project is None:
        log.info(f"No project matches {project_name!r} among {len(projects)} projects")
        return None, None, _project_not_found(project_name, projects)

    log.info(f"Resolved project name {project_name!r} to ID {project.id}")
    return project.id, project.name, None


# ── Rendering ───────────────────────────────────────────────────────────────


def _pct(value) -> str:
    return f"{value or 0:g}%"


def _or(value, fallback: str) -> str:
    if value is None or value == "":
        return fallback
    if isinstance(value, float):
        return f"{value:g}"
    return str(value)


def format_project(project: Project) -> str:
    return (
        f"- **{project.name}** (ID: {project.id})\n"
        f"  Description: {_or(project.description, 'No description')}\n"
        f"  Status: {_or(project.status, 'Unknown')}\n"
        f"  Progress: {_pct(project.progress)}\n"
    )


def format_user(user: User) -> str:
    return (
        f"- **{user.full_name}** (ID: {user.id})\n"
        f"  Email: {user.email}\n"
        f"  Role: {_or(user.role, 'Not specified')}\n"
        f"  Department: {_or(user.department, 'Not specified')}\n"
    )


def format_task(task: Task) -> str:
    return (
        f"- **{task.title}** (ID: {task.id})\n"
        f"  Status: {_or(task.status, 'Unknown')}\n"
        f"  Priority: {_or(task.priority, 'Not set')}\n"
        f"  Assignee: {_or(task.assigneeName, 'Unassigned')}\n"
        f"  Progress: {_pct(task.progress)}\n"
        f"  Due Date: {_or(task.dueDate, 'Not set')}\n"
    )


def _tags_warning(tags: List[str]) -> str:
    if not tags:
        return ""
    return (
        "\n\n⚠️ **Note:** Tags are not supported by the GoodDay API. "
        f"The tags \"{', '.join(tags)}\" were not applied to the task."
    )


# ── Handlers ────────────────────────────────────────────────────────────────


async def _list_projects(params: NoInput) -> Dict:
    projects = await _require_client().list_projects()
    body = "\n".join(format_project(p) for p in projects)
    return tool_ok(f"Found {len(projects)} projects:\n\n{body}")


async def _list_users(params: NoInput) -> Dict:
    users = await _require_client().list_users()
    body = "\n".join(format_user(u) for u in users)
    return tool_ok(f"Found {len(users)} users:\n\n{body}")


async def _get_project(params: ProjectIdInput) -> Dict:
    project = await _require_client().get_project(params.project_id)
    return tool_ok(
        "**Project Details:**\n\n"
        f"**Name:** {project.name}\n"
        f"**ID:** {project.id}\n"
        f"**Description:** {_or(project.description, 'No description')}\n"
        f"**Status:** {_or(project.status, 'Unknown')}\n"
        f"**Progress:** {_pct(project.progress)}\n"
        f"**Owner:** {_or(project.ownerName, 'Not specified')}\n"
        f"**Team Size:** {_or(project.teamSize, 'Not specified')}\n"
        f"**Start Date:** {_or(project.startDate, 'Not set')}\n"
        f"**End Date:** {_or(project.endDate, 'Not set')}"
    )


async def _get_user(params: UserIdInput) -> Dict:
    user = await _require_client().get_user(params.user_id)
    return tool_ok(
        "**User Details:**\n\n"
        f"**Name:** {user.full_name}\n"
        f"**ID:** {user.id}\n"
        f"**Email:** {user.email}\n"
        f"**Role:** {_or(user.role, 'Not specified')}\n"
        f"**Department:** {_or(user.department, 'Not specified')}\n"
        f"**Active:** {'Yes' if user.isActive else 'No'}"
    )


async def _list_tasks(params: ListTasksInput) -> Dict:
    project_id, label, not_found = await _resolve_project(params.project_id, params.project_name)
    if not_found:
        return not_found

    tasks = await _require_client().list_tasks(project_id)
    scope = f" for project {label}" if project_id else ""
    body = "\n".join(format_task(t) for t in tasks)
    return tool_ok(f"Found {len(tasks)} tasks{scope}:\n\n{body}")


async def _get_task(params: TaskIdInput) -> Dict:
    task = await _require_client().get_task(params.task_id)
    return tool_ok(
        "**Task Details:**\n\n"
        f"**Title:** {task.title}\n"
        f"**ID:** {task.id}\n"
        f"**Description:** {_or(task.description, 'No description')}\n"
        f"**Status:** {_or(task.status, 'Unknown')}\n"
        f"**Priority:** {_or(task.priority, 'Not set')}\n"
        f"**Assignee:** {_or(task.assigneeName, 'Unassigned')}\n"
        f"**Project:** {_or(task.projectName, 'Unknown')}\n"
        f"**Progress:** {_pct(task.progress)}\n"
        f"**Due Date:** {_or(task.dueDate, 'Not set')}\n"
        f"**Estimated Hours:** {_or(task.estimatedHours, 'Not set')}\n"
        f"**Actual Hours:** {_or(task.actualHours, 'Not set')}"
    )


def build_create_request(params: CreateTaskInput, project_id: Optional[str]) -> TaskCreateRequest:
    return TaskCreateRequest(
        title=params.title,
        projectId=project_id,
        message=params.description,
        toUserId=params.assignee_id,
        fromUserId=params.from_user_id,
        priority=priority_level(params.priority),
        deadline=params.due_date,
        estimate=hours_to_minutes(params.estimated_hours),
    )


def build_update_request(params: UpdateTaskInput) -> TaskUpdateRequest:
    return TaskUpdateRequest(
        title=params.title,
        message=params.description,
        status=params.status,
        priority=priority_level(params.priority) if params.priority else None,
        toUserId=params.assignee_id,
        deadline=params.due_date,
        estimate=hours_to_minutes(params.estimated_hours),
        progress=params.progress,
    )


async def _create_task(params: CreateTaskInput) -> Dict:
    project_id, project_label, not_found = await _resolve_project(
        params.project_id, params.project_name
    )
    if not_found:
        return not_found

    task = await _require_client().create_task(build_create_request(params, project_id))

    output = (
        "✅ **Task created successfully!**\n\n"
        f"**Title:** {task.title}\n"
        f"**ID:** {task.id}\n"
        f"**Project:** {_or(task.projectName or project_label, 'Not specified')}\n"
        f"**Status:** {_or(task.status, 'Not started')}\n"
        f"**Assignee:** {_or(task.assigneeName or params.assignee_id, 'Unassigned')}"
    )
    if params.priority:
        output += f"\n**Priority:** {params.priority}"
    if params.due_date:
        output += f"\n**Due Date:** {params.due_date}"
    if params.estimated_hours is not None:
        output += f"\n**Estimated Hours:** {params.estimated_hours:g}"
    if params.description:
        output += "\n**Description:** ✅ Included"

    return tool_ok(output + _tags_warning(params.tags))


async def _update_task(params: UpdateTaskInput) -> Dict:
    request = build_update_request(params)
    if not request.to_payload():
        raise ToolValidationError(
            "no updatable fields supplied"
            + (" (tags are not supported by GoodDay)" if params.tags else "")
        )

    task = await _require_client().update_task(params.task_id, request)
    return tool_ok(
        "✅ **Task updated successfully!**\n\n"
        f"**Title:** {task.title}\n"
        f"**ID:** {task.id}\n"
        f"**Status:** {_or(task.status, 'Unknown')}\n"
        f"**Priority:** {_or(task.priority, 'Not set')}\n"
        f"**Assignee:** {_or(task.assigneeName, 'Unassigned')}\n"
        f"**Progress:** {_pct(task.progress)}"
        + _tags_warning(params.tags)
    )


async def _delete_task(params: TaskIdInput) -> Dict:
    await _require_client().delete_task(params.task_id)
    return tool_ok(f"✅ **Task deleted successfully!**\n\nTask ID: {params.task_id}")


async def _health_check(params: NoInput) -> Dict:
    client = _require_client()
    if await client.health_check():
        return tool_ok(f"✅ **GoodDay API is healthy and connected!** ({client.base_url})")
    return tool_error(f"❌ **GoodDay API connection failed!** ({client.base_url})")


_HANDLERS = {
    "list_projects": (NoInput, _list_projects, "fetching projects"),
    "list_users": (NoInput, _list_users, "fetching users"),
    "get_project": (ProjectIdInput, _get_project, "fetching project"),
    "get_user": (UserIdInput, _get_user, "fetching user"),
    "list_tasks": (ListTasksInput, _list_tasks, "fetching tasks"),
    "get_task": (TaskIdInput, _get_task, "fetching task"),
    "create_task": (CreateTaskInput, _create_task, "creating task"),
    "update_task": (UpdateTaskInput, _update_task, "updating task"),
    "delete_task": (TaskIdInput, _delete_task, "deleting task"),
    "health_check": (NoInput, _health_check, "checking API health"),
}
