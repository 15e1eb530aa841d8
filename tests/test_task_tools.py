"""Tests for the GoodDay tool dispatcher."""

import pytest

from goodday_mcp import tools
from goodday_mcp.models import Project
from goodday_mcp.tools import task_tools
from goodday_mcp.tools.task_tools import (
    CreateTaskInput,
    ToolValidationError,
    UpdateTaskInput,
    build_create_request,
    build_update_request,
    find_project,
    handle_tool,
    hours_to_minutes,
    priority_level,
    validate_arguments,
)

from conftest import PROJECTS, TASKS, USERS


def _text(result):
    assert len(result["content"]) == 1
    return result["content"][0]["text"]


class TestCatalog:
    def test_tool_names(self):
        names = [t["name"] for t in task_tools.TOOLS]
        assert names == [
            "list_projects", "list_users", "get_project", "get_user", "list_tasks",
            "get_task", "create_task", "update_task", "delete_task", "health_check",
        ]

    def test_required_arguments(self):
        required = {t["name"]: t["inputSchema"]["required"] for t in task_tools.TOOLS}
        assert required["get_project"] == ["project_id"]
        assert required["get_user"] == ["user_id"]
        assert required["get_task"] == ["task_id"]
        assert required["create_task"] == ["title"]
        assert required["update_task"] == ["task_id"]
        assert required["delete_task"] == ["task_id"]
        assert required["list_tasks"] == []

    def test_priority_enum_and_progress_range(self):
        by_name = {t["name"]: t["inputSchema"]["properties"] for t in task_tools.TOOLS}
        assert by_name["create_task"]["priority"]["enum"] == ["low", "normal", "high", "urgent"]
        progress = by_name["update_task"]["progress"]
        assert (progress["minimum"], progress["maximum"]) == (0, 100)

    def test_every_tool_has_handler(self):
        for tool in task_tools.TOOLS:
            assert tool["name"] in task_tools._HANDLERS

    def test_all_tools_exported(self):
        assert tools.ALL_TOOLS == task_tools.TOOLS


class TestMapping:
    @pytest.mark.parametrize("label,level", [
        ("low", 1), ("normal", 3), ("high", 5), ("urgent", 7), (None, 3), ("bogus", 3),
    ])
    def test_priority_level(self, label, level):
        assert priority_level(label) == level

    def test_hours_to_minutes(self):
        assert hours_to_minutes(2) == 120
        assert hours_to_minutes(1.5) == 90
        assert hours_to_minutes(None) is None

    def test_zero_hours_forwarded_as_zero(self):
        assert hours_to_minutes(0) == 0
        payload = build_create_request(CreateTaskInput(title="T", estimated_hours=0), None).to_payload()
        assert payload["estimate"] == 0
        payload = build_update_request(UpdateTaskInput(task_id="t1", estimated_hours=0)).to_payload()
        assert payload == {"estimate": 0}

    def test_create_request_vocabulary(self):
        params = CreateTaskInput(
            title="T", description="D", assignee_id="u1", due_date="2025-01-31",
            estimated_hours=2, priority="urgent",
        )
        payload = build_create_request(params, "p1").to_payload()
        assert payload == {
            "title": "T", "projectId": "p1", "message": "D", "toUserId": "u1",
            "deadline": "2025-01-31", "estimate": 120, "priority": 7,
        }

    def test_create_request_default_priority(self):
        payload = build_create_request(CreateTaskInput(title="T"), None).to_payload()
        assert payload == {"title": "T", "priority": 3}

    def test_update_request_omits_absent_priority(self):
        payload = build_update_request(UpdateTaskInput(task_id="t1", progress=10)).to_payload()
        assert payload == {"progress": 10}


class TestValidation:
    def test_missing_required(self):
        with pytest.raises(ToolValidationError, match="missing required argument 'title'"):
            validate_arguments(CreateTaskInput, {})

    def test_bogus_priority(self):
        with pytest.raises(ToolValidationError, match="priority"):
            validate_arguments(CreateTaskInput, {"title": "T", "priority": "bogus"})

    @pytest.mark.parametrize("label,level", [("Urgent", 7), ("HIGH", 5), (" low ", 1)])
    def test_priority_label_case_insensitive(self, label, level):
        params = validate_arguments(CreateTaskInput, {"title": "T", "priority": label})
        assert build_create_request(params, None).priority == level
        params = validate_arguments(UpdateTaskInput, {"task_id": "t1", "priority": label})
        assert build_update_request(params).to_payload() == {"priority": level}

    def test_progress_out_of_range(self):
        with pytest.raises(ToolValidationError, match="progress"):
            validate_arguments(UpdateTaskInput, {"task_id": "t1", "progress": 150})

    def test_blank_id_rejected(self):
        with pytest.raises(ToolValidationError):
            validate_arguments(task_tools.TaskIdInput, {"task_id": "   "})


class TestFindProject:
    def test_case_insensitive_substring(self):
        projects = [Project(**p) for p in PROJECTS]
        assert find_project(projects, "alpha").id == "1"
        assert find_project(projects, "ETA").id == "2"

    def test_first_match_wins(self):
        projects = [Project(id="a", name="Team One"), Project(id="b", name="Team Two")]
        assert find_project(projects, "team").id == "a"

    def test_no_match(self):
        assert find_project([Project(**p) for p in PROJECTS], "gamma") is None


class TestListTools:
    @pytest.mark.asyncio
    async def test_list_projects(self, tools_client, fake):
        fake.add("GET", "/projects", json=PROJECTS)
        result = await handle_tool("list_projects", {})
        text = _text(result)
        assert "isError" not in result
        assert text.startswith("Found 2 projects:")
        assert "**Alpha Team** (ID: 1)" in text
        assert "Progress: 40%" in text
        assert "Description: Second project" in text

    @pytest.mark.asyncio
    async def test_list_users(self, tools_client, fake):
        fake.add("GET", "/users", json=USERS)
        text = _text(await handle_tool("list_users", {}))
        assert text.startswith("Found 2 users:")
        assert "**John Doe** (ID: u1)" in text
        assert "Role: Dev" in text
        assert "Role: Not specified" in text

    @pytest.mark.asyncio
    async def test_list_tasks_unscoped(self, tools_client, fake):
        fake.add("GET", "/tasks", json=TASKS)
        text = _text(await handle_tool("list_tasks", {}))
        assert text.startswith("Found 2 tasks:")
        assert text.count("- **") == 2
        assert "Assignee: Unassigned" in text

    @pytest.mark.asyncio
    async def test_list_tasks_by_id(self, tools_client, fake):
        fake.add("GET", "/projects/2/tasks", json=TASKS[1:])
        text = _text(await handle_tool("list_tasks", {"project_id": "2", "project_name": "alpha"}))
        assert text.startswith("Found 1 tasks for project 2:")
        assert fake.paths() == [("GET", "/projects/2/tasks")]

    @pytest.mark.asyncio
    async def test_list_tasks_by_name(self, tools_client, fake):
        fake.add("GET", "/projects", json=PROJECTS)
        fake.add("GET", "/projects/1/tasks", json=TASKS[:1])
        text = _text(await handle_tool("list_tasks", {"project_name": "alpha"}))
        assert text.startswith("Found 1 tasks for project Alpha Team:")
        assert fake.paths() == [("GET", "/projects"), ("GET", "/projects/1/tasks")]

    @pytest.mark.asyncio
    async def test_out_of_range_progress_from_remote(self, tools_client, fake):
        projects = PROJECTS + [{"id": "3", "name": "Gamma", "progress": 120}]
        fake.add("GET", "/projects", json=projects)
        fake.add("GET", "/projects/1/tasks", json=TASKS[:1])

        result = await handle_tool("list_projects", {})
        assert "isError" not in result
        assert "Progress: 120%" in _text(result)

        text = _text(await handle_tool("list_tasks", {"project_name": "alpha"}))
        assert text.startswith("Found 1 tasks for project Alpha Team:")

    @pytest.mark.asyncio
    async def test_list_tasks_unknown_name(self, tools_client, fake):
        fake.add("GET", "/projects", json=PROJECTS)
        result = await handle_tool("list_tasks", {"project_name": "gamma"})
        text = _text(result)
        assert result["isError"] is True
        assert "Project not found" in text
        assert '"gamma"' in text
        assert "- Alpha Team (ID: 1)" in text
        assert "- Beta (ID: 2)" in text
        assert fake.paths() == [("GET", "/projects")]


class TestGetTools:
    @pytest.mark.asyncio
    async def test_get_project(self, tools_client, fake):
        fake.add("GET", "/projects/1", json=dict(PROJECTS[0], ownerName="Ann", teamSize=4))
        text = _text(await handle_tool("get_project", {"project_id": "1"}))
        assert "**Name:** Alpha Team" in text
        assert "**Owner:** Ann" in text
        assert "**Team Size:** 4" in text

    @pytest.mark.asyncio
    async def test_get_user(self, tools_client, fake):
        fake.add("GET", "/users/u1", json=dict(USERS[0], isActive=True))
        text = _text(await handle_tool("get_user", {"user_id": "u1"}))
        assert "**Email:** john@example.com" in text
        assert "**Active:** Yes" in text

    @pytest.mark.asyncio
    async def test_get_task(self, tools_client, fake):
        fake.add("GET", "/task/t1", json=dict(TASKS[0], estimatedHours=3))
        text = _text(await handle_tool("get_task", {"task_id": "t1"}))
        assert "**Title:** Write docs" in text
        assert "**Estimated Hours:** 3" in text
        assert "**Actual Hours:** Not set" in text

    @pytest.mark.asyncio
    async def test_missing_id_never_reaches_api(self, tools_client, fake):
        result = await handle_tool("get_task", {})
        assert result["isError"] is True
        assert "missing required argument 'task_id'" in _text(result)
        assert fake.requests == []


class TestCreateTask:
    @pytest.mark.asyncio
    async def test_estimate_and_priority(self, tools_client, fake):
        fake.add("POST", "/tasks", json={"id": "t9", "title": "Plan", "projectName": "Beta"})
        result = await handle_tool("create_task", {
            "title": "Plan", "project_id": "2", "estimated_hours": 2, "priority": "urgent",
        })
        body = fake.body()
        assert body["estimate"] == 120
        assert body["priority"] == 7
        assert body["fromUserId"] == "default-user"

        text = _text(result)
        assert text.startswith("✅ **Task created successfully!**")
        assert "**ID:** t9" in text
        assert "**Project:** Beta" in text
        assert "**Priority:** urgent" in text

    @pytest.mark.asyncio
    async def test_default_priority(self, tools_client, fake):
        fake.add("POST", "/tasks", json={"id": "t9", "title": "Plan"})
        await handle_tool("create_task", {"title": "Plan"})
        assert fake.body()["priority"] == 3

    @pytest.mark.asyncio
    async def test_bogus_priority_rejected(self, tools_client, fake):
        result = await handle_tool("create_task", {"title": "Plan", "priority": "bogus"})
        assert result["isError"] is True
        assert "Invalid arguments for create_task" in _text(result)
        assert fake.requests == []

    @pytest.mark.asyncio
    async def test_field_renames(self, tools_client, fake):
        fake.add("POST", "/tasks", json={"id": "t9", "title": "Plan"})
        await handle_tool("create_task", {
            "title": "Plan", "description": "Details", "assignee_id": "u2",
            "due_date": "2025-03-01", "from_user_id": "u1",
        })
        body = fake.body()
        assert body["message"] == "Details"
        assert body["toUserId"] == "u2"
        assert body["deadline"] == "2025-03-01"
        assert body["fromUserId"] == "u1"
        assert "description" not in body
        assert "tags" not in body

    @pytest.mark.asyncio
    async def test_project_name_resolved(self, tools_client, fake):
        fake.add("GET", "/projects", json=PROJECTS)
        fake.add("POST", "/tasks", json={"id": "t9", "title": "Plan"})
        text = _text(await handle_tool("create_task", {"title": "Plan", "project_name": "alpha"}))
        assert fake.body()["projectId"] == "1"
        assert "**Project:** Alpha Team" in text

    @pytest.mark.asyncio
    async def test_unknown_project_name(self, tools_client, fake):
        fake.add("GET", "/projects", json=PROJECTS)
        result = await handle_tool("create_task", {"title": "Plan", "project_name": "gamma"})
        assert result["isError"] is True
        assert "Project not found" in _text(result)
        assert fake.paths() == [("GET", "/projects")]

    @pytest.mark.asyncio
    async def test_tags_warning(self, tools_client, fake):
        fake.add("POST", "/tasks", json={"id": "t9", "title": "Plan"})
        text = _text(await handle_tool("create_task", {"title": "Plan", "tags": ["x", "y"]}))
        assert "Tags are not supported" in text
        assert '"x, y"' in text
        assert "tags" not in fake.body()

    @pytest.mark.asyncio
    async def test_no_tags_no_warning(self, tools_client, fake):
        fake.add("POST", "/tasks", json={"id": "t9", "title": "Plan"})
        text = _text(await handle_tool("create_task", {"title": "Plan", "tags": []}))
        assert "Tags" not in text

    @pytest.mark.asyncio
    async def test_remote_failure_rendered(self, tools_client, fake):
        fake.add("POST", "/tasks", json={"error": "invalid project"}, status=400)
        result = await handle_tool("create_task", {"title": "Plan"})
        text = _text(result)
        assert result["isError"] is True
        assert text.startswith("❌ **Error creating task:**")
        assert "Failed to create task: HTTP 400" in text

    @pytest.mark.asyncio
    async def test_create_then_get_round_trip(self, tools_client, fake):
        fake.add("POST", "/tasks", json={"id": "t42", "title": "Round trip"})
        fake.add("GET", "/task/t42", json={"id": "t42", "title": "Round trip", "status": "Open"})

        created = await tools_client.create_task(
            build_create_request(CreateTaskInput(title="Round trip"), None)
        )
        fetched = await tools_client.get_task(created.id)
        assert fetched.title == "Round trip"


class TestUpdateTask:
    @pytest.mark.asyncio
    async def test_progress_out_of_range(self, tools_client, fake):
        result = await handle_tool("update_task", {"task_id": "t1", "progress": 150})
        assert result["isError"] is True
        assert "progress" in _text(result)
        assert fake.requests == []

    @pytest.mark.asyncio
    async def test_update_mapping(self, tools_client, fake):
        fake.add("PUT", "/tasks/t1", json={"id": "t1", "title": "Write docs", "status": "Doing", "progress": 60})
        result = await handle_tool("update_task", {
            "task_id": "t1", "status": "Doing", "priority": "low",
            "estimated_hours": 0.5, "progress": 60, "description": "More",
        })
        assert fake.body() == {
            "status": "Doing", "priority": 1, "estimate": 30, "progress": 60, "message": "More",
        }
        text = _text(result)
        assert text.startswith("✅ **Task updated successfully!**")
        assert "**Progress:** 60%" in text

    @pytest.mark.asyncio
    async def test_nothing_to_update(self, tools_client, fake):
        result = await handle_tool("update_task", {"task_id": "t1", "tags": ["x"]})
        assert result["isError"] is True
        assert "no updatable fields" in _text(result)
        assert fake.requests == []

    @pytest.mark.asyncio
    async def test_tags_warning(self, tools_client, fake):
        fake.add("PUT", "/tasks/t1", json={"id": "t1", "title": "Write docs"})
        text = _text(await handle_tool("update_task", {"task_id": "t1", "title": "Docs", "tags": ["x"]}))
        assert "Tags are not supported" in text


class TestDeleteAndHealth:
    @pytest.mark.asyncio
    async def test_delete(self, tools_client, fake):
        fake.add("DELETE", "/tasks/t1", status=204)
        result = await handle_tool("delete_task", {"task_id": "t1"})
        text = _text(result)
        assert "isError" not in result
        assert "Task ID: t1" in text
        assert fake.paths() == [("DELETE", "/tasks/t1")]

    @pytest.mark.asyncio
    async def test_delete_failure(self, tools_client, fake):
        result = await handle_tool("delete_task", {"task_id": "nope"})
        assert result["isError"] is True
        assert "Failed to delete task nope: HTTP 404" in _text(result)

    @pytest.mark.asyncio
    async def test_healthy(self, tools_client, fake):
        fake.add("GET", "/health", json={})
        result = await handle_tool("health_check", {})
        assert "healthy" in _text(result)
        assert "isError" not in result

    @pytest.mark.asyncio
    async def test_unhealthy(self, tools_client, fake):
        result = await handle_tool("health_check", {})
        assert result["isError"] is True
        assert "connection failed" in _text(result)


class TestDispatch:
    @pytest.mark.asyncio
    async def test_unknown_tool(self, tools_client, fake):
        result = await tools.handle_tool("launch_rocket", {})
        assert result["isError"] is True
        assert "Unknown tool: launch_rocket" in _text(result)

    @pytest.mark.asyncio
    async def test_dispatcher_usable_after_error(self, tools_client, fake):
        fake.add("GET", "/users", json=USERS)
        await tools.handle_tool("launch_rocket", {})
        result = await tools.handle_tool("list_users", {})
        assert "isError" not in result

    @pytest.mark.asyncio
    async def test_no_client_configured(self, fake):
        task_tools.set_client(None)
        result = await handle_tool("list_users", {})
        assert result["isError"] is True
        assert "not configured" in _text(result)
