"""Tests for the task model, task service and task API routes."""

import asyncio
import base64
import json
from datetime import datetime, timezone
from unittest.mock import AsyncMock, patch

import pytest

from taskhub.errors import NotFound, ValidationError
from taskhub.models.task import Task, TaskPriority, TaskStatus
from taskhub.models.user import Role
from taskhub.schemas import MAX_ID, ProjectCreate, TaskCreate, TaskUpdate
from taskhub.services.project_service import ProjectService
from taskhub.store.query import TaskFilter
from taskhub.store.task_store import SqliteTaskStore
from taskhub.validation import validate_task_create


class TestTaskModel:
    """Test Task domain model."""

    def test_task_defaults(self):
        """Test task creation with default values."""
        task = Task(id=1, title="Test Task", project_id=5, created_by=7)

        assert task.status == TaskStatus.TODO
        assert task.priority == TaskPriority.MEDIUM
        assert task.description is None
        assert task.assigned_to is None
        assert task.due_date is None

    def test_task_serializes_with_camel_case_keys(self):
        task = Task(id=1, title="Test Task", project_id=5, created_by=7)
        task_dict = task.model_dump(by_alias=True)

        assert task_dict["projectId"] == 5
        assert task_dict["createdBy"] == 7
        assert task_dict["status"] == "todo"
        assert "createdAt" in task_dict
        assert "updatedAt" in task_dict

    def test_status_and_priority_enums(self):
        assert [s.value for s in TaskStatus] == ["todo", "in_progress", "review", "done"]
        assert [p.value for p in TaskPriority] == ["low", "medium", "high", "critical"]


class TestTaskService:
    """Test TaskService against a real SQLite database."""

    @pytest.mark.asyncio
    async def test_create_task_applies_defaults(self, task_service, identity):
        """Create {title: "Fix bug", projectId: 5} as user 7."""
        task = await task_service.create_task(TaskCreate(title="Fix bug", project_id=5), identity)

        assert task.id is not None
        assert task.title == "Fix bug"
        assert task.status == "todo"
        assert task.priority == "medium"
        assert task.created_by == 7
        assert task.project_id == 5
        assert task.created_at == task.updated_at

    @pytest.mark.asyncio
    async def test_create_task_ignores_supplied_creator(self, task_service, identity):
        task_data = validate_task_create({"title": "Fix bug", "projectId": 5, "createdBy": 3})

        task = await task_service.create_task(task_data, identity)

        assert task.created_by == 7

    @pytest.mark.asyncio
    async def test_create_task_parses_due_date(self, task_service, identity):
        task_data = validate_task_create(
            {"title": "Ship", "projectId": 5, "dueDate": "2025-03-01T12:00:00Z"}
        )

        task = await task_service.create_task(task_data, identity)

        assert task.due_date == datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)

    @pytest.mark.asyncio
    async def test_create_task_unknown_project(self, task_service, identity):
        with pytest.raises(ValidationError) as exc_info:
            await task_service.create_task(TaskCreate(title="Orphan", project_id=999), identity)

        assert exc_info.value.status_code == 400

    @pytest.mark.asyncio
    async def test_create_task_unknown_assignee(self, task_service, identity):
        with pytest.raises(ValidationError):
            await task_service.create_task(
                TaskCreate(title="Orphan", project_id=5, assigned_to=999), identity
            )

    @pytest.mark.asyncio
    async def test_get_task_success(self, task_service, identity):
        created = await task_service.create_task(TaskCreate(title="Read me", project_id=5), identity)

        task = await task_service.get_task(created.id)

        assert task == created

    @pytest.mark.asyncio
    async def test_get_task_not_found(self, task_service):
        with pytest.raises(NotFound, match="Task not found"):
            await task_service.get_task(999)

    @pytest.mark.asyncio
    async def test_update_task_partial(self, task_service, identity):
        """Unspecified fields stay unchanged."""
        created = await task_service.create_task(
            TaskCreate(title="Original", description="Keep me", project_id=5, assigned_to=3),
            identity,
        )
        await asyncio.sleep(0.01)

        updated = await task_service.update_task(
            created.id, TaskUpdate(status=TaskStatus.IN_PROGRESS)
        )

        assert updated.status == "in_progress"
        assert updated.title == "Original"
        assert updated.description == "Keep me"
        assert updated.assigned_to == 3
        assert updated.project_id == 5
        assert updated.created_by == 7
        assert updated.created_at == created.created_at
        assert updated.updated_at > created.updated_at

    @pytest.mark.asyncio
    async def test_update_task_empty_payload_refreshes_timestamp(self, task_service, identity):
        created = await task_service.create_task(TaskCreate(title="Idle", project_id=5), identity)
        await asyncio.sleep(0.01)

        updated = await task_service.update_task(created.id, TaskUpdate())

        assert updated.title == created.title
        assert updated.status == created.status
        assert updated.updated_at > created.updated_at

    @pytest.mark.asyncio
    async def test_update_task_replaces_due_date(self, task_service, identity):
        created = await task_service.create_task(TaskCreate(title="Plan", project_id=5), identity)

        updated = await task_service.update_task(
            created.id, TaskUpdate.model_validate({"dueDate": "2030-06-15T08:30:00+02:00"})
        )

        assert updated.due_date == datetime(2030, 6, 15, 6, 30, tzinfo=timezone.utc)

    @pytest.mark.asyncio
    async def test_update_task_not_found_is_repeatable(self, task_service):
        for _ in range(2):
            with pytest.raises(NotFound, match="Task not found"):
                await task_service.update_task(999, TaskUpdate(status=TaskStatus.DONE))

    @pytest.mark.asyncio
    async def test_update_task_unknown_assignee(self, task_service, identity):
        created = await task_service.create_task(TaskCreate(title="Plan", project_id=5), identity)

        with pytest.raises(ValidationError):
            await task_service.update_task(created.id, TaskUpdate(assigned_to=999))

    @pytest.mark.asyncio
    async def test_delete_task(self, task_service, identity):
        created = await task_service.create_task(TaskCreate(title="Doomed", project_id=5), identity)

        await task_service.delete_task(created.id)

        with pytest.raises(NotFound):
            await task_service.get_task(created.id)
        with pytest.raises(NotFound):
            await task_service.delete_task(created.id)

    @pytest.mark.asyncio
    async def test_list_tasks_empty(self, task_service):
        tasks, count = await task_service.list_tasks()

        assert tasks == []
        assert count == 0

    @pytest.mark.asyncio
    async def test_list_tasks_newest_first_and_status_filter(self, task_service, identity):
        todo = await task_service.create_task(TaskCreate(title="Todo task", project_id=5), identity)
        done = await task_service.create_task(
            TaskCreate(title="Done task", project_id=5, status=TaskStatus.DONE), identity
        )

        tasks, count = await task_service.list_tasks()
        assert count == 2
        assert [t.id for t in tasks] == [done.id, todo.id]

        tasks, count = await task_service.list_tasks(TaskFilter(status=TaskStatus.DONE))
        assert count == 1
        assert tasks[0].id == done.id

    @pytest.mark.asyncio
    async def test_list_tasks_search(self, task_service, identity):
        feature = await task_service.create_task(
            TaskCreate(title="Implement feature X", project_id=5), identity
        )
        described = await task_service.create_task(
            TaskCreate(title="Docs", description="Explain the feature flag", project_id=5),
            identity,
        )

        tasks, _ = await task_service.list_tasks(TaskFilter(search="feature"))
        assert {t.id for t in tasks} == {feature.id, described.id}

        tasks, count = await task_service.list_tasks(TaskFilter(search="xyz123"))
        assert count == 0

        # substring matching is case-sensitive
        tasks, count = await task_service.list_tasks(TaskFilter(search="Feature"))
        assert count == 0

    @pytest.mark.asyncio
    async def test_list_tasks_search_treats_wildcards_literally(self, task_service, identity):
        await task_service.create_task(TaskCreate(title="Plain title", project_id=5), identity)
        percent = await task_service.create_task(TaskCreate(title="Reach 100%", project_id=5), identity)

        tasks, count = await task_service.list_tasks(TaskFilter(search="%"))

        assert count == 1
        assert tasks[0].id == percent.id

    @pytest.mark.asyncio
    async def test_list_tasks_filters_are_conjunctive(self, task_service, identity):
        match = await task_service.create_task(
            TaskCreate(title="Match", project_id=6, assigned_to=3, priority=TaskPriority.HIGH),
            identity,
        )
        await task_service.create_task(
            TaskCreate(title="Wrong project", project_id=5, assigned_to=3, priority=TaskPriority.HIGH),
            identity,
        )
        await task_service.create_task(
            TaskCreate(title="Unassigned", project_id=6, priority=TaskPriority.HIGH), identity
        )
        await task_service.create_task(
            TaskCreate(title="Low priority", project_id=6, assigned_to=3, priority=TaskPriority.LOW),
            identity,
        )

        tasks, count = await task_service.list_tasks(
            TaskFilter(project_id=6, assigned_to=3, priority=TaskPriority.HIGH)
        )

        assert count == 1
        assert tasks[0].id == match.id


class TestStoreConcurrency:
    """Concurrent requests share one connection."""

    @pytest.mark.asyncio
    async def test_failed_insert_does_not_discard_concurrent_project(
        self, store, task_service, identity
    ):
        project_service = ProjectService(store.project_store)

        project, failure = await asyncio.gather(
            project_service.create_project(ProjectCreate(name="Roadmap"), identity),
            task_service.create_task(TaskCreate(title="Orphan", project_id=424242), identity),
            return_exceptions=True,
        )

        assert isinstance(failure, ValidationError)
        assert project.name == "Roadmap"
        assert await store.project_store.get_project(project.id) == project

    @pytest.mark.asyncio
    async def test_concurrent_creates_all_persist(self, store, task_service, identity):
        results = await asyncio.gather(
            *[
                task_service.create_task(TaskCreate(title=f"Task {i}", project_id=5), identity)
                for i in range(5)
            ],
            task_service.create_task(TaskCreate(title="Orphan", project_id=424242), identity),
            return_exceptions=True,
        )

        created = results[:5]
        assert isinstance(results[5], ValidationError)
        tasks, count = await task_service.list_tasks()
        assert count == 5
        assert {t.id for t in tasks} == {t.id for t in created}

    @pytest.mark.asyncio
    async def test_missing_row_after_insert_raises(self, store):
        with patch.object(SqliteTaskStore, "_fetch_task", new=AsyncMock(return_value=None)):
            with pytest.raises(RuntimeError, match="missing right after insert"):
                await store.task_store.create_task(title="Ghost", project_id=5, created_by=7)


class TestTaskRoutes:
    """Test task API routes."""

    def test_list_tasks_requires_token(self, client):
        response = client.get("/api/tasks")

        assert response.status_code == 401
        assert response.json() == {"error": "Access token required"}

    def test_create_task_success(self, client, auth_headers, registered_user, sample_task_data):
        """Test successful task creation via API."""
        response = client.post(
            "/api/tasks",
            json={**sample_task_data, "createdBy": 999},
            headers=auth_headers,
        )

        assert response.status_code == 201
        data = response.json()
        assert data["message"] == "Task created successfully"
        task = data["task"]
        assert task["title"] == "Fix bug"
        assert task["status"] == "todo"
        assert task["priority"] == "medium"
        assert task["projectId"] == sample_task_data["projectId"]
        assert task["createdBy"] == registered_user["user"]["id"]
        assert task["assignedTo"] is None
        assert task["dueDate"] is None

    def test_create_task_validation_error(self, client, auth_headers):
        """Test task creation with validation errors."""
        response = client.post(
            "/api/tasks",
            json={"title": "", "projectId": "5", "status": "blocked"},
            headers=auth_headers,
        )

        assert response.status_code == 400
        data = response.json()
        assert data["error"] == "Validation error"
        fields = {detail["field"] for detail in data["details"]}
        assert fields == {"title", "projectId", "status"}

    def test_create_task_requires_json_object(self, client, auth_headers):
        response = client.post("/api/tasks", json=["not", "an", "object"], headers=auth_headers)

        assert response.status_code == 400
        assert response.json()["details"][0]["field"] == "body"

    def test_create_task_unknown_project(self, client, auth_headers):
        response = client.post(
            "/api/tasks", json={"title": "Orphan", "projectId": 4242}, headers=auth_headers
        )

        assert response.status_code == 400

    def test_get_task_success(self, client, auth_headers, sample_task_data):
        created = client.post("/api/tasks", json=sample_task_data, headers=auth_headers).json()

        response = client.get(f"/api/tasks/{created['task']['id']}", headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["task"] == created["task"]

    def test_get_task_not_found(self, client, auth_headers):
        response = client.get("/api/tasks/999", headers=auth_headers)

        assert response.status_code == 404
        assert response.json() == {"error": "Task not found"}

    def test_get_task_invalid_id(self, client, auth_headers):
        response = client.get("/api/tasks/abc", headers=auth_headers)

        assert response.status_code == 400
        assert response.json()["error"] == "Invalid task ID"

    def test_update_task_success(self, client, auth_headers, sample_task_data):
        """Test partial task update via API."""
        created = client.post("/api/tasks", json=sample_task_data, headers=auth_headers).json()["task"]

        response = client.put(
            f"/api/tasks/{created['id']}",
            json={"status": "review", "priority": "critical"},
            headers=auth_headers,
        )

        assert response.status_code == 200
        data = response.json()
        assert data["message"] == "Task updated successfully"
        assert data["task"]["status"] == "review"
        assert data["task"]["priority"] == "critical"
        assert data["task"]["title"] == created["title"]
        assert data["task"]["description"] == created["description"]
        assert data["task"]["createdAt"] == created["createdAt"]

    def test_update_task_cannot_change_creator_or_project(
        self, client, auth_headers, sample_task_data
    ):
        created = client.post("/api/tasks", json=sample_task_data, headers=auth_headers).json()["task"]

        response = client.put(
            f"/api/tasks/{created['id']}",
            json={"createdBy": 999, "projectId": 999},
            headers=auth_headers,
        )

        assert response.status_code == 200
        assert response.json()["task"]["createdBy"] == created["createdBy"]
        assert response.json()["task"]["projectId"] == created["projectId"]

    def test_update_task_not_found(self, client, auth_headers):
        response = client.put("/api/tasks/999", json={"status": "done"}, headers=auth_headers)

        assert response.status_code == 404
        assert response.json() == {"error": "Task not found"}

    def test_update_task_invalid_status(self, client, auth_headers, sample_task_data):
        created = client.post("/api/tasks", json=sample_task_data, headers=auth_headers).json()["task"]

        response = client.put(
            f"/api/tasks/{created['id']}", json={"status": "archived"}, headers=auth_headers
        )

        assert response.status_code == 400
        assert response.json()["details"][0]["field"] == "status"

    def test_delete_task(self, client, auth_headers, sample_task_data):
        created = client.post("/api/tasks", json=sample_task_data, headers=auth_headers).json()["task"]

        response = client.delete(f"/api/tasks/{created['id']}", headers=auth_headers)
        assert response.status_code == 200
        assert response.json() == {"message": "Task deleted successfully"}

        response = client.delete(f"/api/tasks/{created['id']}", headers=auth_headers)
        assert response.status_code == 404
        assert response.json() == {"error": "Task not found"}

    def test_list_tasks_with_filters(self, client, auth_headers, project_id):
        """Test task listing with query parameters."""
        client.post(
            "/api/tasks",
            json={"title": "Implement feature X", "projectId": project_id},
            headers=auth_headers,
        )
        client.post(
            "/api/tasks",
            json={"title": "Release", "projectId": project_id, "status": "done"},
            headers=auth_headers,
        )

        response = client.get("/api/tasks", headers=auth_headers)
        assert response.status_code == 200
        data = response.json()
        assert data["count"] == 2
        assert [t["title"] for t in data["tasks"]] == ["Release", "Implement feature X"]

        response = client.get("/api/tasks?status=done", headers=auth_headers)
        assert [t["title"] for t in response.json()["tasks"]] == ["Release"]

        response = client.get(
            f"/api/tasks?search=feature&projectId={project_id}", headers=auth_headers
        )
        assert response.json()["count"] == 1
        assert response.json()["tasks"][0]["title"] == "Implement feature X"

        response = client.get("/api/tasks?search=xyz123", headers=auth_headers)
        assert response.json() == {"tasks": [], "count": 0}

    def test_list_tasks_rejects_non_numeric_ids(self, client, auth_headers):
        response = client.get("/api/tasks?projectId=abc&assignedTo=1.5", headers=auth_headers)

        assert response.status_code == 400
        fields = {detail["field"] for detail in response.json()["details"]}
        assert fields == {"projectId", "assignedTo"}

    def test_list_tasks_unexpected_error(self, client, auth_headers):
        """Internal details stay hidden outside development."""
        with patch(
            "taskhub.services.task_service.TaskService.list_tasks",
            side_effect=RuntimeError("database exploded"),
        ):
            response = client.get("/api/tasks", headers=auth_headers)

        assert response.status_code == 500
        assert response.json() == {"error": "Failed to fetch tasks"}

    def test_list_tasks_rejects_tampered_token(self, client, registered_user):
        header, _, signature = registered_user["token"].split(".")
        claims = {"userId": registered_user["user"]["id"], "role": Role.ADMIN.value}
        payload = base64.urlsafe_b64encode(json.dumps(claims).encode("utf-8")).rstrip(b"=")
        forged = ".".join([header, payload.decode("ascii"), signature])

        response = client.get("/api/tasks", headers={"Authorization": f"Bearer {forged}"})

        assert response.status_code == 403
        assert response.json() == {"error": "Invalid or expired token"}

    @pytest.mark.parametrize("method", ["get", "put", "delete"])
    @pytest.mark.parametrize("task_id", [str(MAX_ID + 1), "99999999999999999999", "9" * 5000])
    def test_oversized_task_id_not_found(self, client, auth_headers, method, task_id):
        kwargs = {"json": {"status": "done"}} if method == "put" else {}

        response = getattr(client, method)(f"/api/tasks/{task_id}", headers=auth_headers, **kwargs)

        assert response.status_code == 404
        assert response.json() == {"error": "Task not found"}

    def test_largest_task_id_not_found(self, client, auth_headers):
        response = client.get(f"/api/tasks/{MAX_ID}", headers=auth_headers)

        assert response.status_code == 404
        assert response.json() == {"error": "Task not found"}

    @pytest.mark.parametrize("param", ["projectId", "assignedTo"])
    def test_list_tasks_rejects_oversized_ids(self, client, auth_headers, param):
        response = client.get(f"/api/tasks?{param}=99999999999999999999", headers=auth_headers)

        assert response.status_code == 400
        assert response.json()["details"][0]["field"] == param

    @pytest.mark.parametrize("field,value", [("projectId", 2**70), ("assignedTo", MAX_ID + 1)])
    def test_create_task_rejects_oversized_ids(self, client, auth_headers, project_id, field, value):
        payload = {"title": "x", "projectId": project_id, field: value}

        response = client.post("/api/tasks", json=payload, headers=auth_headers)

        assert response.status_code == 400
        assert {detail["field"] for detail in response.json()["details"]} == {field}

    def test_update_task_rejects_oversized_assignee(self, client, auth_headers, sample_task_data):
        created = client.post("/api/tasks", json=sample_task_data, headers=auth_headers).json()["task"]

        response = client.put(
            f"/api/tasks/{created['id']}", json={"assignedTo": 2**70}, headers=auth_headers
        )

        assert response.status_code == 400
        assert response.json()["details"][0]["field"] == "assignedTo"
