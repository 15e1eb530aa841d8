"""
GoodDay API Client — single point of outbound HTTP

Every request carries the same header set (API token + JSON content type)
and the same fixed timeout. Every failure, transport or HTTP status, is
raised as RemoteRequestError naming the operation that failed.

Responses may be bare entities/lists or wrapped in a
{"success": ..., "data": ...} envelope; both are accepted.
"""

from typing import Any, List, Optional, Type, TypeVar

import httpx
from pydantic import BaseModel, TypeAdapter, ValidationError

from goodday_mcp.config import Config
from goodday_mcp.models import (
    Project,
    Task,
    TaskCreateRequest,
    TaskUpdateRequest,
    User,
)
from goodday_mcp.server.logger import get_logger

log = get_logger("api")

M = TypeVar("M", bound=BaseModel)

HEALTH_ENDPOINTS = ("/health", "/api/health", "/")

_ERROR_BODY_LIMIT = 300


class RemoteRequestError(Exception):
    """A call to the GoodDay API failed."""

    def __init__(self, operation: str, message: str, status_code: Optional[int] = None):
        self.operation = operation
        self.message = message
        self.status_code = status_code
        super().__init__(f"Failed to {operation}: {message}")


def _describe_http_error(exc: httpx.HTTPError) -> str:
    if isinstance(exc, httpx.HTTPStatusError):
        response = exc.response
        detail = f"HTTP {response.status_code} {response.reason_phrase}".rstrip()
        body = response.text.strip()
        if body:
            detail += f": {body[:_ERROR_BODY_LIMIT]}"
        return detail
    if isinstance(exc, httpx.TimeoutException):
        return f"request timed out after {Config.REQUEST_TIMEOUT:g}s"
    return str(exc) or type(exc).__name__


def _describe_validation_error(exc: ValidationError) -> str:
    problems = [
        f"{'.'.join(str(part) for part in err['loc']) or 'body'}: {err['msg']}"
        for err in exc.errors(include_url=False)
    ]
    return "; ".join(problems)


def _unwrap(payload: Any) -> Any:
    if isinstance(payload, dict) and "data" in payload and (
        "success" in payload or len(payload) == 1
    ):
        return payload["data"]
    return payload


class GoodDayClient:
    """
    Async GoodDay REST client.

    Usage:
        async with GoodDayClient(api_key) as client:
            projects = await client.list_projects()
    """

    def __init__(
        self,
        api_key: str,
        base_url: Optional[str] = None,
        *,
        default_from_user: Optional[str] = None,
        timeout: float = Config.REQUEST_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url or Config.DEFAULT_API_URL
        self.default_from_user = default_from_user or Config.DEFAULT_FROM_USER
        self._http = httpx.AsyncClient(
            base_url=self.base_url,
            headers={
                Config.API_KEY_HEADER: api_key,
                "Content-Type": "application/json",
            },
            timeout=timeout,
            follow_redirects=True,
            transport=transport,
            event_hooks={
                "request": [self._log_request],
                "response": [self._log_response],
            },
        )

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        await self.aclose()

    async def aclose(self):
        await self._http.aclose()

    # -- diagnostics --

    @staticmethod
    async def _log_request(request: httpx.Request):
        log.info(f"{request.method} {request.url}")

    @staticmethod
    async def _log_response(response: httpx.Response):
        request = response.request
        if response.is_success:
            log.debug(f"{request.method} {request.url} -> {response.status_code}")
            return
        await response.aread()
        log.warning(
            f"{request.method} {request.url} -> {response.status_code} "
            f"{response.reason_phrase}: {response.text[:_ERROR_BODY_LIMIT]}"
        )

    # -- plumbing --

    async def _request(self, operation: str, method: str, path: str, **kwargs) -> Any:
        try:
            response = await self._http.request(method, path, **kwargs)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            log.error(f"{operation} failed: {exc}")
            status = exc.response.status_code if isinstance(exc, httpx.HTTPStatusError) else None
            raise RemoteRequestError(operation, _describe_http_error(exc), status) from exc

        if not response.content:
            return None
        try:
            return _unwrap(response.json())
        except ValueError as exc:
            raise RemoteRequestError(operation, f"invalid JSON in response: {exc}") from exc

    @staticmethod
    def _parse(operation: str, payload: Any, model: Type[M]) -> M:
        try:
            return model.model_validate(payload)
        except ValidationError as exc:
            raise RemoteRequestError(
                operation, f"unexpected response: {_describe_validation_error(exc)}"
            ) from exc

    @staticmethod
    def _parse_list(operation: str, payload: Any, model: Type[M]) -> List[M]:
        if not isinstance(payload, list):
            raise RemoteRequestError(
                operation, f"expected a list, got {type(payload).__name__}"
            )
        try:
            return TypeAdapter(List[model]).validate_python(payload)
        except ValidationError as exc:
            raise RemoteRequestError(
                operation, f"unexpected response: {_describe_validation_error(exc)}"
            ) from exc

    # -- users --

    async def list_users(self) -> List[User]:
        op = "fetch users"
        return self._parse_list(op, await self._request(op, "GET", "/users"), User)

    async def get_user(self, user_id: str) -> User:
        op = f"fetch user {user_id}"
        return self._parse(op, await self._request(op, "GET", f"/users/{user_id}"), User)

    # -- projects --

    async def list_projects(self) -> List[Project]:
        op = "fetch projects"
        return self._parse_list(op, await self._request(op, "GET", "/projects"), Project)

    async def get_project(self, project_id: str) -> Project:
        op = f"fetch project {project_id}"
        return self._parse(op, await self._request(op, "GET", f"/projects/{project_id}"), Project)

    # -- tasks --

    async def list_tasks(self, project_id: Optional[str] = None) -> List[Task]:
        op = "fetch tasks"
        path = f"/projects/{project_id}/tasks" if project_id else "/tasks"
        return self._parse_list(op, await self._request(op, "GET", path), Task)

    async def get_task(self, task_id: str) -> Task:
        op = f"fetch task {task_id}"
        # Singular path: the remote API exposes single tasks under /task/
        return self._parse(op, await self._request(op, "GET", f"/task/{task_id}"), Task)

    async def create_task(self, request: TaskCreateRequest) -> Task:
        op = "create task"
        if not request.fromUserId:
            request = request.model_copy(update={"fromUserId": self.default_from_user})
        payload = await self._request(op, "POST", "/tasks", json=request.to_payload())
        return self._parse(op, payload, Task)

    async def update_task(self, task_id: str, request: TaskUpdateRequest) -> Task:
        op = f"update task {task_id}"
        payload = await self._request(op, "PUT", f"/tasks/{task_id}", json=request.to_payload())
        return self._parse(op, payload, Task)

    async def delete_task(self, task_id: str) -> None:
        op = f"delete task {task_id}"
        await self._request(op, "DELETE", f"/tasks/{task_id}")

    # -- health --

    async def health_check(self) -> bool:
        """True as soon as one candidate endpoint answers without error."""
        for path in HEALTH_ENDPOINTS:
            try:
                response = await self._http.get(path)
                response.raise_for_status()
                return True
            except (httpx.HTTPError, httpx.InvalidURL) as exc:
                log.debug(f"Health probe {path} failed: {exc}")
        log.warning(f"All health endpoints failed for {self.base_url}")
        return False
