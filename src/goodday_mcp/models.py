"""
GoodDay data models

Read models (User, Project, Task) follow the remote API's camelCase field
names. The request models (TaskCreateRequest, TaskUpdateRequest) use the
remote *write* vocabulary, which differs from the read model:

    description     -> message
    assignee        -> toUserId
    due date        -> deadline
    estimated hours -> estimate (minutes)
"""

from typing import Any, Dict, Optional, Union

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class _RemoteModel(BaseModel):
    """Base for entities returned by the remote API."""
    model_config = ConfigDict(extra="allow", coerce_numbers_to_str=True)


class User(_RemoteModel):
    id: str
    firstName: str
    lastName: str
    email: EmailStr
    avatar: Optional[str] = None
    role: Optional[str] = None
    department: Optional[str] = None
    isActive: Optional[bool] = None
    createdAt: Optional[str] = None
    updatedAt: Optional[str] = None

    @property
    def full_name(self) -> str:
        return f"{self.firstName} {self.lastName}".strip()


class Project(_RemoteModel):
    id: str
    name: str
    description: Optional[str] = None
    status: Optional[str] = None
    startDate: Optional[str] = None
    endDate: Optional[str] = None
    ownerId: Optional[str] = None
    ownerName: Optional[str] = None
    teamSize: Optional[int] = None
    progress: Optional[float] = None
    createdAt: Optional[str] = None
    updatedAt: Optional[str] = None


class Task(_RemoteModel):
    id: str
    title: str
    status: Optional[str] = None
    description: Optional[str] = None
    # The remote reports priority either as a label or as its numeric level
    priority: Optional[Union[int, str]] = None
    assigneeId: Optional[str] = None
    assigneeName: Optional[str] = None
    projectId: Optional[str] = None
    projectName: Optional[str] = None
    dueDate: Optional[str] = None
    estimatedHours: Optional[float] = None
    actualHours: Optional[float] = None
    progress: Optional[float] = None
    createdAt: Optional[str] = None
    updatedAt: Optional[str] = None


class _RequestModel(BaseModel):
    model_config = ConfigDict(extra="forbid")

    def to_payload(self) -> Dict[str, Any]:
        """JSON body for the remote API, unset fields omitted."""
        return self.model_dump(exclude_none=True)


class TaskCreateRequest(_RequestModel):
    title: str
    projectId: Optional[str] = None
    message: Optional[str] = None
    toUserId: Optional[str] = None
    fromUserId: Optional[str] = None
    priority: Optional[int] = None
    deadline: Optional[str] = None
    estimate: Optional[int] = Field(default=None, ge=0)
    startDate: Optional[str] = None
    endDate: Optional[str] = None
    taskTypeId: Optional[str] = None
    parentTaskId: Optional[str] = None
    storyPoints: Optional[float] = None


class TaskUpdateRequest(_RequestModel):
    title: Optional[str] = None
    message: Optional[str] = None
    status: Optional[str] = None
    priority: Optional[int] = None
    toUserId: Optional[str] = None
    deadline: Optional[str] = None
    estimate: Optional[int] = Field(default=None, ge=0)
    progress: Optional[float] = Field(default=None, ge=0, le=100)
    startDate: Optional[str] = None
    endDate: Optional[str] = None
