from __future__ import annotations

from relrepo.records import AggregateRecord
from relrepo.schemas import tasks as schemas
from .base import Repository, Values, as_dict

CREATE_SCHEMAS = {
    "users": schemas.TaskUserCreate,
    "tasks": schemas.TaskCreate,
}


class _TaskGraphRepository(Repository):
    nested_schemas = CREATE_SCHEMAS


class TaskUserRepository(_TaskGraphRepository):
    entity = "users"
    create_schema = schemas.TaskUserCreate
    update_schema = schemas.TaskUserUpdate
    read_schema = schemas.TaskUser

    def create_with_tasks(self, user: Values) -> AggregateRecord:
        data = as_dict(user)
        tasks = data.pop("tasks", [])
        return self.create_with_nested(data, {"tasks": tasks})


class TaskRepository(_TaskGraphRepository):
    entity = "tasks"
    create_schema = schemas.TaskCreate
    update_schema = schemas.TaskUpdate
    read_schema = schemas.Task
