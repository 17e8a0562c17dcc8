from pydantic import BaseModel, ConfigDict


class TaskFields(BaseModel):
    title: str


class TaskCreate(TaskFields):
    user_id: int | None = None


class Task(TaskFields):
    id: int
    user_id: int | None = None
    model_config = ConfigDict(from_attributes=True)


class TaskUserBase(BaseModel):
    name: str
    email: str


class TaskUserCreate(TaskUserBase):
    pass


class TaskUser(TaskUserBase):
    id: int
    model_config = ConfigDict(from_attributes=True)


class TaskUserWithTasksCreate(TaskUserBase):
    tasks: list[TaskFields] = []


class TaskUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    user_id: int | None = None
    title: str | None = None


class TaskUserUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str | None = None
    email: str | None = None
