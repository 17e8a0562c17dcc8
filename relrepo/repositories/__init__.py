"""
Typed repositories: a generic per-entity facade plus the concrete ones for
the declared graphs.
"""

from .base import Repository
from .blog import (
    BlogRepositories,
    BlogRepository,
    CommentRepository,
    PostRepository,
    ProfileRepository,
    UserRepository,
)
from .tasks import TaskRepository, TaskUserRepository

__all__ = [
    "BlogRepositories",
    "BlogRepository",
    "CommentRepository",
    "PostRepository",
    "ProfileRepository",
    "Repository",
    "TaskRepository",
    "TaskUserRepository",
    "UserRepository",
]
