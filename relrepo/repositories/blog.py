"""
Repositories for the users/profiles/blogs/posts/comments graph.
"""
from __future__ import annotations

from dataclasses import dataclass

from relrepo.db.gateway import StorageGateway
from relrepo.errors import ConstraintViolation
from relrepo.records import AggregateRecord
from relrepo.schemas import blog as schemas
from .base import Repository, Values, as_dict

CREATE_SCHEMAS = {
    "users": schemas.UserCreate,
    "profiles": schemas.ProfileCreate,
    "blogs": schemas.BlogCreate,
    "posts": schemas.PostCreate,
    "comments": schemas.CommentCreate,
}


class _BlogGraphRepository(Repository):
    nested_schemas = CREATE_SCHEMAS


class UserRepository(_BlogGraphRepository):
    entity = "users"
    create_schema = schemas.UserCreate
    update_schema = schemas.UserUpdate
    read_schema = schemas.User

    def create_with_profile(self, user: Values) -> AggregateRecord:
        data = as_dict(user)
        profile = data.pop("profile", None)
        if profile is None:
            raise ConstraintViolation(self.entity, "a profile is required")
        return self.create_with_nested(data, {"profile": profile})


class ProfileRepository(_BlogGraphRepository):
    entity = "profiles"
    create_schema = schemas.ProfileCreate
    update_schema = schemas.ProfileUpdate
    read_schema = schemas.Profile


class BlogRepository(_BlogGraphRepository):
    entity = "blogs"
    create_schema = schemas.BlogCreate
    update_schema = schemas.BlogUpdate
    read_schema = schemas.Blog


class PostRepository(_BlogGraphRepository):
    entity = "posts"
    create_schema = schemas.PostCreate
    update_schema = schemas.PostUpdate
    read_schema = schemas.Post


class CommentRepository(_BlogGraphRepository):
    entity = "comments"
    create_schema = schemas.CommentCreate
    update_schema = schemas.CommentUpdate
    read_schema = schemas.Comment


@dataclass
class BlogRepositories:
    users: UserRepository
    profiles: ProfileRepository
    blogs: BlogRepository
    posts: PostRepository
    comments: CommentRepository

    @classmethod
    def bind(cls, gateway: StorageGateway) -> "BlogRepositories":
        return cls(
            users=UserRepository(gateway),
            profiles=ProfileRepository(gateway),
            blogs=BlogRepository(gateway),
            posts=PostRepository(gateway),
            comments=CommentRepository(gateway),
        )
