#!/usr/bin/env python3
"""
Blog Walkthrough Script

Builds the users/profiles/blogs/posts/comments schema, then:
- runs a create/update/delete round on a throwaway user
- seeds two users with profiles, one blog each, two posts per blog and comments
- prints the users-with-profile and users-with-blogs-and-posts aggregates
- creates a user together with its profile in one call

Reads the database URL from RELREPO_DATABASE_URL / DATABASE_URL and falls
back to in-memory SQLite.

Usage:
  python scripts/blog_demo.py [--json] [--echo-sql] [--database-url URL]
"""
from __future__ import annotations

import argparse
import json
import logging
from dataclasses import asdict, dataclass, replace
from typing import Any, Dict, List

from relrepo import open_database
from relrepo.config import get_settings
from relrepo.log import configure_logging
from relrepo.models import blog
from relrepo.repositories import BlogRepositories

logger = logging.getLogger("relrepo.demo")


@dataclass
class WalkthroughReport:
    crud: Dict[str, Any]
    users_with_profile: List[Dict[str, Any]]
    users_with_blogs: List[Dict[str, Any]]
    user_with_profile: Dict[str, Any]

    def to_json(self) -> str:
        return json.dumps(asdict(self), indent=2)

    def pretty(self) -> str:
        lines = ["crud:"]
        for step, row in self.crud.items():
            lines.append(f"  {step}: {row}")
        lines.append("users with profile:")
        for user in self.users_with_profile:
            profile = user["profile"]
            lines.append(f"  {user['user_name']} <{user['email']}>: {profile['first_name']} {profile['last_name']}")
        lines.append("users with blogs and posts:")
        for user in self.users_with_blogs:
            lines.append(f"  {user['user_name']}")
            for b in user["blogs"]:
                lines.append(f"    {b['name']} ({len(b['posts'])} posts)")
                for post in b["posts"]:
                    lines.append(f"      - {post['name']}")
        lines.append(f"created with profile: {self.user_with_profile}")
        return "\n".join(lines)


def seed(repos: BlogRepositories) -> None:
    seeded = []
    for label in ("first", "second"):
        user = repos.users.create({"email": f"{label}@host.com", "user_name": label})
        repos.profiles.create({"user_id": user.id, "first_name": label, "last_name": "user"})
        b = repos.blogs.create({"user_id": user.id, "name": f"{label} blog", "slug": f"{label}-blog"})
        posts = [
            repos.posts.create({
                "user_id": user.id,
                "blog_id": b.id,
                "name": f"{label} post {n}",
                "slug": f"{label}-post-{n}",
                "content": f"{label} content {n}",
                "description": f"{label} description {n}",
            })
            for n in (1, 2)
        ]
        seeded.append((user, posts[0]))
    (first, first_post), (second, second_post) = seeded
    repos.comments.create({"post_id": second_post.id, "user_id": first.id, "content": "first comment"})
    repos.comments.create({"post_id": first_post.id, "user_id": second.id, "content": "second comment"})
    repos.comments.create({"post_id": first_post.id, "user_id": first.id, "content": "first reply"})
    repos.comments.create({"post_id": second_post.id, "user_id": second.id, "content": "second reply"})


def run(database_url: str | None = None) -> WalkthroughReport:
    database = open_database(blog.build_registry(), database_url)
    try:
        with database.gateway() as gateway:
            repos = BlogRepositories.bind(gateway)

            created = repos.users.create({"email": "some@host.com", "user_name": "some"})
            updated = repos.users.update(created.id, {"email": "other@host.com"})
            deleted = repos.users.delete(created.id)
            crud = {"created": created.to_dict(), "updated": updated.to_dict(), "deleted": deleted.to_dict()}

            seed(repos)
            with_profile = repos.users.aggregate_all("profile")
            with_blogs = repos.users.aggregate_all({"blogs": ["posts"]})
            third = repos.users.create_with_profile({
                "email": "third@host.com",
                "user_name": "third",
                "profile": {"first_name": "third", "last_name": "user"},
            })
            logger.info("walkthrough complete: users=%d", len(repos.users.list_by()))
            return WalkthroughReport(
                crud=crud,
                users_with_profile=[u.to_dict() for u in with_profile],
                users_with_blogs=[u.to_dict() for u in with_blogs],
                user_with_profile=third.to_dict(),
            )
    finally:
        database.dispose()


def main(argv: List[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Walk through the blog repositories")
    parser.add_argument("--json", action="store_true", help="print the report as JSON")
    parser.add_argument("--echo-sql", action="store_true", help="log every SQL statement")
    parser.add_argument("--database-url", default=None, help="override the configured database URL")
    args = parser.parse_args(argv)

    settings = get_settings()
    if args.echo_sql:
        settings = replace(settings, echo_sql=True)
    configure_logging(settings)

    report = run(args.database_url)
    print(report.to_json() if args.json else report.pretty())
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
