"""
Declared entity graphs.

``blog`` is the five-entity users/profiles/blogs/posts/comments schema;
``tasks`` is the users/tasks schema used by the nested-create walkthrough.
"""

from . import blog, tasks

__all__ = ["blog", "tasks"]
