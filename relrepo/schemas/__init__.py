"""
Pydantic payload schemas for the declared entity graphs.
"""

from . import blog, tasks

__all__ = ["blog", "tasks"]
