"""Convenience imports for Alembic metadata discovery."""

from voluntree.models.user import User
from voluntree.models.follow import Follow
from voluntree.models.project import Project
from voluntree.models.post import Post
from voluntree.models.member import Member  # noqa: F401
