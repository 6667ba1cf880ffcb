"""API routers."""
from . import auth, tools, users

__all__ = ["auth", "tools", "users"]
