"""FastAPI dependencies shared by the v1 routers."""

from .admin import require_admin
from .api_key import get_api_key_user
from .auth import (
    get_current_user,
    get_current_user_optional,
    get_db_with_rls,
    verify_token,
)

__all__ = [
    "get_current_user",
    "get_current_user_optional",
    "get_db_with_rls",
    "verify_token",
    "get_api_key_user",
    "require_admin",
]
