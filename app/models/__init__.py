"""
SQLModel models - Database schema models.

For modifications:
1. Edit the appropriate model file in app/models/
2. Create an Alembic migration to reflect the changes
"""

from app.models.refresh_token import RefreshTokens
from app.models.user import UserBase, Users

__all__ = [
    "RefreshTokens",
    "UserBase",
    "Users",
]
