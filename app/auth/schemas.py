from typing import Optional

from pydantic import BaseModel

from app.core.enums import UserRole


class CurrentUser(BaseModel):
    """Authenticated caller as asserted by the auth service's access token."""

    id: str
    role: UserRole
    email: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN
