from datetime import datetime

from pydantic import BaseModel

from phoneshop.models.user import UserRole


class UserOut(BaseModel):
    id: int
    email: str
    username: str
    role: UserRole
    is_active: bool
    created_at: datetime
    last_login_at: datetime | None = None

    model_config = {"from_attributes": True}
