from __future__ import annotations
from typing import Optional

from blueprints.auth.schemas import Email
from blueprints.core.schemas import ApiModel
from models import Role


class UserAdminUpdate(ApiModel):
    email: Optional[Email] = None
    role: Optional[Role] = None
    is_active: Optional[bool] = None
