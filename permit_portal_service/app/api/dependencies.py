# Request-scoped dependencies shared by the API routers
import logging
from typing import Optional

from fastapi import Depends, Header, HTTPException
from pydantic import BaseModel

from permit_portal_service.app.models import ActorRole, ADMIN_ROLES

logger = logging.getLogger(__name__)


class Actor(BaseModel):
    user_id: str
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role in ADMIN_ROLES


async def get_current_actor(
    x_user_id: Optional[str] = Header(None),
    x_user_role: Optional[str] = Header(None),
) -> Actor:
    """Identity of the caller as asserted by the authenticating gateway."""
    if not x_user_id:
        raise HTTPException(status_code=401, detail="Authentication required.")
    role = x_user_role or ActorRole.USER.value
    if role not in {r.value for r in ActorRole}:
        logger.warning(f"Rejected request from {x_user_id} with unknown role '{role}'.")
        raise HTTPException(status_code=403, detail=f"Unknown role '{role}'.")
    return Actor(user_id=x_user_id, role=role)


async def require_admin(actor: Actor = Depends(get_current_actor)) -> Actor:
    if not actor.is_admin:
        logger.warning(f"User {actor.user_id} with role '{actor.role}' attempted an admin operation.")
        raise HTTPException(status_code=403, detail="Admin role required.")
    return actor
