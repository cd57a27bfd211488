"""
Caller access scope.

Authentication happens upstream; the gateway forwards the resolved identity
in request headers. This module turns those headers into an AccessScope and
applies it to filters and to individual tanks.
"""
from dataclasses import dataclass, field
from typing import List, Optional, Sequence
import logging

from fastapi import Depends, Header, HTTPException

from app.errors import AccessDeniedError

logger = logging.getLogger(__name__)

ADMIN_ROLE = "system_admin"

READ_ROLES = ("operator", "manager", "network_admin", "system_admin")
WRITE_READING_ROLES = ("operator", "manager")
ADMIN_EDIT_ROLES = ("manager", "network_admin")
EXPORT_ROLES = ("manager", "network_admin", "system_admin")


@dataclass
class AccessScope:
    user_id: str
    roles: List[str] = field(default_factory=list)
    trading_point_ids: List[int] = field(default_factory=list)
    network_id: Optional[int] = None

    @property
    def is_admin(self) -> bool:
        return ADMIN_ROLE in self.roles

    def restrict(self, filters):
        """Return a copy of a scoped filter limited to what this caller may see."""
        if self.is_admin:
            return filters
        if self.trading_point_ids:
            return filters.model_copy(update={"trading_point_ids": list(self.trading_point_ids)})
        if self.network_id is not None:
            if filters.network_id is not None and filters.network_id != self.network_id:
                return filters.model_copy(update={"deny_all": True})
            return filters.model_copy(update={"network_id": self.network_id})
        return filters.model_copy(update={"deny_all": True})

    def can_access_point(self, trading_point_id: int, network_id: Optional[int]) -> bool:
        if self.is_admin:
            return True
        if trading_point_id in self.trading_point_ids:
            return True
        return self.network_id is not None and network_id == self.network_id

    def can_access(self, tank) -> bool:
        return self.can_access_point(tank.trading_point_id, tank.network_id)

    def ensure_access(self, tank) -> None:
        if not self.can_access(tank):
            logger.warning(f"User {self.user_id} denied access to tank {tank.id}")
            raise AccessDeniedError("Access denied to this tank")


def _split(value: Optional[str]) -> List[str]:
    if not value:
        return []
    return [part.strip() for part in value.split(",") if part.strip()]


def get_access_scope(
    x_user_id: Optional[str] = Header(None),
    x_user_roles: Optional[str] = Header(None),
    x_trading_point_ids: Optional[str] = Header(None),
    x_network_id: Optional[int] = Header(None),
) -> AccessScope:
    if not x_user_id:
        raise HTTPException(status_code=401, detail="Authentication required")

    try:
        trading_point_ids = [int(v) for v in _split(x_trading_point_ids)]
    except ValueError:
        raise HTTPException(status_code=401, detail="Malformed trading point scope")

    return AccessScope(
        user_id=x_user_id,
        roles=_split(x_user_roles),
        trading_point_ids=trading_point_ids,
        network_id=x_network_id,
    )


def require_roles(roles: Sequence[str]):
    """Dependency factory: resolve the scope and check the caller holds one of `roles`."""
    def dependency(scope: AccessScope = Depends(get_access_scope)) -> AccessScope:
        if not any(role in scope.roles for role in roles):
            logger.warning(f"User {scope.user_id} with roles {scope.roles} lacks one of {list(roles)}")
            raise AccessDeniedError("Insufficient permissions", {"required_roles": list(roles)})
        return scope
    return dependency
