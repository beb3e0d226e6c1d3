# mentorlink/dependencies/auth_dependencies.py
from typing import Optional
from fastapi import Depends
from ..security import CallerIdentity, get_current_identity
from ..constants import ErrorMessages
from ..exceptions import UnauthorizedError

def ensure_acting_as(identity: Optional[CallerIdentity], uid: str):
    """Lets the call through if auth is off, the caller is ``uid``, or the caller is an admin"""
    if identity is None or identity.is_admin or identity.uid == uid:
        return
    raise UnauthorizedError(ErrorMessages.UNAUTHORIZED, details={"uid": uid})

def require_admin(identity: Optional[CallerIdentity] = Depends(get_current_identity)) -> Optional[CallerIdentity]:
    """Admin-only routes; a no-op when auth is off"""
    if identity is not None and not identity.is_admin:
        raise UnauthorizedError(ErrorMessages.UNAUTHORIZED)
    return identity
