from fastapi import HTTPException, status, Depends, Security
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from catalog_admin.auth.jwt_validator import jwt_validator
from catalog_admin.config import settings
import logging

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Security(bearer_scheme)
) -> dict:
    """Dependency to extract and validate the bearer token"""
    if not credentials:
        logger.warning("Authentication credentials missing")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authorization header missing"
        )

    payload = jwt_validator.verify_token(credentials.credentials)

    user_id = payload.get("id")
    role = payload.get("role")
    if user_id is None or not role:
        logger.warning("Token missing id or role claim")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token missing id or role claim"
        )

    logger.debug(f"Authenticated user {payload.get('username')} (id: {user_id}, role: {role})")
    return {
        "user_id": user_id,
        "username": payload.get("username"),
        "role": role,
        "is_admin": role in settings.admin_roles,
        "payload": payload
    }


async def require_admin(
    current_user: dict = Depends(get_current_user)
) -> dict:
    """Dependency to require an administrative role"""
    if not current_user.get("is_admin"):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required"
        )
    return current_user
