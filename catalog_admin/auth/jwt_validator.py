"""
JWT validator for admin session tokens (HS256, shared secret)
"""
import jwt
import logging
from typing import Dict
from fastapi import HTTPException, status
from catalog_admin.config import settings

logger = logging.getLogger(__name__)


class JWTValidator:
    def __init__(self, secret: str = None, algorithm: str = None):
        self.secret = secret or settings.jwt_secret
        self.algorithm = algorithm or settings.jwt_algorithm

    def verify_token(self, token: str) -> Dict:
        """
        Verify JWT token signature and expiry.
        Returns decoded token payload if valid.
        """
        try:
            return jwt.decode(
                token,
                self.secret,
                algorithms=[self.algorithm],
                options={"verify_exp": True},
            )
        except jwt.ExpiredSignatureError:
            logger.warning("JWT token has expired")
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Token has expired"
            )
        except jwt.InvalidTokenError as e:
            logger.warning(f"JWT verification failed: {e}")
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid authentication credentials"
            )


jwt_validator = JWTValidator()
