"""
Authentication and role-based authorization for lab staff
"""

from datetime import datetime, timedelta
from typing import Optional
from fastapi import HTTPException, status, Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from passlib.context import CryptContext
from jose import JWTError, jwt

from dentallab.config import settings
from dentallab.constants import ROLE_ADMIN, ROLE_CLIENT, ROLE_OPERATOR

ALGORITHM = "HS256"

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=4)
security = HTTPBearer()


class AuthHandler:
    """Handles authentication and authorization"""

    def __init__(self):
        self.pwd_context = pwd_context

    def verify_password(self, plain_password: str, hashed_password: str) -> bool:
        """Verify a password against its hash"""
        return self.pwd_context.verify(plain_password, hashed_password)

    def get_password_hash(self, password: str) -> str:
        """Hash a password"""
        return self.pwd_context.hash(password)

    def create_access_token(self, data: dict, expires_delta: Optional[timedelta] = None):
        """Create a JWT access token"""
        to_encode = data.copy()
        if expires_delta:
            expire = datetime.utcnow() + expires_delta
        else:
            expire = datetime.utcnow() + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)

        to_encode.update({"exp": expire})
        return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=ALGORITHM)

    def verify_token(self, token: str) -> dict:
        """Verify and decode a JWT token"""
        try:
            return jwt.decode(token, settings.SECRET_KEY, algorithms=[ALGORITHM])
        except JWTError:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Could not validate credentials",
                headers={"WWW-Authenticate": "Bearer"},
            )


auth_handler = AuthHandler()


def get_current_user(credentials: HTTPAuthorizationCredentials = Depends(security)):
    """Dependency to get current authenticated user"""
    payload = auth_handler.verify_token(credentials.credentials)

    user_id: str = payload.get("sub")
    if user_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return {
        "user_id": user_id,
        "username": payload.get("username"),
        "role": payload.get("role", ROLE_CLIENT),
        "email": payload.get("email")
    }


class RoleChecker:
    """Check user roles for authorization"""

    def __init__(self, allowed_roles: list, detail: str = "Operation not permitted"):
        self.allowed_roles = allowed_roles
        self.detail = detail

    def __call__(self, user: dict = Depends(get_current_user)):
        if user.get("role") not in self.allowed_roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=self.detail
            )
        return user


admin_required = RoleChecker([ROLE_ADMIN])
staff_required = RoleChecker([ROLE_ADMIN, ROLE_CLIENT, ROLE_OPERATOR])
# Operators may read and edit but never delete
delete_permitted = RoleChecker(
    [ROLE_ADMIN, ROLE_CLIENT],
    detail="Operators are not allowed to delete records"
)
