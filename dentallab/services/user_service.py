"""
User service for authentication and staff account management
"""

from sqlalchemy.orm import Session
from sqlalchemy import or_
from fastapi import HTTPException, status
from datetime import datetime
from typing import Optional
import logging

from dentallab.constants import ROLE_ADMIN
from dentallab.models.user import User
from dentallab.schemas.user import UserCreate, UserLogin
from dentallab.auth.auth_handler import AuthHandler
from dentallab.utils.error_handler import DatabaseError

logger = logging.getLogger(__name__)


class UserService:
    """Service for user management operations"""

    def __init__(self, db: Session):
        self.db = db
        self.auth_handler = AuthHandler()

    async def create_user(self, user_data: UserCreate) -> User:
        """Create a new staff account"""
        try:
            existing_user = self.db.query(User).filter(
                or_(
                    User.username == user_data.username.lower(),
                    User.email == user_data.email.lower()
                )
            ).first()

            if existing_user:
                if existing_user.username == user_data.username.lower():
                    raise HTTPException(
                        status_code=status.HTTP_400_BAD_REQUEST,
                        detail="Username already registered"
                    )
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail="Email already registered"
                )

            db_user = User(
                username=user_data.username.lower(),
                email=user_data.email.lower(),
                hashed_password=self.auth_handler.get_password_hash(user_data.password),
                first_name=user_data.first_name,
                last_name=user_data.last_name,
                role=user_data.role,
                is_active=True,
            )

            self.db.add(db_user)
            self.db.commit()
            self.db.refresh(db_user)

            logger.info(f"Created new user: {db_user.username} ({db_user.role})")
            return db_user

        except HTTPException:
            raise
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to create user: {e}")
            raise DatabaseError(f"Failed to create user account: {str(e)}", e)

    async def authenticate_user(self, login_data: UserLogin) -> Optional[User]:
        """Authenticate user credentials"""
        try:
            user = self.db.query(User).filter(
                or_(
                    User.username == login_data.username_or_email.lower(),
                    User.email == login_data.username_or_email.lower()
                )
            ).first()

            if not user:
                logger.warning(f"Login attempt with non-existent user: {login_data.username_or_email}")
                return None

            if not user.is_active:
                logger.warning(f"Login attempt with blocked user: {user.username}")
                raise HTTPException(
                    status_code=status.HTTP_401_UNAUTHORIZED,
                    detail="Account is blocked"
                )

            if not self.auth_handler.verify_password(login_data.password, user.hashed_password):
                logger.warning(f"Failed login attempt for user: {user.username}")
                return None

            user.last_login = datetime.utcnow()
            self.db.commit()

            logger.info(f"Successful login for user: {user.username}")
            return user

        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Authentication error: {e}")
            raise DatabaseError(f"Authentication failed: {str(e)}", e)

    async def get_user_by_id(self, user_id: int) -> Optional[User]:
        return self.db.query(User).filter(User.id == user_id).first()

    async def set_active(self, user_id: int, is_active: bool) -> User:
        """Block or unblock an account"""
        user = await self.get_user_by_id(user_id)
        if not user:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="User not found"
            )
        try:
            user.is_active = is_active
            self.db.commit()
            self.db.refresh(user)
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to change status of user {user_id}: {e}")
            raise DatabaseError(f"Failed to update user: {str(e)}", e)

        logger.info(f"User {user.username} is now {'active' if is_active else 'blocked'}")
        return user

    async def get_users_paginated(self, page: int = 1, page_size: int = 10, role: Optional[str] = None, active_only: bool = False) -> tuple[list[User], int]:
        """Get paginated list of users"""
        try:
            query = self.db.query(User)

            if role:
                query = query.filter(User.role == role)
            if active_only:
                query = query.filter(User.is_active == True)  # noqa: E712

            total = query.count()
            offset = (page - 1) * page_size
            users = query.order_by(User.username).offset(offset).limit(page_size).all()

            return users, total

        except Exception as e:
            logger.error(f"Failed to get users: {e}")
            raise DatabaseError(f"Failed to retrieve users: {str(e)}", e)

    def ensure_admin(self, username: str, password: str, email: str) -> Optional[User]:
        """Create the bootstrap admin account if no user has that username yet"""
        if self.db.query(User).filter(User.username == username.lower()).first():
            return None
        admin = User(
            username=username.lower(),
            email=email.lower(),
            hashed_password=self.auth_handler.get_password_hash(password),
            first_name="Admin",
            last_name="Lab",
            role=ROLE_ADMIN,
            is_active=True,
        )
        self.db.add(admin)
        self.db.commit()
        logger.info(f"Bootstrap admin account '{admin.username}' created")
        return admin
