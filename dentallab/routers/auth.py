"""
Authentication endpoints and staff account administration
"""

from fastapi import APIRouter, Depends, HTTPException, status, Request
from sqlalchemy.orm import Session
from slowapi import Limiter
from slowapi.util import get_remote_address
from datetime import timedelta
from typing import Optional
import logging
import math

from dentallab.config import settings
from dentallab.database import get_db
from dentallab.utils.error_handler import DatabaseError
from dentallab.schemas.user import (
    UserCreate, UserLogin, UserResponse, TokenResponse, UserListResponse
)
from dentallab.services.user_service import UserService
from dentallab.auth.auth_handler import AuthHandler, get_current_user, admin_required
from dentallab.services.activity_logger import ActivityLogger

logger = logging.getLogger(__name__)
limiter = Limiter(key_func=get_remote_address, enabled=settings.RATE_LIMIT_ENABLED)

router = APIRouter()


@router.post("/login", response_model=TokenResponse)
@limiter.limit("10/minute")  # Prevent brute force attacks
async def login(
    request: Request,
    login_data: UserLogin,
    db: Session = Depends(get_db)
):
    """Authenticate user and return access token"""
    try:
        user_service = UserService(db)
        activity_logger = ActivityLogger(db)
        client_ip = request.client.host if request.client else None

        user = await user_service.authenticate_user(login_data)

        if not user:
            await activity_logger.log_activity(
                endpoint="/api/v1/auth/login",
                method="POST",
                status_code=401,
                username=login_data.username_or_email,
                ip_address=client_ip,
                user_agent=request.headers.get("user-agent"),
                error_message=f"Failed login attempt for: {login_data.username_or_email}"
            )
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid username/email or password"
            )

        expires_minutes = settings.ACCESS_TOKEN_EXPIRE_MINUTES
        access_token = AuthHandler().create_access_token(
            data={
                "sub": str(user.id),
                "username": user.username,
                "role": user.role,
                "email": user.email
            },
            expires_delta=timedelta(minutes=expires_minutes)
        )

        await activity_logger.log_activity(
            endpoint="/api/v1/auth/login",
            method="POST",
            status_code=200,
            username=user.username,
            ip_address=client_ip,
            user_agent=request.headers.get("user-agent")
        )

        return TokenResponse(
            access_token=access_token,
            token_type="bearer",
            expires_in=expires_minutes * 60,
            user=UserResponse.from_orm(user)
        )

    except HTTPException:
        raise
    except DatabaseError:
        raise
    except Exception as e:
        logger.error(f"Login failed: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Login failed"
        )


@router.get("/me", response_model=UserResponse)
@limiter.limit("30/minute")
async def get_current_user_info(
    request: Request,
    current_user: dict = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Get current user information"""
    try:
        user = await UserService(db).get_user_by_id(int(current_user["user_id"]))
        if not user:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="User not found"
            )
        return UserResponse.from_orm(user)

    except HTTPException:
        raise
    except DatabaseError:
        raise
    except Exception as e:
        logger.error(f"Failed to get current user info: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to retrieve user information"
        )


# Admin endpoints
@router.get("/users", response_model=UserListResponse)
@limiter.limit("20/minute")
async def get_users(
    request: Request,
    page: int = 1,
    page_size: int = 20,
    role: Optional[str] = None,
    active_only: bool = False,
    current_user: dict = Depends(admin_required),
    db: Session = Depends(get_db)
):
    """Get paginated list of users (Admin only)"""
    try:
        if page < 1:
            page = 1
        if page_size < 1 or page_size > 100:
            page_size = 20

        users, total = await UserService(db).get_users_paginated(page, page_size, role, active_only)

        return UserListResponse(
            users=[UserResponse.from_orm(user) for user in users],
            total=total,
            page=page,
            page_size=page_size,
            total_pages=math.ceil(total / page_size)
        )

    except HTTPException:
        raise
    except DatabaseError:
        raise
    except Exception as e:
        logger.error(f"Failed to get users: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to retrieve users"
        )


@router.post("/users", response_model=UserResponse, status_code=201)
@limiter.limit("10/minute")
async def create_user(
    request: Request,
    user_data: UserCreate,
    current_user: dict = Depends(admin_required),
    db: Session = Depends(get_db)
):
    """Create a staff account (Admin only)"""
    try:
        new_user = await UserService(db).create_user(user_data)
        logger.info(f"Admin {current_user['username']} created user {new_user.username}")
        return UserResponse.from_orm(new_user)

    except HTTPException:
        raise
    except DatabaseError:
        raise
    except Exception as e:
        logger.error(f"Failed to create user: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create user account"
        )


@router.post("/users/{user_id}/deactivate", response_model=UserResponse)
@limiter.limit("10/minute")
async def deactivate_user(
    request: Request,
    user_id: int,
    current_user: dict = Depends(admin_required),
    db: Session = Depends(get_db)
):
    """Block a user account (Admin only)"""
    try:
        if int(current_user["user_id"]) == user_id:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Cannot deactivate your own account"
            )

        user = await UserService(db).set_active(user_id, False)
        logger.info(f"Admin {current_user['username']} deactivated user ID: {user_id}")
        return UserResponse.from_orm(user)

    except HTTPException:
        raise
    except DatabaseError:
        raise
    except Exception as e:
        logger.error(f"Failed to deactivate user {user_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to deactivate user"
        )


@router.post("/users/{user_id}/activate", response_model=UserResponse)
@limiter.limit("10/minute")
async def activate_user(
    request: Request,
    user_id: int,
    current_user: dict = Depends(admin_required),
    db: Session = Depends(get_db)
):
    """Unblock a user account (Admin only)"""
    try:
        user = await UserService(db).set_active(user_id, True)
        logger.info(f"Admin {current_user['username']} activated user ID: {user_id}")
        return UserResponse.from_orm(user)

    except HTTPException:
        raise
    except DatabaseError:
        raise
    except Exception as e:
        logger.error(f"Failed to activate user {user_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to activate user"
        )


@router.get("/activity")
@limiter.limit("20/minute")
async def get_recent_activity(
    request: Request,
    limit: int = 100,
    current_user: dict = Depends(admin_required),
    db: Session = Depends(get_db)
):
    """Recent sign-in and error audit entries (Admin only)"""
    activities = ActivityLogger(db).get_recent_activities(min(max(limit, 1), 500))
    return [
        {
            "id": activity.id,
            "endpoint": activity.endpoint,
            "method": activity.method,
            "status_code": activity.status_code,
            "username": activity.username,
            "ip_address": activity.ip_address,
            "error_message": activity.error_message,
            "created_at": activity.created_at.isoformat() if activity.created_at else None,
        }
        for activity in activities
    ]
