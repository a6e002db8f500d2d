"""
Admin back-office API endpoints

Sessions:
- POST /admin/login creates an opaque Redis-backed session (admin_session cookie)
- Every other route requires an active admin (get_current_admin)
"""

import logging
from typing import List, Literal, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request, status
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from sqlalchemy.orm import Session

from chatapp.config import settings
from chatapp.database import get_db
from chatapp.core.exceptions import (
    http_400_bad_request,
    http_401_unauthorized,
    http_403_forbidden,
    http_404_not_found,
    http_409_conflict,
)
from chatapp.core.security import verify_password
from chatapp.api.deps import get_admin_session_store, get_current_admin
from chatapp.middleware.rate_limiter import auth_rate_limit
from chatapp.models.admin import AdminUser
from chatapp.schemas.admin import (
    AdminLoginRequest,
    AdminSettingsData,
    AdminSettingsUpdate,
    AdminUserCreate,
    AdminUserListResponse,
    AdminUserResponse,
    AdminUserUpdate,
    AppUserDetailResponse,
    AppUserListResponse,
    AppUserResponse,
    DashboardMetrics,
    ProfileUpdate,
    TrendPoint,
    UsageSummary,
    UserUsage,
)
from chatapp.services.admin_service import AdminService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/admin", tags=["admin"])


def get_admin_service(db: Session = Depends(get_db)) -> AdminService:
    """Dependency: back-office service bound to the request session"""
    return AdminService(db)


# ==============================================================================
# Session
# ==============================================================================


@router.post("/login", response_model=AdminUserResponse)
@auth_rate_limit()
async def admin_login(
    request: Request,
    credentials: AdminLoginRequest,
    service: AdminService = Depends(get_admin_service),
    store=Depends(get_admin_session_store)
):
    """
    Start an admin session

    Raises:
        HTTPException: 401 for unknown emails or a wrong password,
            403 for disabled or non-admin accounts

    Accounts without a stored password hash log in by email alone.
    """
    admin = service.get_admin_user_by_email(credentials.email)
    if not admin:
        raise http_401_unauthorized("Invalid credentials")
    if admin.password_hash and not verify_password(credentials.password or "", admin.password_hash):
        raise http_401_unauthorized("Invalid credentials")

    if admin.status != "active":
        raise http_403_forbidden("This account is disabled")
    if admin.role != "admin":
        raise http_403_forbidden("Admin access required")

    session_id = store.create(str(admin.id))

    response = JSONResponse(
        content=AdminUserResponse.model_validate(admin).model_dump(mode="json", by_alias=True)
    )
    response.set_cookie(
        key=settings.ADMIN_SESSION_COOKIE_NAME,
        value=session_id,
        max_age=settings.ADMIN_SESSION_MAX_AGE_DAYS * 24 * 60 * 60,
        httponly=True,
        secure=settings.SESSION_COOKIE_SECURE,
        samesite="lax",
        path="/",
    )
    return response


@router.post("/logout")
async def admin_logout(
    request: Request,
    store=Depends(get_admin_session_store)
):
    """End the admin session and clear its cookie"""
    store.destroy(request.cookies.get(settings.ADMIN_SESSION_COOKIE_NAME))

    response = JSONResponse(content={"message": "Logged out"})
    response.delete_cookie(key=settings.ADMIN_SESSION_COOKIE_NAME, path="/")
    return response


# ==============================================================================
# Admin users
# ==============================================================================


@router.get("/users", response_model=AdminUserListResponse)
async def list_admin_users(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    search: Optional[str] = None,
    role: Optional[Literal["admin", "user"]] = None,
    status: Optional[Literal["active", "disabled"]] = None,
    service: AdminService = Depends(get_admin_service),
    admin: AdminUser = Depends(get_current_admin)
):
    """
    List admin users

    Filters:
    - search: case-insensitive match on email or name
    - role, status: exact match
    """
    users, total, total_pages = service.list_admin_users(page, limit, search, role, status)
    return AdminUserListResponse(
        users=[AdminUserResponse.model_validate(u) for u in users],
        total=total,
        page=page,
        limit=limit,
        total_pages=total_pages,
    )


@router.post("/users", response_model=AdminUserResponse, status_code=status.HTTP_201_CREATED)
async def create_admin_user(
    user: AdminUserCreate,
    service: AdminService = Depends(get_admin_service),
    admin: AdminUser = Depends(get_current_admin)
):
    """
    Create an admin user

    Raises:
        HTTPException: 400 on invalid email/role/status, 409 if the email is taken
    """
    if service.get_admin_user_by_email(user.email):
        raise http_409_conflict("A user with this email already exists")

    return service.create_admin_user(
        email=user.email,
        name=user.name,
        role=user.role,
        status=user.status,
        password=user.password,
    )


@router.get("/users/{user_id}", response_model=AdminUserResponse)
async def get_admin_user(
    user_id: UUID,
    service: AdminService = Depends(get_admin_service),
    admin: AdminUser = Depends(get_current_admin)
):
    """Get an admin user by ID"""
    user = service.get_admin_user(user_id)
    if not user:
        raise http_404_not_found("User not found")
    return user


@router.patch("/users/{user_id}", response_model=AdminUserResponse)
async def update_admin_user(
    user_id: UUID,
    update: AdminUserUpdate,
    service: AdminService = Depends(get_admin_service),
    admin: AdminUser = Depends(get_current_admin)
):
    """
    Update an admin user

    Raises:
        HTTPException: 400 if nothing would change, 404 if missing,
            409 if the new email is taken
    """
    user = service.get_admin_user(user_id)
    if not user:
        raise http_404_not_found("User not found")

    changes = update.model_dump(exclude_unset=True)
    for field in ("email", "role", "status", "password"):
        if field in changes and changes[field] is None:
            changes.pop(field)
    if not changes:
        raise http_400_bad_request("At least one field must be provided")

    if "email" in changes and changes["email"] != user.email:
        existing = service.get_admin_user_by_email(changes["email"])
        if existing and existing.id != user.id:
            raise http_409_conflict("A user with this email already exists")

    return service.update_admin_user(user, changes)


@router.delete("/users/{user_id}")
async def delete_admin_user(
    user_id: UUID,
    service: AdminService = Depends(get_admin_service),
    admin: AdminUser = Depends(get_current_admin)
):
    """Delete an admin user"""
    user = service.get_admin_user(user_id)
    if not user:
        raise http_404_not_found("User not found")

    service.delete_admin_user(user)
    return {"message": "User deleted successfully"}


# ==============================================================================
# Site and profile settings
# ==============================================================================


def _settings_envelope(row) -> dict:
    return {
        "ok": True,
        "data": AdminSettingsData.model_validate(row).model_dump(mode="json", by_alias=True),
    }


@router.get("/settings")
async def get_site_settings(
    service: AdminService = Depends(get_admin_service),
    admin: AdminUser = Depends(get_current_admin)
):
    """
    Site settings

    Returns:
        {"ok": true, "data": {siteName, allowSignup, dailyTokenLimit, updatedAt}}
    """
    return _settings_envelope(service.get_settings())


@router.patch("/settings")
async def update_site_settings(
    request: Request,
    service: AdminService = Depends(get_admin_service),
    admin: AdminUser = Depends(get_current_admin)
):
    """
    Update site settings

    Returns:
        {"ok": true, "data": {...}} or {"ok": false, "error": "..."} with 400
    """
    try:
        update = AdminSettingsUpdate.model_validate(await request.json())
    except ValidationError as e:
        message = "; ".join(err["msg"] for err in e.errors())
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"ok": False, "error": message})
    except ValueError:
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"ok": False, "error": "Invalid JSON body"})

    changes = {k: v for k, v in update.model_dump(exclude_unset=True).items() if v is not None}
    if not changes:
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"ok": False, "error": "No settings provided"})

    row = service.update_settings(changes)
    logger.info(f"Admin {admin.id} updated site settings: {sorted(changes)}")
    return _settings_envelope(row)


@router.patch("/profile", response_model=AdminUserResponse)
async def update_profile(
    update: ProfileUpdate,
    service: AdminService = Depends(get_admin_service),
    admin: AdminUser = Depends(get_current_admin)
):
    """Update the current admin's display name"""
    return service.update_admin_user(admin, {"name": update.name})


# ==============================================================================
# AI app users and usage
# ==============================================================================


@router.get("/app-users", response_model=AppUserListResponse)
async def list_app_users(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    search: Optional[str] = None,
    type: Optional[Literal["regular", "guest"]] = None,
    service: AdminService = Depends(get_admin_service),
    admin: AdminUser = Depends(get_current_admin)
):
    """List chat app users (search on email, filter on type)"""
    users, total, total_pages = service.list_app_users(page, limit, search, type)
    return AppUserListResponse(
        users=[AppUserResponse.model_validate(u) for u in users],
        total=total,
        page=page,
        limit=limit,
        total_pages=total_pages,
    )


@router.get("/app-users/{user_id}", response_model=AppUserDetailResponse)
async def get_app_user(
    user_id: UUID,
    service: AdminService = Depends(get_admin_service),
    admin: AdminUser = Depends(get_current_admin)
):
    """Chat app user with usage summary and 20 most recent chats"""
    user = service.get_app_user(user_id)
    if not user:
        raise http_404_not_found("User not found")

    return AppUserDetailResponse(
        user=AppUserResponse.model_validate(user),
        usage=UsageSummary(**service.get_usage_summary(user.id)),
        recent_chats=service.get_recent_chats(user.id),
    )


@router.post("/app-users/{user_id}/toggle-status", response_model=AppUserResponse)
async def toggle_app_user_status(
    user_id: UUID,
    service: AdminService = Depends(get_admin_service),
    admin: AdminUser = Depends(get_current_admin)
):
    """Ban or unban a chat app user"""
    user = service.get_app_user(user_id)
    if not user:
        raise http_404_not_found("User not found")

    logger.info(f"Admin {admin.id} toggling status of app user {user_id}")
    return service.toggle_app_user_status(user)


@router.get("/usage", response_model=List[UserUsage])
async def get_usage(
    service: AdminService = Depends(get_admin_service),
    admin: AdminUser = Depends(get_current_admin)
):
    """Usage per chat app user, most recently active first"""
    return service.get_usage_stats()


@router.get("/metrics", response_model=DashboardMetrics)
async def get_metrics(
    service: AdminService = Depends(get_admin_service),
    admin: AdminUser = Depends(get_current_admin)
):
    """Dashboard totals"""
    return service.get_dashboard_metrics()


@router.get("/message-trend", response_model=List[TrendPoint])
async def get_message_trend(
    days: int = Query(30, ge=1, le=365),
    service: AdminService = Depends(get_admin_service),
    admin: AdminUser = Depends(get_current_admin)
):
    """Messages per day over the last `days` days, zero-filled"""
    return service.get_message_trend(days)
