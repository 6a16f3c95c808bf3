import json
import logging
from collections import defaultdict
from datetime import datetime, timedelta, timezone

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from phoneshop.api.deps import get_current_user, require_permission
from phoneshop.core.config import settings
from phoneshop.core.security import (
    create_access_token,
    hash_password,
    hash_token,
    new_refresh_token,
    verify_password,
)
from phoneshop.db.database import get_db
from phoneshop.models.security import AuditLog, RefreshSession, UserSecurityProfile
from phoneshop.models.user import User, UserRole
from phoneshop.schemas.auth import (
    GenericMessageResponse,
    LoginRequest,
    LogoutRequest,
    RefreshRequest,
    RoleUpdateRequest,
    SignUpRequest,
    SignUpResponse,
    TokenPairResponse,
)
from phoneshop.schemas.user import UserOut

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])


class SlidingWindowLimiter:
    def __init__(self) -> None:
        self._attempts: dict[str, list[datetime]] = defaultdict(list)

    def check(self, key: str) -> bool:
        now = datetime.now(timezone.utc)
        window_start = now - timedelta(seconds=settings.login_rate_limit_window_seconds)
        self._attempts[key] = [dt for dt in self._attempts[key] if dt >= window_start]
        return len(self._attempts[key]) >= settings.login_rate_limit_max_attempts

    def hit(self, key: str) -> None:
        self._attempts[key].append(datetime.now(timezone.utc))

    def clear(self, key: str) -> None:
        self._attempts.pop(key, None)


login_rate_limiter = SlidingWindowLimiter()


def get_client_ip(request: Request) -> str | None:
    forwarded_for = request.headers.get("x-forwarded-for")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()
    if request.client:
        return request.client.host
    return None


def log_audit(
    db: Session,
    event_type: str,
    actor_user_id: int | None,
    details: dict | None = None,
) -> None:
    db.add(
        AuditLog(
            event_type=event_type,
            actor_user_id=actor_user_id,
            entity_type="user",
            entity_id=str(actor_user_id) if actor_user_id is not None else None,
            details=json.dumps(details or {}),
        )
    )


def get_or_create_security_profile(db: Session, user_id: int) -> UserSecurityProfile:
    profile = db.scalar(select(UserSecurityProfile).where(UserSecurityProfile.user_id == user_id))
    if profile:
        return profile
    profile = UserSecurityProfile(user_id=user_id)
    db.add(profile)
    db.flush()
    return profile


def issue_refresh_session(db: Session, user_id: int, user_agent: str | None) -> tuple[str, RefreshSession]:
    session_id, raw_token = new_refresh_token()
    refresh_session = RefreshSession(
        id=session_id,
        user_id=user_id,
        token_hash=hash_token(raw_token),
        user_agent=user_agent,
        expires_at=datetime.utcnow() + timedelta(days=settings.refresh_token_expire_days),
    )
    db.add(refresh_session)
    return raw_token, refresh_session


def parse_refresh_token(raw_token: str) -> str:
    parts = raw_token.split(".", 1)
    if len(parts) != 2:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid refresh token")
    return parts[0]


def authenticate_user(db: Session, identity: str, password: str, request: Request) -> User:
    ip = get_client_ip(request) or "unknown"
    rate_key = f"{ip}:{identity.lower()}"
    if login_rate_limiter.check(rate_key):
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="Too many login attempts, try again later",
        )

    user = db.scalar(
        select(User).where(
            or_(
                func.lower(User.email) == identity.lower(),
                func.lower(User.username) == identity.lower(),
            )
        )
    )
    if not user:
        login_rate_limiter.hit(rate_key)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    profile = get_or_create_security_profile(db, user.id)
    if profile.locked_until and profile.locked_until > datetime.utcnow():
        raise HTTPException(
            status_code=status.HTTP_423_LOCKED,
            detail="Account is temporarily locked due to failed login attempts",
        )

    if not verify_password(password, user.password_hash):
        login_rate_limiter.hit(rate_key)
        profile.failed_login_attempts += 1
        if profile.failed_login_attempts >= settings.login_rate_limit_max_attempts:
            profile.locked_until = datetime.utcnow() + timedelta(minutes=settings.account_lockout_minutes)
            profile.failed_login_attempts = 0
            logger.warning("locked account %s after repeated failed logins", user.id)
        db.commit()
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="User account is disabled")

    profile.failed_login_attempts = 0
    profile.locked_until = None
    profile.last_login_at = datetime.utcnow()
    login_rate_limiter.clear(rate_key)
    db.commit()
    db.refresh(user)
    return user


def user_out(db: Session, user: User) -> UserOut:
    profile = db.scalar(select(UserSecurityProfile).where(UserSecurityProfile.user_id == user.id))
    return UserOut(
        id=user.id,
        email=user.email,
        username=user.username,
        role=user.role,
        is_active=user.is_active,
        created_at=user.created_at,
        last_login_at=profile.last_login_at if profile else None,
    )


def _create_token_pair(db: Session, user: User, request: Request) -> TokenPairResponse:
    access_token = create_access_token(user.id, user.role.value)
    refresh_token, _ = issue_refresh_session(db, user.id, request.headers.get("user-agent"))
    db.commit()
    return TokenPairResponse(
        access_token=access_token,
        refresh_token=refresh_token,
        expires_in=settings.access_token_expire_minutes * 60,
    )


@router.post("/signup", response_model=SignUpResponse, status_code=status.HTTP_201_CREATED)
def signup(payload: SignUpRequest, db: Session = Depends(get_db)):
    # The first account on a fresh install owns the shop; everyone after is staff.
    has_users = db.scalar(select(func.count(User.id))) or 0
    role = UserRole.STAFF if has_users else UserRole.OWNER
    user = User(
        email=payload.email.strip().lower(),
        username=payload.username.strip(),
        password_hash=hash_password(payload.password),
        role=role,
    )
    db.add(user)
    try:
        db.flush()
    except IntegrityError as exc:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email or username already exists") from exc
    get_or_create_security_profile(db, user.id)
    log_audit(db, "auth.signup", user.id, {"role": role.value})
    db.commit()
    db.refresh(user)
    return SignUpResponse(
        user_id=user.id,
        email=user.email,
        username=user.username,
        role=user.role,
        message="Account created",
    )


@router.post("/login", response_model=TokenPairResponse)
def login(payload: LoginRequest, request: Request, db: Session = Depends(get_db)):
    user = authenticate_user(db, payload.identity, payload.password, request)
    log_audit(db, "auth.login.success", user.id, {"ip": get_client_ip(request)})
    return _create_token_pair(db, user, request)


@router.post("/token", response_model=TokenPairResponse)
def login_for_access_token(
    request: Request,
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: Session = Depends(get_db),
):
    user = authenticate_user(db, form_data.username, form_data.password, request)
    log_audit(db, "auth.token.success", user.id, {"ip": get_client_ip(request)})
    return _create_token_pair(db, user, request)


@router.post("/refresh", response_model=TokenPairResponse)
def refresh_tokens(payload: RefreshRequest, request: Request, db: Session = Depends(get_db)):
    session_id = parse_refresh_token(payload.refresh_token)
    current_session = db.get(RefreshSession, session_id)
    if not current_session or current_session.token_hash != hash_token(payload.refresh_token):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid refresh token")
    if current_session.revoked_at is not None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Refresh token already revoked")
    if current_session.expires_at < datetime.utcnow():
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Refresh token expired")

    user = db.get(User, current_session.user_id)
    if not user or not user.is_active:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User is not eligible for refresh")

    new_refresh, new_session = issue_refresh_session(db, user.id, request.headers.get("user-agent"))
    current_session.revoked_at = datetime.utcnow()
    current_session.replaced_by_session_id = new_session.id
    log_audit(
        db,
        "auth.refresh",
        user.id,
        {"old_session_id": current_session.id, "new_session_id": new_session.id},
    )
    db.commit()
    return TokenPairResponse(
        access_token=create_access_token(user.id, user.role.value),
        refresh_token=new_refresh,
        expires_in=settings.access_token_expire_minutes * 60,
    )


@router.post("/logout", response_model=GenericMessageResponse)
def logout(
    payload: LogoutRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    session_id = parse_refresh_token(payload.refresh_token)
    refresh_session = db.get(RefreshSession, session_id)
    if (
        refresh_session
        and refresh_session.user_id == current_user.id
        and refresh_session.token_hash == hash_token(payload.refresh_token)
        and refresh_session.revoked_at is None
    ):
        refresh_session.revoked_at = datetime.utcnow()
        log_audit(db, "auth.logout", current_user.id, {"session_id": refresh_session.id})
        db.commit()
    return GenericMessageResponse(message="Logged out successfully")


@router.get("/me", response_model=UserOut)
def get_me(current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return user_out(db, current_user)


@router.get("/users", response_model=list[UserOut])
def list_users(
    _: User = Depends(require_permission("users:manage")),
    db: Session = Depends(get_db),
):
    users = db.scalars(select(User).order_by(User.created_at.asc())).all()
    return [user_out(db, user) for user in users]


@router.patch("/users/{user_id}/role", response_model=UserOut)
def update_user_role(
    user_id: int,
    payload: RoleUpdateRequest,
    current_user: User = Depends(require_permission("users:manage")),
    db: Session = Depends(get_db),
):
    user = db.get(User, user_id)
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    if user.id == current_user.id and payload.role != UserRole.OWNER:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Owners cannot demote themselves")
    user.role = payload.role
    log_audit(db, "users.role_changed", current_user.id, {"user_id": user.id, "role": payload.role.value})
    db.commit()
    db.refresh(user)
    return user_out(db, user)


@router.post("/users/{user_id}/deactivate", response_model=UserOut)
def deactivate_user(
    user_id: int,
    current_user: User = Depends(require_permission("users:manage")),
    db: Session = Depends(get_db),
):
    user = db.get(User, user_id)
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    if user.id == current_user.id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Owners cannot deactivate themselves")
    user.is_active = False
    log_audit(db, "users.deactivated", current_user.id, {"user_id": user.id})
    db.commit()
    db.refresh(user)
    return user_out(db, user)
