from fastapi import APIRouter, Depends, Request, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from typing import Optional
import logging

from productsaas.database.connection import get_db
from productsaas.services.auth import (
    authenticate_user,
    change_password,
    close_session,
    create_email_verification_token,
    create_user,
    get_user_by_id,
    open_session,
    refresh_session,
    request_password_reset,
    reset_password,
    resolve_session,
    verify_email,
)
from productsaas.schemas.user import (
    AuthContext,
    EmailVerification,
    MessageResponse,
    PasswordChange,
    PasswordReset,
    PasswordResetRequest,
    Token,
    UserLogin,
    UserRegister,
    UserResponse,
)
from productsaas.core.config import settings
from productsaas.core.exceptions import AuthenticationError, AuthorizationError
from productsaas.models.user import User, Role

logger = logging.getLogger(__name__)

router = APIRouter()
security = HTTPBearer(auto_error=False)

def get_optional_session(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db)
) -> Optional[AuthContext]:
    """The request's auth context, or None when no usable session is presented."""
    if not credentials or not credentials.credentials:
        return None
    try:
        return resolve_session(db, credentials.credentials)
    except (AuthenticationError, AuthorizationError):
        return None

def get_current_session(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db)
) -> AuthContext:
    """The request's auth context. Raises AuthenticationError without a valid session."""
    if not credentials or not credentials.credentials:
        raise AuthenticationError("Authentication credentials required")
    return resolve_session(db, credentials.credentials)

def require_role(*roles: Role):
    """Dependency factory admitting only sessions whose role is one of `roles`."""
    allowed = frozenset(roles)

    def checker(auth: AuthContext = Depends(get_current_session)) -> AuthContext:
        if auth.role not in allowed:
            logger.warning(f"User {auth.email} with role {auth.role.value} denied access")
            raise AuthorizationError("You do not have access to this resource")
        return auth

    return checker

get_current_seller = require_role(Role.SELLER)
get_current_admin = require_role(Role.ADMIN)

def _token_response(user: User, token: str) -> Token:
    return Token(
        access_token=token,
        token_type="bearer",
        expires_in=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        user=UserResponse.from_orm(user)
    )

def _client(request: Request):
    return (request.client.host if request.client else None), request.headers.get("user-agent")

@router.post("/register", response_model=Token, status_code=status.HTTP_201_CREATED)
def register(user_data: UserRegister, request: Request, db: Session = Depends(get_db)):
    """Register a new seller account and sign it in."""
    logger.info(f"Registration attempt for email: {user_data.email}")

    user = create_user(
        db=db,
        email=user_data.email,
        username=user_data.username,
        password=user_data.password,
        role=Role.SELLER
    )

    verification_token = create_email_verification_token(user)
    logger.info(
        f"Email verification link for {user.email}: "
        f"{settings.FRONTEND_BASE_URL}/verify-email?token={verification_token}"
    )

    ip_address, user_agent = _client(request)
    _, token = open_session(db, user, ip_address, user_agent)

    logger.info(f"User registered successfully: {user.email}")
    return _token_response(user, token)

@router.post("/login", response_model=Token)
def login(user_credentials: UserLogin, request: Request, db: Session = Depends(get_db)):
    """Login user and open a new session."""
    logger.info(f"Login attempt for email: {user_credentials.email}")

    user = authenticate_user(db, user_credentials.email, user_credentials.password)
    if not user:
        raise AuthenticationError("Incorrect email or password")

    ip_address, user_agent = _client(request)
    _, token = open_session(db, user, ip_address, user_agent)

    logger.info(f"User logged in successfully: {user.email}")
    return _token_response(user, token)

@router.get("/me", response_model=UserResponse)
def get_current_user_info(auth: AuthContext = Depends(get_current_session), db: Session = Depends(get_db)):
    """Get current user information."""
    user = get_user_by_id(db, auth.user_id)
    if user is None:
        raise AuthenticationError("User not found")
    return UserResponse.from_orm(user)

@router.post("/refresh", response_model=Token)
def refresh(auth: AuthContext = Depends(get_current_session), db: Session = Depends(get_db)):
    """Extend the current session and issue a fresh token for it."""
    token = refresh_session(db, auth)
    return _token_response(get_user_by_id(db, auth.user_id), token)

@router.post("/logout", response_model=MessageResponse)
def logout(auth: AuthContext = Depends(get_current_session), db: Session = Depends(get_db)):
    """End the current session; its token stops working immediately."""
    close_session(db, auth.session_id)
    logger.info(f"User logged out: {auth.email}")
    return MessageResponse(message="Successfully logged out")

@router.post("/verify-email", response_model=UserResponse)
def confirm_email(data: EmailVerification, db: Session = Depends(get_db)):
    return UserResponse.from_orm(verify_email(db, data.token))

@router.post("/forgot-password", response_model=MessageResponse)
def forgot_password(data: PasswordResetRequest, db: Session = Depends(get_db)):
    """Start a password reset. The answer does not reveal whether the account exists."""
    request_password_reset(db, data.email)
    return MessageResponse(message="If an account exists for this email, a reset link has been sent")

@router.post("/reset-password", response_model=MessageResponse)
def complete_password_reset(data: PasswordReset, db: Session = Depends(get_db)):
    reset_password(db, data.token, data.password)
    return MessageResponse(message="Password has been reset, please sign in again")

@router.post("/change-password", response_model=MessageResponse)
def update_password(
    data: PasswordChange,
    auth: AuthContext = Depends(get_current_session),
    db: Session = Depends(get_db)
):
    change_password(db, auth, data.current_password, data.new_password)
    return MessageResponse(message="Password changed successfully")
