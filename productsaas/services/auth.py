from datetime import datetime, timedelta
from typing import Optional, Tuple
from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from productsaas.models.user import User, Role
from productsaas.models.session import UserSession
from productsaas.models.settings import UserSettings
from productsaas.schemas.user import TokenData, AuthContext
from productsaas.core.config import settings
from productsaas.core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    BusinessLogicError,
    RemoteStoreError,
    ValidationError,
)
import logging
import uuid

logger = logging.getLogger(__name__)

# Password hashing context
pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.BCRYPT_ROUNDS
)

# JWT settings
SECRET_KEY = settings.SECRET_KEY
ALGORITHM = "HS256"
ISSUER = "productsaas"

ACCESS_TOKEN = "access"
PASSWORD_RESET_TOKEN = "password_reset"
EMAIL_VERIFICATION_TOKEN = "email_verification"
COUPON_REDEMPTION_TOKEN = "coupon_redemption"

def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash."""
    return pwd_context.verify(plain_password, hashed_password)

def get_password_hash(password: str) -> str:
    """Hash a password."""
    return pwd_context.hash(password)

def _encode(claims: dict, token_type: str, expires_delta: timedelta) -> str:
    to_encode = claims.copy()
    now = datetime.utcnow()
    to_encode.update({
        "exp": now + expires_delta,
        "iat": now,
        "iss": ISSUER,
        "type": token_type
    })
    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)

def _decode(token: str, token_type: str) -> Optional[dict]:
    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM], issuer=ISSUER)
    except JWTError as e:
        logger.warning(f"JWT verification failed: {str(e)}")
        return None

    if payload.get("type") != token_type:
        logger.warning(f"Unexpected token type: {payload.get('type')}")
        return None
    return payload

def create_access_token(user: User, session: UserSession, expires_delta: Optional[timedelta] = None) -> str:
    """Create a JWT access token bound to a server-side session."""
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)

    token = _encode(
        {"sub": user.email, "user_id": user.id, "sid": session.session_id},
        ACCESS_TOKEN,
        expires_delta
    )
    logger.info(f"Access token created for user: {user.email}")
    return token

def verify_token(token: str) -> Optional[TokenData]:
    """Verify and decode an access token."""
    payload = _decode(token, ACCESS_TOKEN)
    if payload is None:
        return None

    email = payload.get("sub")
    user_id = payload.get("user_id")
    session_id = payload.get("sid")
    if email is None or user_id is None or session_id is None:
        logger.warning("Token missing required claims")
        return None

    return TokenData(email=email, user_id=user_id, session_id=session_id)

def get_user_by_email(db: Session, email: str) -> Optional[User]:
    email = email.lower().strip()
    return db.query(User).filter(User.email == email).first()

def get_user_by_username(db: Session, username: str) -> Optional[User]:
    return db.query(User).filter(User.username == username.lower().strip()).first()

def get_user_by_id(db: Session, user_id: str) -> Optional[User]:
    return db.query(User).filter(User.id == user_id).first()

def authenticate_user(db: Session, email: str, password: str) -> Optional[User]:
    """Authenticate a user with email and password."""
    user = get_user_by_email(db, email)
    if not user:
        logger.warning(f"Authentication attempt with non-existent email: {email}")
        return None

    if not verify_password(password, user.password_hash):
        logger.warning(f"Authentication attempt with invalid password for user: {email}")
        return None

    if not user.is_active:
        logger.warning(f"Authentication attempt with inactive user: {email}")
        raise AuthorizationError("Account is inactive")

    logger.info(f"Successful authentication for user: {email}")
    return user

def create_user(db: Session, email: str, username: str, password: str,
                role: Role = Role.SELLER) -> User:
    """Create a new user together with default settings."""
    if role == Role.UNKNOWN:
        raise ValidationError("Cannot create a user without a known role", field="role")

    if get_user_by_email(db, email):
        logger.warning(f"Attempt to create user with existing email: {email}")
        raise BusinessLogicError("User with this email already exists")

    if get_user_by_username(db, username):
        logger.warning(f"Attempt to create user with existing username: {username}")
        raise BusinessLogicError("This username is already taken")

    db_user = User(
        id=str(uuid.uuid4()),
        email=email.lower().strip(),
        username=username.lower().strip(),
        password_hash=get_password_hash(password),
        role=role.value,
        is_active=True,
        is_verified=False,
        created_at=datetime.utcnow(),
        updated_at=datetime.utcnow()
    )
    db_user.settings = UserSettings(user_id=db_user.id, currency=settings.DEFAULT_CURRENCY)

    try:
        db.add(db_user)
        db.commit()
        db.refresh(db_user)
    except IntegrityError as e:
        db.rollback()
        logger.error(f"Database integrity error creating user {email}: {str(e)}")
        raise BusinessLogicError("User with this email or username already exists")
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Unexpected error creating user {email}: {str(e)}")
        raise RemoteStoreError("create user")

    logger.info(f"User created successfully: {email} with role {role.value}")
    return db_user

def open_session(db: Session, user: User, ip_address: str = None,
                 user_agent: str = None) -> Tuple[UserSession, str]:
    """Start a session for a user who just signed in or signed up."""
    session = UserSession.start(user.id, settings.SESSION_LIFETIME_HOURS, ip_address, user_agent)
    user.last_login = datetime.utcnow()

    try:
        db.add(session)
        db.commit()
        db.refresh(user)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Error opening session for {user.email}: {str(e)}")
        raise RemoteStoreError("open session")

    logger.info(f"Session opened for user: {user.email}")
    return session, create_access_token(user, session)

def resolve_session(db: Session, token: str) -> AuthContext:
    """Turn a bearer token into the request's auth context."""
    token_data = verify_token(token)
    if token_data is None:
        raise AuthenticationError("Could not validate credentials")

    session = db.query(UserSession).filter(UserSession.session_id == token_data.session_id).first()
    if session is None or session.user_id != token_data.user_id or not session.is_valid():
        raise AuthenticationError("Session has ended, please sign in again")

    user = get_user_by_id(db, token_data.user_id)
    if user is None:
        logger.warning(f"Token valid but user not found: {token_data.email}")
        raise AuthenticationError("User not found")

    if not user.is_active:
        logger.warning(f"Token valid but user inactive: {token_data.email}")
        raise AuthorizationError("Account is inactive")

    session.seen()
    db.commit()

    return AuthContext(
        user_id=user.id,
        email=user.email,
        username=user.username,
        role=user.role_kind,
        session_id=session.session_id
    )

def refresh_session(db: Session, auth: AuthContext) -> str:
    """Extend the current session and hand out a fresh token for it."""
    session = db.query(UserSession).filter(UserSession.session_id == auth.session_id).first()
    user = get_user_by_id(db, auth.user_id)
    if session is None or user is None or not session.is_valid():
        raise AuthenticationError("Session has ended, please sign in again")

    session.extend(settings.SESSION_LIFETIME_HOURS)
    db.commit()
    logger.info(f"Session refreshed for user: {user.email}")
    return create_access_token(user, session)

def close_session(db: Session, session_id: str) -> None:
    """Sign out: revoke the session so its tokens stop working."""
    session = db.query(UserSession).filter(UserSession.session_id == session_id).first()
    if session is None:
        return
    session.revoke()
    db.commit()
    logger.info(f"Session closed for user: {session.user_id}")

def revoke_user_sessions(db: Session, user_id: str) -> int:
    revoked = db.query(UserSession).filter(
        UserSession.user_id == user_id,
        UserSession.revoked_at.is_(None)
    ).update({UserSession.revoked_at: datetime.utcnow()}, synchronize_session=False)
    db.commit()
    return revoked

def create_email_verification_token(user: User) -> str:
    return _encode(
        {"sub": user.id},
        EMAIL_VERIFICATION_TOKEN,
        timedelta(hours=settings.EMAIL_VERIFICATION_EXPIRE_HOURS)
    )

def verify_email(db: Session, token: str) -> User:
    payload = _decode(token, EMAIL_VERIFICATION_TOKEN)
    user = get_user_by_id(db, payload["sub"]) if payload else None
    if user is None:
        raise ValidationError("Verification link is invalid or has expired", field="token")

    if not user.is_verified:
        user.is_verified = True
        db.commit()
        db.refresh(user)
        logger.info(f"Email verified for user: {user.email}")
    return user

def create_password_reset_token(user: User) -> str:
    # Binding the token to the current hash makes it single-use
    return _encode(
        {"sub": user.id, "pwd": user.password_hash[-16:]},
        PASSWORD_RESET_TOKEN,
        timedelta(minutes=settings.PASSWORD_RESET_EXPIRE_MINUTES)
    )

def request_password_reset(db: Session, email: str) -> Optional[str]:
    """Issue a reset link for the account, if there is one."""
    user = get_user_by_email(db, email)
    if user is None or not user.is_active:
        logger.info(f"Password reset requested for unknown or inactive email: {email}")
        return None

    token = create_password_reset_token(user)
    link = f"{settings.FRONTEND_BASE_URL}/reset-password?token={token}"
    logger.info(f"Password reset link issued for {user.email}: {link}")
    return token

def reset_password(db: Session, token: str, new_password: str) -> User:
    payload = _decode(token, PASSWORD_RESET_TOKEN)
    user = get_user_by_id(db, payload["sub"]) if payload else None
    if user is None or payload.get("pwd") != user.password_hash[-16:]:
        raise ValidationError("Reset link is invalid or has expired", field="token")

    user.password_hash = get_password_hash(new_password)
    db.commit()
    revoke_user_sessions(db, user.id)
    logger.info(f"Password reset for user: {user.email}")
    return user

def change_password(db: Session, auth: AuthContext, current_password: str, new_password: str) -> None:
    user = get_user_by_id(db, auth.user_id)
    if user is None or not verify_password(current_password, user.password_hash):
        raise AuthenticationError("Current password is incorrect")

    user.password_hash = get_password_hash(new_password)
    db.commit()
    logger.info(f"Password changed for user: {user.email}")

def create_coupon_redemption_token(coupon_id: str, product_id: str) -> str:
    """Proof that a coupon use was already counted for this product's checkout."""
    return _encode(
        {"sub": coupon_id, "product": product_id, "jti": uuid.uuid4().hex},
        COUPON_REDEMPTION_TOKEN,
        timedelta(minutes=settings.COUPON_REDEMPTION_EXPIRE_MINUTES)
    )

def read_coupon_redemption_token(token: str) -> Optional[dict]:
    return _decode(token, COUPON_REDEMPTION_TOKEN)
