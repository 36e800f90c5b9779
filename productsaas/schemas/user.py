from pydantic import BaseModel, EmailStr, validator, Field
from typing import Optional
from datetime import datetime
from productsaas.models.user import Role
import re

USERNAME_PATTERN = re.compile(r'^[a-z0-9][a-z0-9_-]{2,49}$')


def check_password_strength(v: str) -> str:
    if len(v) < 8:
        raise ValueError('Password must be at least 8 characters long')
    if len(v) > 128:
        raise ValueError('Password must not exceed 128 characters')
    if not any(c.isupper() for c in v):
        raise ValueError('Password must contain at least one uppercase letter')
    if not any(c.islower() for c in v):
        raise ValueError('Password must contain at least one lowercase letter')
    if not any(c.isdigit() for c in v):
        raise ValueError('Password must contain at least one digit')
    return v


# User Registration Schema
class UserRegister(BaseModel):
    email: EmailStr
    username: str = Field(..., min_length=3, max_length=50)
    password: str = Field(..., min_length=8, max_length=128)
    confirm_password: str = Field(..., min_length=8, max_length=128)

    @validator('username')
    def validate_username(cls, v):
        v = v.strip().lower()
        if not USERNAME_PATTERN.match(v):
            raise ValueError('Username may only contain letters, digits, "-" and "_"')
        return v

    @validator('password')
    def validate_password(cls, v):
        return check_password_strength(v)

    @validator('confirm_password')
    def validate_confirm_password(cls, v, values):
        if 'password' in values and v != values['password']:
            raise ValueError('Passwords do not match')
        return v

# User Login Schema
class UserLogin(BaseModel):
    email: EmailStr
    password: str

# User Response Schema
class UserResponse(BaseModel):
    id: str
    email: str
    username: str
    role: str
    is_active: bool
    is_verified: bool
    created_at: datetime
    last_login: Optional[datetime]

    class Config:
        from_attributes = True

# Token Schema
class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int
    user: UserResponse

# Token Data Schema
class TokenData(BaseModel):
    email: Optional[str] = None
    user_id: Optional[str] = None
    session_id: Optional[str] = None


class AuthContext(BaseModel):
    """The signed-in principal of one request."""
    user_id: str
    email: str
    username: str
    role: Role
    session_id: str


class PasswordResetRequest(BaseModel):
    email: EmailStr


class PasswordReset(BaseModel):
    token: str
    password: str = Field(..., min_length=8, max_length=128)
    confirm_password: str = Field(..., min_length=8, max_length=128)

    @validator('password')
    def validate_password(cls, v):
        return check_password_strength(v)

    @validator('confirm_password')
    def validate_confirm_password(cls, v, values):
        if 'password' in values and v != values['password']:
            raise ValueError('Passwords do not match')
        return v


class PasswordChange(BaseModel):
    current_password: str
    new_password: str = Field(..., min_length=8, max_length=128)

    @validator('new_password')
    def validate_new_password(cls, v):
        return check_password_strength(v)


class EmailVerification(BaseModel):
    token: str


class MessageResponse(BaseModel):
    message: str
