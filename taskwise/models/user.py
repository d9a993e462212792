"""
User models
"""

from typing import Optional
from pydantic import BaseModel, ConfigDict, EmailStr, Field


class User(BaseModel):
    """Signed-in user as exposed by the authentication provider"""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    display_name: Optional[str] = Field(None, alias="displayName")
    email: EmailStr
    avatar_url: Optional[str] = Field(None, alias="avatarUrl")


class AuthSession(BaseModel):
    """Result of a successful sign-in or sign-up"""
    user: User
    token: str


class SignUpRequest(BaseModel):
    """Sign-up form"""

    model_config = ConfigDict(populate_by_name=True)

    display_name: str = Field("", alias="displayName")
    email: EmailStr
    password: str


class SignInRequest(BaseModel):
    """Login form"""
    email: EmailStr
    password: str


class ChangePasswordRequest(BaseModel):
    """Change password form"""

    model_config = ConfigDict(populate_by_name=True)

    current_password: str = Field(..., alias="currentPassword")
    new_password: str = Field(..., alias="newPassword")
    confirm_password: str = Field(..., alias="confirmPassword")
