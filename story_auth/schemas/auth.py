from pydantic import BaseModel
from typing import Optional, Union

from story_auth.schemas.user import UserOut

# Request bodies keep every field optional: presence rules are enforced by
# AuthService so each missing field maps to its own error code.


class ClientInfo(BaseModel):
    user_agent: str = ""
    ip_address: str = ""


class RegisterRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None
    name: Optional[str] = None


class LoginRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None


class OAuthLoginRequest(BaseModel):
    email: Optional[str] = None
    name: Optional[str] = None
    avatar: Optional[str] = None
    accountType: Optional[str] = None
    googleId: Optional[str] = None
    preserve_db_data: Optional[Union[str, bool]] = None


class RefreshTokenRequest(BaseModel):
    refreshToken: Optional[str] = None


class LogoutRequest(BaseModel):
    refreshToken: Optional[str] = None


class MessageResponse(BaseModel):
    code: str
    message: str


class TokenResponse(BaseModel):
    code: str
    message: str
    accessToken: str
    refreshToken: str
    user: UserOut


class ProfileResponse(BaseModel):
    code: str
    message: Optional[str] = None
    user: UserOut
