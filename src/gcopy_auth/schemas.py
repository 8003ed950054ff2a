"""Pydantic schemas for API request/response."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class EmailCodeRequest(BaseModel):
    """Request for a mailed verification code."""

    email: str = Field(min_length=3, max_length=254)


class LoginRequest(BaseModel):
    """Email + verification code login."""

    email: str = Field(min_length=3, max_length=254)
    code: str = Field(min_length=6, max_length=6, pattern=r"^[0-9]+$")


class ShareCodeRequest(BaseModel):
    """Share code login."""

    code: str = Field(min_length=1, max_length=128)


class MessageResponse(BaseModel):
    """Plain acknowledgement, also used for errors."""

    message: str


class _CamelResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class LoginResponse(_CamelResponse):
    """Response for email code login.

    A session already logged in by share code reports that identity instead.
    """

    email: Optional[str] = None
    share_code: Optional[str] = Field(None, alias="shareCode")
    logged_in: bool = Field(True, alias="loggedIn")
    login_type: Optional[str] = Field(None, alias="loginType")


class ShareCodeLoginResponse(_CamelResponse):
    """Response for share code login."""

    share_code: str = Field(alias="shareCode")
    logged_in: bool = Field(True, alias="loggedIn")


class RefreshResponse(_CamelResponse):
    """Response for share code refresh."""

    share_code: str = Field(alias="shareCode")
    expires_in: int = Field(alias="expiresIn")


class UserResponse(_CamelResponse):
    """Current identity of the session."""

    email: Optional[str] = None
    share_code: Optional[str] = Field(None, alias="shareCode")
    logged_in: bool = Field(True, alias="loggedIn")
    login_type: str = Field(alias="loginType")
