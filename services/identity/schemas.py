from typing import List, Literal, Optional

from pydantic import BaseModel


class Toast(BaseModel):
    title: str
    description: str
    variant: Literal["default", "destructive"] = "default"


class Caller(BaseModel):
    """The authenticated user behind a request."""
    user_id: str
    email: Optional[str] = None
    full_name: Optional[str] = None
    roles: List[str] = []
    home_route: str
    sid: Optional[str] = None
    access_token: Optional[str] = None


class SignupRequest(BaseModel):
    email: str
    password: str
    confirm_password: str
    full_name: str
    username: str
    roll_number: str
    contact_number: Optional[str] = None
    program: Optional[str] = None
    anonymous_by_default: bool = False


class SignupResponse(BaseModel):
    user_id: str
    status: Literal["created"]
    next_tab: Literal["login"] = "login"
    toast: Toast


class LoginRequest(BaseModel):
    email: str
    password: str


class LoginResponse(BaseModel):
    user_id: str
    email: Optional[str] = None
    status: Literal["authenticated"]
    roles: List[str]
    redirect_to: str
    access_token: str
    expires_in: int


class SessionResponse(BaseModel):
    authenticated: bool
    user_id: Optional[str] = None
    email: Optional[str] = None
    full_name: Optional[str] = None
    roles: List[str] = []
    redirect_to: str


class LogoutResponse(BaseModel):
    status: Literal["signed_out"]
    redirect_to: str
    toast: Toast


class UpdateEmailRequest(BaseModel):
    new_email: Optional[str] = None


class UpdatePasswordRequest(BaseModel):
    new_password: Optional[str] = None
    confirm_password: Optional[str] = None


class AccountUpdateResponse(BaseModel):
    status: Literal["updated"]
    toast: Toast


class CreateAdminRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None


class CreateAdminResponse(BaseModel):
    user_id: str
    role: Literal["admin"]
    toast: Toast
