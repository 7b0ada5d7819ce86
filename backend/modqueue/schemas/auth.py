"""Auth request/response schemas."""
from pydantic import BaseModel, Field


class LoginRequest(BaseModel):
    name: str
    password: str


class RegisterRequest(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    password: str = Field(min_length=8)


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int = 1800


class UserInfo(BaseModel):
    id: int
    name: str
    role: str
    is_active: bool

    model_config = {"from_attributes": True}
