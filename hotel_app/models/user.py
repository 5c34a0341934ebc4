from pydantic import BaseModel, Field, EmailStr, field_validator
from typing import Optional

ROLES = ("admin", "staff", "guest")


class UserBase(BaseModel):
    email: EmailStr
    full_name: str = Field(..., min_length=2, max_length=100)
    role: str = Field(default="guest")
    is_active: bool = Field(default=True)

    @field_validator('role')
    @classmethod
    def validate_role(cls, v):
        v = v.strip().lower()
        if v not in ROLES:
            raise ValueError('Role must be one of "admin", "staff" or "guest"')
        return v


class UserCreate(UserBase):
    password: str = Field(..., min_length=6)


class UserResponse(BaseModel):
    id: str
    email: str
    full_name: str
    role: str
    is_active: bool
    created_at: Optional[str] = None


class UserLogin(BaseModel):
    email: str
    password: str


class LoginResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserResponse
