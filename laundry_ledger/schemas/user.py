from typing import Optional

from pydantic import BaseModel, EmailStr


class UserCreate(BaseModel):
    name: str
    email: str
    password: str
    role: str
    pin: Optional[str] = None


class UserResponse(BaseModel):
    id: int
    name: Optional[str] = None
    email: EmailStr
    is_active: bool

    class Config:
        from_attributes = True
