from datetime import datetime
from pydantic import BaseModel, ConfigDict, EmailStr, Field
from typing import List, Literal, Optional

Role = Literal["admin", "user"]

# Shared properties for user models
class UserBase(BaseModel):
    email: EmailStr

# Schema for user authentication credentials
class UserLogin(BaseModel):
    email: str
    password: str

# Schema for account creation by an administrator
class UserCreate(UserBase):
    password: str = Field(..., min_length=6)
    name: str = Field(..., min_length=1)
    role: Role = "user"

# Admin patch; password changes go through PasswordReset
class UserUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    role: Optional[Role] = None
    is_active: Optional[bool] = Field(None, alias="isActive")

    model_config = ConfigDict(populate_by_name=True)

class PasswordReset(BaseModel):
    password: str = Field(..., min_length=6)

# Output schema for user profile details, never carries password material
class UserResponse(UserBase):
    id: int
    name: str
    role: str
    is_active: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)

# Response envelopes of the user directory API
class LoginResponse(BaseModel):
    success: bool = True
    message: str = "Login successful"
    user: UserResponse
    access_token: str
    token_type: str = "bearer"

class UserEnvelope(BaseModel):
    success: bool = True
    message: Optional[str] = None
    user: UserResponse

class UserListEnvelope(BaseModel):
    success: bool = True
    users: List[UserResponse]

class StatusEnvelope(BaseModel):
    success: bool = True
    message: Optional[str] = None
