from datetime import datetime
from typing import List, Optional, Literal
from pydantic import BaseModel, Field, EmailStr

Role = Literal["user", "company", "admin"]

# MJ: These are Pydantic Models used for Request & Response Validation

class UserBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=100, description="Name is compulsory")
    lastname: Optional[str] = Field(None, max_length=100)
    email: EmailStr
    role: Role = "user"
    company_id: Optional[int] = None
    department_ids: List[int] = Field(default=[], description="Departments of the user's company")

class UserCreate(UserBase):
    password: str = Field(..., min_length=8, description="Initial password")

class UserUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    lastname: Optional[str] = Field(None, max_length=100)
    email: Optional[EmailStr] = None
    role: Optional[Role] = None
    company_id: Optional[int] = None
    department_ids: Optional[List[int]] = None
    password: Optional[str] = Field(None, min_length=8)

# Response model for User
class UserOut(BaseModel):
    id: int
    name: str
    lastname: Optional[str] = None
    email: str
    role: str
    company_id: Optional[int] = None
    department_ids: List[int] = []
    profile_image: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class UserImportResult(BaseModel):
    created: List[UserOut] = []
    errors: List[dict] = []
    credentials: List[dict] = []
