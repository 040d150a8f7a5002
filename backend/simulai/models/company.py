from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field

#SH: These are Pydantic Models used for request & response validation
class DepartmentIn(BaseModel):
    id: Optional[int] = None
    name: str = Field(..., min_length=1, max_length=255)

class DepartmentOut(BaseModel):
    id: int
    name: str
    company_id: int

    class Config:
        from_attributes = True

class CompanyBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=255, description="Company name is compulsory")

class CompanyCreate(CompanyBase):
    departments: List[str] = []

class CompanyUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    departments: Optional[List[DepartmentIn]] = None

class CompanyOut(CompanyBase):
    id: int
    logo: Optional[str] = None
    created_by: Optional[int] = None
    departments: List[DepartmentOut] = []
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
