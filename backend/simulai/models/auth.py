from pydantic import BaseModel, Field, EmailStr

#SH: Request bodies of the auth endpoints
class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)

class PasswordResetRequest(BaseModel):
    email: EmailStr

class ResetPassword(BaseModel):
    token: str = Field(..., min_length=1)
    password: str = Field(..., min_length=8)

class PasswordChange(BaseModel):
    current_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=8)
