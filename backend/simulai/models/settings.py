from typing import Optional
from pydantic import BaseModel, Field, EmailStr

#SH: Admin settings. Every key is optional so the page can save sections independently
class SettingsIn(BaseModel):
    openai_key: Optional[str] = None
    mistral_key: Optional[str] = None
    llama_key: Optional[str] = None
    heygen_key: Optional[str] = None

    mail_username: Optional[str] = None
    mail_password: Optional[str] = None
    mail_host: Optional[str] = None
    mail_port: Optional[int] = Field(None, gt=0, lt=65536)
    mail_from: Optional[str] = None
    mail_from_name: Optional[str] = None

    aws_access_key: Optional[str] = None
    aws_secret_key: Optional[str] = None
    aws_region: Optional[str] = None
    aws_bucket: Optional[str] = None
    aws_bucket_url: Optional[str] = None

    avatar_prompt_template: Optional[str] = None
    report_prompt_template: Optional[str] = None

class SettingsOut(SettingsIn):
    pass

class WelcomeEmail(BaseModel):
    to: EmailStr
    name: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)
