from datetime import datetime
from typing import List, Optional, Literal
from pydantic import BaseModel, Field, field_validator as validator

ScenarioStatus = Literal["draft", "published", "archived"]
AIProvider = Literal["openai", "mistral", "llama"]

# MJ: These are Pydantic Models used for Request & Response Validation

#SH: Evaluation criterion. Old rows only carry one of label/value
class Aspect(BaseModel):
    label: str = ""
    value: str = ""

    @property
    def name(self) -> str:
        return self.label or self.value

#SH: Fields sent as multipart form data (files travel next to them)
class ScenarioFields(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    context: Optional[str] = None
    status: ScenarioStatus = "draft"
    user_id_assigned: Optional[int] = None
    parent_scenario: Optional[int] = None
    aspects: List[Aspect] = []
    assigned_ia: AIProvider = "openai"
    assigned_ia_model: Optional[str] = None
    interactive_avatar: Optional[str] = None
    avatar_language: Optional[str] = None
    generated_image_url: Optional[str] = None
    show_image_prompt: bool = False
    time_limit: Optional[int] = Field(None, gt=0, description="Minutes available to the assigned user")

class ScenarioUpdateFields(ScenarioFields):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    status: Optional[ScenarioStatus] = None
    aspects: Optional[List[Aspect]] = None
    assigned_ia: Optional[AIProvider] = None
    show_image_prompt: Optional[bool] = None
    #SH: URLs of the previously uploaded files the client keeps
    existing_files: Optional[List[str]] = None

class ScenarioOut(BaseModel):
    id: int
    title: str
    context: Optional[str] = None
    status: str
    user_id_assigned: Optional[int] = None
    user_id_created: Optional[int] = None
    parent_scenario: Optional[int] = None
    aspects: List[Aspect] = []
    files: List[str] = []
    assigned_ia: Optional[str] = None
    assigned_ia_model: Optional[str] = None
    interactive_avatar: Optional[str] = None
    avatar_language: Optional[str] = None
    generated_image_url: Optional[str] = None
    show_image_prompt: bool = False
    time_limit: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True

    @validator("aspects", "files", mode="before")
    def none_to_list(cls, value):
        return value or []

class BulkDelete(BaseModel):
    ids: List[int] = Field(..., min_length=1)

class ElapsedTimeOut(BaseModel):
    time_limit: int
    total_elapsed_time: float
    partial_elapsed_time: float
    remaining_time: float
    conversations_count: int

class SessionStateIn(BaseModel):
    elapsed_time: float = Field(..., ge=0)

class FinalMessage(BaseModel):
    message: str = Field(..., min_length=1)

class ImagePrompt(BaseModel):
    prompt: str = Field(..., min_length=1, max_length=4000)

class SpeechRequest(BaseModel):
    text: str = Field(..., min_length=1, max_length=4096)
