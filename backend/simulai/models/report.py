from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field, ConfigDict

# MJ: These are Pydantic Models used for Request & Response Validation

class ReportAuthor(BaseModel):
    id: int
    name: str
    email: str

    class Config:
        from_attributes = True

class ReportCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    content: str = Field(..., min_length=1)
    conversations_ids: List[int] = []
    show_to_user: bool = False

class ReportOut(BaseModel):
    id: int
    scenario_id: int
    title: str
    content: str
    conversations_ids: List[int] = []
    user_id: Optional[int] = None
    show_to_user: bool = False
    user: Optional[ReportAuthor] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True

#SH: Server side report generation over a set of saved conversations
class GenerateReportRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    assistant_id: str = Field(..., min_length=1, alias="assistantId")
    conversation_ids: Optional[List[int]] = Field(None, alias="conversationIds")
    title: Optional[str] = Field(None, max_length=255)
    save: bool = True
    show_to_user: bool = Field(False, alias="showToUser")

class ShowToUser(BaseModel):
    show_to_user: bool

class ChatMessage(BaseModel):
    role: str
    content: str

class AssistantReportRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    assistant_id: str = Field(..., min_length=1, alias="assistantId")
    messages: List[ChatMessage] = []
    system_prompt: str = Field("", alias="systemPrompt")
