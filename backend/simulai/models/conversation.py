from datetime import datetime
from typing import Dict, List, Optional
from pydantic import BaseModel, Field, ConfigDict

#SH: One line of an avatar transcript
class Message(BaseModel):
    role: str
    message: str = ""
    audio_url: Optional[str] = None

class FacialExpression(BaseModel):
    timestamp: Optional[float] = None
    expressions: Dict[str, float] = {}

#SH: Body sent by the console page when a session ends (camelCase kept for the SPA)
class ConversationCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user_id: Optional[int] = Field(None, alias="userId")
    conversation: List[Message] = []
    facial_expressions: List[FacialExpression] = Field(default=[], alias="facialExpressions")
    elapsed_time: float = Field(0, ge=0, alias="elapsedTime")

class ConversationOut(BaseModel):
    id: int
    scenario_id: int
    user_id: int
    conversation: List[Message] = []
    facial_expressions: List[FacialExpression] = []
    elapsed_time: float = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
