from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime

from app.db.models.message import MessageRole

# -----------------------------
# 🧾 Message Schemas
# -----------------------------

class SendMessageRequest(BaseModel):
    content: str

class MessageResponse(BaseModel):
    id: int
    content: str
    role: MessageRole
    created_at: datetime

    model_config = {"from_attributes": True}


# -----------------------------
# 🚀 Send Endpoint
# -----------------------------

class ChatResponse(BaseModel):
    user_message: MessageResponse = Field(alias="userMessage")
    bot_response: MessageResponse = Field(alias="botResponse")

    model_config = ConfigDict(populate_by_name=True)
