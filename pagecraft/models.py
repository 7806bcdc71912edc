from pydantic import BaseModel, Field
from typing import Optional, List


class ChatMessage(BaseModel):
    role: str
    content: str = ""


class ChatRequest(BaseModel):
    messages: Optional[List[ChatMessage]] = None
    template: Optional[str] = "basic"


class ChatMetadata(BaseModel):
    templateUsed: str
    generatedAt: str


class ChatResponse(BaseModel):
    response: str
    metadata: ChatMetadata


class ErrorResponse(BaseModel):
    message: str = "Error processing your request"
    error: str
    suggestion: str


class StartSessionRequest(BaseModel):
    template: Optional[str] = "basic"


class StartSessionResponse(BaseModel):
    session_id: str
    template: str
    message: str


class SessionMessageRequest(BaseModel):
    content: Optional[str] = None
    template: Optional[str] = None


class SessionMessageResponse(BaseModel):
    success: bool
    session_id: str
    response: str
    explanation: str
    html: str
    css: str
    render_token: int
    rebuilt: bool
    metadata: ChatMetadata


class SessionStatusResponse(BaseModel):
    session_id: str
    status: str
    template: str
    conversation_history: List[ChatMessage] = Field(default_factory=list)
    render_token: int
    has_preview: bool
    last_error: Optional[str] = None
    created_at: str
    updated_at: str
