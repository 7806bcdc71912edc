"""Per-session chat state kept in the in-memory store."""

import asyncio
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from pagecraft import db
from pagecraft.conversation import ConversationStore
from pagecraft.errors import GenerationInProgressError, SessionNotFoundError
from pagecraft.logger import get_logger
from pagecraft.preview import PreviewRenderer, RenderState
from pagecraft.templates import TemplateKey, resolve_template

logger = get_logger(__name__)

KEY_PREFIX = "session:"


@dataclass
class ChatSession:
    id: str
    template: TemplateKey
    conversation: ConversationStore = field(default_factory=ConversationStore)
    render_state: RenderState = field(default_factory=RenderState)
    # Held for the whole of one generation; a second submission is refused
    lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False)
    status: str = "ready"  # "ready", "processing" or "error"
    last_error: Optional[str] = None
    created_at: str = field(default_factory=lambda: datetime.now().isoformat())
    updated_at: str = field(default_factory=lambda: datetime.now().isoformat())

    def touch(self, **updates):
        for name, value in updates.items():
            setattr(self, name, value)
        self.updated_at = datetime.now().isoformat()


def create_session(template=TemplateKey.BASIC, preview_base_url: Optional[str] = None) -> ChatSession:
    """Create and store a new chat session"""
    template = resolve_template(template)
    renderer = PreviewRenderer(preview_base_url) if preview_base_url else PreviewRenderer()
    session = ChatSession(
        id=str(uuid.uuid4()),
        template=template,
        render_state=RenderState(renderer),
    )
    db.set(KEY_PREFIX + session.id, session)
    logger.info(f"Created chat session {session.id} with template {template.value}")
    return session


def get_session(session_id: str) -> ChatSession:
    session = db.get(KEY_PREFIX + session_id)
    if session is None:
        raise SessionNotFoundError(f"Session {session_id} not found")
    return session


def end_session(session_id: str) -> None:
    """Drop a session and everything generated in it"""
    session = get_session(session_id)
    if session.lock.locked():
        raise GenerationInProgressError("A response is still being generated for this session")
    db.delete(KEY_PREFIX + session_id)
    logger.info(f"Ended chat session {session_id}")
