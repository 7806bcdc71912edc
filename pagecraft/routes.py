import secrets
from functools import lru_cache
from typing import Optional

from fastapi import APIRouter, Depends, Header
from fastapi.responses import HTMLResponse, PlainTextResponse

from pagecraft import config
from pagecraft.agent import generate_reply, process_user_request
from pagecraft.conversation import ConversationStore
from pagecraft.errors import (
    AuthenticationRequiredError,
    PageCraftError,
    PreviewUnavailableError,
    RequestValidationError,
    ServiceError,
)
from pagecraft.llm import CompletionClient, create_completion_client
from pagecraft.logger import get_logger
from pagecraft.models import (
    ChatMessage,
    ChatMetadata,
    ChatRequest,
    ChatResponse,
    SessionMessageRequest,
    SessionMessageResponse,
    SessionStatusResponse,
    StartSessionRequest,
    StartSessionResponse,
)
from pagecraft.preview import SANDBOX_CSP
from pagecraft.sessions import create_session, end_session, get_session
from pagecraft.templates import DEFAULT_TEMPLATE

logger = get_logger(__name__)


router = APIRouter()

DOWNLOADS = {
    "html": ("index.html", "text/html"),
    "css": ("styles.css", "text/css"),
}


def require_authenticated(authorization: Optional[str] = Header(default=None)):
    """Boolean gate in front of the API; open when no API_TOKEN is configured"""
    if not config.API_TOKEN:
        return
    scheme, _, token = (authorization or "").partition(" ")
    if scheme.lower() != "bearer" or not secrets.compare_digest(token, config.API_TOKEN):
        raise AuthenticationRequiredError("Missing or invalid bearer token")


@lru_cache(maxsize=4)
def _client_for(provider: str) -> CompletionClient:
    return create_completion_client(provider)


def get_completion_client() -> CompletionClient:
    return _client_for(config.LLM_PROVIDER)


protected = [Depends(require_authenticated)]


@router.get("/health")
def health_check():
    """Health check endpoint"""
    return {"status": "healthy", "message": "PageCraft API is running"}


@router.post("/api/chat", response_model=ChatResponse, dependencies=protected)
async def chat(request: ChatRequest, client: CompletionClient = Depends(get_completion_client)):
    """Generate a reply for a client-held conversation"""
    try:
        if request.messages is None:
            raise RequestValidationError("No conversation provided")
        conversation = ConversationStore.from_wire(m.model_dump() for m in request.messages)
        result = await generate_reply(
            conversation,
            DEFAULT_TEMPLATE.value if request.template is None else request.template,
            client,
            timeout=config.GENERATION_TIMEOUT,
        )
        return ChatResponse(
            response=result.response,
            metadata=ChatMetadata(
                templateUsed=result.template.value, generatedAt=result.generated_at
            ),
        )

    except PageCraftError:
        raise
    except Exception as e:
        logger.error(f"Chat error: {str(e)}", exc_info=True)
        raise ServiceError(f"Error processing request: {str(e)}") from e


@router.post("/session/start", response_model=StartSessionResponse, dependencies=protected)
async def start_session(request: StartSessionRequest):
    """Create a new chat session"""
    session = create_session(
        DEFAULT_TEMPLATE.value if request.template is None else request.template,
        preview_base_url=config.PREVIEW_BASE_URL,
    )
    return StartSessionResponse(
        session_id=session.id,
        template=session.template.value,
        message="Session created. Describe the landing page you want.",
    )


@router.post(
    "/session/{session_id}/message", response_model=SessionMessageResponse, dependencies=protected
)
async def send_message(
    session_id: str,
    request: SessionMessageRequest,
    client: CompletionClient = Depends(get_completion_client),
):
    """Process a user message for an existing session"""
    session = get_session(session_id)
    try:
        processed = await process_user_request(
            session,
            request.content or "",
            client,
            template=request.template,
            timeout=config.GENERATION_TIMEOUT,
        )
    except PageCraftError:
        raise
    except Exception as e:
        logger.error(f"Error processing request for session {session_id}: {str(e)}", exc_info=True)
        raise ServiceError(f"Error processing request: {str(e)}") from e

    result = processed.result
    return SessionMessageResponse(
        success=True,
        session_id=session_id,
        response=result.response,
        explanation=result.artifact.explanatory_text,
        html=result.artifact.html,
        css=result.artifact.css,
        render_token=processed.render_token,
        rebuilt=processed.rebuilt,
        metadata=ChatMetadata(templateUsed=result.template.value, generatedAt=result.generated_at),
    )


@router.get(
    "/session/{session_id}/status", response_model=SessionStatusResponse, dependencies=protected
)
async def get_session_status(session_id: str):
    """Get status and conversation history for an existing session"""
    session = get_session(session_id)
    return SessionStatusResponse(
        session_id=session.id,
        status=session.status,
        template=session.template.value,
        conversation_history=[
            ChatMessage(role=m.role.value, content=m.content) for m in session.conversation
        ],
        render_token=session.render_state.token,
        has_preview=session.render_state.has_preview,
        last_error=session.last_error,
        created_at=session.created_at,
        updated_at=session.updated_at,
    )


@router.get("/session/{session_id}/preview", dependencies=protected)
async def get_preview(session_id: str):
    """Serve the preview document itself, sandboxed by CSP"""
    render_state = get_session(session_id).render_state
    document = render_state.document()
    if document is None:
        raise PreviewUnavailableError("Nothing has been generated for this session yet")
    return HTMLResponse(
        document,
        headers={
            "Content-Security-Policy": SANDBOX_CSP,
            "Cache-Control": "no-store",
            "X-Render-Token": str(render_state.token),
        },
    )


@router.get("/session/{session_id}/preview/embed", dependencies=protected)
async def get_preview_embed(session_id: str):
    """Sandboxed iframe markup keyed by the current render token"""
    render_state = get_session(session_id).render_state
    embed = render_state.embed()
    if embed is None:
        raise PreviewUnavailableError("Nothing has been generated for this session yet")
    return HTMLResponse(embed, headers={"Cache-Control": "no-store"})


@router.get("/session/{session_id}/download/{kind}", dependencies=protected)
async def download_code(session_id: str, kind: str):
    """Download the latest generated html or css"""
    if kind not in DOWNLOADS:
        raise RequestValidationError(
            f"Unknown download '{kind}'. Expected html or css",
            suggestion="Request /download/html or /download/css",
        )
    artifact = get_session(session_id).render_state.artifact
    content = getattr(artifact, kind, "") if artifact else ""
    if not content:
        raise PreviewUnavailableError(f"No {kind} has been generated for this session yet")

    filename, media_type = DOWNLOADS[kind]
    return PlainTextResponse(
        content,
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.delete("/session/{session_id}", dependencies=protected)
async def delete_session(session_id: str):
    """End a session and discard its conversation and preview"""
    end_session(session_id)
    return {"success": True, "session_id": session_id, "message": "Session ended"}
