"""Runs one chat turn through the model and records the result"""

import asyncio
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from pagecraft.conversation import ConversationStore, Message, Role
from pagecraft.errors import (
    GenerationInProgressError,
    GenerationTimeoutError,
    PageCraftError,
    RequestValidationError,
    ServiceError,
)
from pagecraft.llm import CompletionClient
from pagecraft.logger import get_logger
from pagecraft.parser import GeneratedArtifact, ResponseParser, normalize_fences
from pagecraft.prompt import PromptBuilder
from pagecraft.sessions import ChatSession
from pagecraft.templates import TemplateKey, resolve_template

logger = get_logger(__name__)

DEFAULT_TIMEOUT = 30.0


@dataclass
class GenerationResult:
    response: str
    template: TemplateKey
    generated_at: str
    artifact: GeneratedArtifact


@dataclass
class ProcessingResult:
    """Result of processing a user request"""

    status: str  # "success" or "error"
    message: str
    result: Optional[GenerationResult] = None
    render_token: int = 0
    rebuilt: bool = False


def final_user_turn(conversation: Optional[ConversationStore]) -> str:
    """Return the content the model must answer, or raise RequestValidationError."""
    if conversation is None or conversation.is_empty:
        raise RequestValidationError("No conversation provided")
    last = conversation.last()
    if last.role is not Role.USER:
        raise RequestValidationError("The last message must come from the user")
    if not last.content or not last.content.strip():
        raise RequestValidationError("The user message is empty")
    return last.content


async def generate_reply(
    conversation: ConversationStore,
    template,
    client: CompletionClient,
    timeout: float = DEFAULT_TIMEOUT,
    builder: Optional[PromptBuilder] = None,
) -> GenerationResult:
    """Ask the model to answer the conversation's final user turn.

    The conversation is not modified. Template and conversation problems are
    raised before the model is contacted.
    """
    template = resolve_template(template)
    user_turn = final_user_turn(conversation)
    transcript = (builder or PromptBuilder()).build(template, conversation)
    # The final user turn is sent as the new message, not as history
    history = transcript[:-1]

    logger.info(f"Generating reply with template {template.value}, {len(conversation)} messages")
    try:
        text = await asyncio.wait_for(
            asyncio.to_thread(client.complete, history, user_turn), timeout=timeout
        )
    except GenerationTimeoutError:
        raise
    except asyncio.TimeoutError as e:
        logger.error(f"Generation exceeded deadline of {timeout}s")
        raise GenerationTimeoutError(f"Model request timed out after {timeout}s") from e

    if not isinstance(text, str) or not text.strip():
        raise ServiceError("Model returned an empty response")

    response = normalize_fences(text)
    return GenerationResult(
        response=response,
        template=template,
        generated_at=datetime.now(timezone.utc).isoformat(),
        artifact=ResponseParser().parse(response),
    )


class AgentSession:
    """Single-turn generation bound to one stored chat session"""

    def __init__(self, session: ChatSession, client: CompletionClient, timeout: float = DEFAULT_TIMEOUT):
        self.session = session
        self.client = client
        self.timeout = timeout

    async def process_user_request(self, content: str, template=None) -> ProcessingResult:
        """Append the user turn, generate, then append the reply.

        On failure the user turn stays in the conversation and no assistant
        turn is added, so the caller can resend.
        """
        session = self.session
        if session.lock.locked():
            logger.warning(f"Session {session.id}: rejected submission while a request is in flight")
            raise GenerationInProgressError("A response is still being generated for this session")

        async with session.lock:
            if template is not None:
                session.template = resolve_template(template)
            if not content or not content.strip():
                raise RequestValidationError("The user message is empty")

            session.conversation.append(Message(role=Role.USER, content=content))
            session.touch(status="processing")
            logger.info(f"Processing user request for session: {session.id}")

            try:
                result = await generate_reply(
                    session.conversation, session.template, self.client, timeout=self.timeout
                )
            except PageCraftError as e:
                logger.error(f"Session {session.id}: generation failed: {e.message}")
                session.touch(status="error", last_error=e.message)
                raise
            except Exception as e:
                logger.error(f"Session {session.id}: Exception: {str(e)}", exc_info=True)
                message = f"Error processing request: {str(e)}"
                session.touch(status="error", last_error=message)
                raise ServiceError(message) from e

            reply = Message(role=Role.ASSISTANT, content=result.response)
            session.conversation.append(reply)
            rebuilt = session.render_state.observe(reply)
            session.touch(status="ready", last_error=None)

            logger.info(
                f"Session {session.id}: reply appended"
                + (f", preview rebuilt ({session.render_state.token})" if rebuilt else "")
            )
            return ProcessingResult(
                status="success",
                message=result.artifact.explanatory_text,
                result=result,
                render_token=session.render_state.token,
                rebuilt=rebuilt,
            )


async def process_user_request(
    session: ChatSession, content: str, client: CompletionClient, template=None, timeout: float = DEFAULT_TIMEOUT
) -> ProcessingResult:
    """Process a single user request in the session"""
    agent = AgentSession(session, client, timeout=timeout)
    return await agent.process_user_request(content, template)
