"""
LLM module for handling AI model interactions
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

import openai
import requests

from pagecraft import config
from pagecraft.errors import ConfigurationError, GenerationTimeoutError, ServiceError
from pagecraft.logger import get_logger
from pagecraft.prompt import TranscriptEntry

logger = get_logger(__name__)

GEMINI_URL = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"
OPENROUTER_BASE_URL = "https://openrouter.ai/api/v1"


@dataclass(frozen=True)
class GenerationConfig:
    temperature: float = 0.7
    top_p: float = 1.0
    top_k: int = 32
    max_output_tokens: int = 4096


GENERATION_CONFIG = GenerationConfig()


class CompletionClient:
    """One blocking, non-streaming round trip: transcript in, text out.

    Implementations never retry. Failures surface as ServiceError, an
    exceeded transport deadline as GenerationTimeoutError.
    """

    def complete(self, history: Sequence[TranscriptEntry], user_turn: str) -> str:
        raise NotImplementedError


class GeminiCompletionClient(CompletionClient):
    """Google Generative Language REST API"""

    def __init__(
        self,
        api_key: Optional[str],
        model: str = "gemini-2.0-flash",
        timeout: float = 30.0,
        generation_config: GenerationConfig = GENERATION_CONFIG,
    ):
        if not api_key:
            raise ConfigurationError(
                "GEMINI_API_KEY is not set", suggestion="Configure the model provider credentials"
            )
        self.api_key = api_key
        self.model = model
        self.timeout = timeout
        self.generation_config = generation_config

    def build_payload(self, history: Sequence[TranscriptEntry], user_turn: str) -> Dict[str, Any]:
        contents = [
            {
                "role": "user" if entry.role == "user" else "model",
                "parts": [{"text": entry.content}],
            }
            for entry in history
        ]
        contents.append({"role": "user", "parts": [{"text": user_turn}]})
        return {
            "contents": contents,
            "generationConfig": {
                "temperature": self.generation_config.temperature,
                "topP": self.generation_config.top_p,
                "topK": self.generation_config.top_k,
                "maxOutputTokens": self.generation_config.max_output_tokens,
            },
        }

    def complete(self, history: Sequence[TranscriptEntry], user_turn: str) -> str:
        url = GEMINI_URL.format(model=self.model)
        headers = {"Content-Type": "application/json", "X-goog-api-key": self.api_key}
        payload = self.build_payload(history, user_turn)

        logger.info(f"LLM request to gemini ({self.model}), {len(payload['contents'])} turns")

        try:
            response = requests.post(url, headers=headers, json=payload, timeout=self.timeout)
        except requests.Timeout as e:
            logger.error(f"LLM error (gemini): timed out after {self.timeout}s")
            raise GenerationTimeoutError(f"Model request timed out after {self.timeout}s") from e
        except requests.RequestException as e:
            logger.error(f"LLM error (gemini): {str(e)}")
            raise ServiceError(f"Network error calling model API: {str(e)}") from e

        if response.status_code in (401, 403):
            logger.error(f"LLM error (gemini): HTTP {response.status_code}: {response.text}")
            raise ServiceError(f"Model API rejected credentials (HTTP {response.status_code}): {response.text}")
        if response.status_code == 429:
            logger.error(f"LLM error (gemini): quota exceeded: {response.text}")
            raise ServiceError(f"Model API quota exceeded: {response.text}")
        if response.status_code != 200:
            logger.error(f"LLM error (gemini): HTTP {response.status_code}: {response.text}")
            raise ServiceError(f"Model API returned status {response.status_code}: {response.text}")

        try:
            response_json = response.json()
        except ValueError as e:
            raise ServiceError(f"Model API returned invalid JSON: {str(e)}") from e

        return self._extract_text(response_json)

    def _extract_text(self, response_json: Any) -> str:
        if not isinstance(response_json, dict):
            raise ServiceError(f"Unexpected model API payload: {response_json!r}")

        feedback = response_json.get("promptFeedback")
        block_reason = feedback.get("blockReason") if isinstance(feedback, dict) else None
        if block_reason:
            logger.error(f"LLM error (gemini): prompt blocked: {block_reason}")
            raise ServiceError(f"Model refused the request: {block_reason}")

        candidates = response_json.get("candidates")
        if not candidates or not isinstance(candidates, list):
            logger.error(f"LLM error (gemini): No candidates in response: {response_json}")
            raise ServiceError("Model API returned no candidates")

        candidate = candidates[0]
        if not isinstance(candidate, dict):
            raise ServiceError(f"Unexpected candidate in model API payload: {candidate!r}")
        content = candidate.get("content")
        parts = content.get("parts") if isinstance(content, dict) else None
        if not parts or not isinstance(parts, list):
            logger.error(f"LLM error (gemini): Invalid response structure: {candidate}")
            raise ServiceError(
                f"Model API returned an empty candidate (finishReason={candidate.get('finishReason')})"
            )
        if not all(isinstance(part, dict) and isinstance(part.get("text", ""), str) for part in parts):
            logger.error(f"LLM error (gemini): Invalid parts in response: {parts}")
            raise ServiceError("Model API returned malformed content parts")

        text = "".join(part.get("text", "") for part in parts)
        if not text.strip():
            raise ServiceError("Model API returned no text")

        preview = text[:100].replace("\n", " ").strip()
        logger.info(f"LLM response (gemini): length {len(text)}, preview: {preview}")
        return text


class OpenRouterCompletionClient(CompletionClient):
    """OpenAI-compatible chat completions served by OpenRouter"""

    def __init__(
        self,
        api_key: Optional[str],
        model: str,
        timeout: float = 30.0,
        generation_config: GenerationConfig = GENERATION_CONFIG,
        client: Optional[openai.OpenAI] = None,
    ):
        if client is None:
            if not api_key:
                raise ConfigurationError(
                    "OPENROUTER_API_KEY is not set", suggestion="Configure the model provider credentials"
                )
            client = openai.OpenAI(
                base_url=OPENROUTER_BASE_URL,
                api_key=api_key,
                timeout=timeout,
                max_retries=0,
            )
        self.client = client
        self.model = model
        self.timeout = timeout
        self.generation_config = generation_config

    def build_messages(self, history: Sequence[TranscriptEntry], user_turn: str) -> List[Dict[str, str]]:
        messages = [{"role": entry.role, "content": entry.content} for entry in history]
        messages.append({"role": "user", "content": user_turn})
        return messages

    def complete(self, history: Sequence[TranscriptEntry], user_turn: str) -> str:
        messages = self.build_messages(history, user_turn)
        logger.info(f"Calling OpenRouter API with model: {self.model}, {len(messages)} turns")

        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=messages,
                temperature=self.generation_config.temperature,
                top_p=self.generation_config.top_p,
                max_tokens=self.generation_config.max_output_tokens,
                extra_body={"top_k": self.generation_config.top_k},
            )
        # APITimeoutError subclasses APIConnectionError, so it goes first
        except openai.APITimeoutError as e:
            logger.error(f"LLM error (openrouter): timed out after {self.timeout}s")
            raise GenerationTimeoutError(f"Model request timed out after {self.timeout}s") from e
        except openai.APIConnectionError as e:
            logger.error(f"LLM error (openrouter): {str(e)}")
            raise ServiceError(f"Network error calling model API: {str(e)}") from e
        except (openai.AuthenticationError, openai.PermissionDeniedError) as e:
            logger.error(f"LLM error (openrouter): {str(e)}")
            raise ServiceError(f"Model API rejected credentials: {str(e)}") from e
        except openai.RateLimitError as e:
            logger.error(f"LLM error (openrouter): quota exceeded: {str(e)}")
            raise ServiceError(f"Model API quota exceeded: {str(e)}") from e
        except openai.APIError as e:
            logger.error(f"LLM error (openrouter): {str(e)}")
            raise ServiceError(f"Model API error: {str(e)}") from e

        if not response.choices or not response.choices[0].message.content:
            logger.error(f"LLM error (openrouter): Invalid response: {response}")
            raise ServiceError("Model API returned no text")

        text = response.choices[0].message.content
        logger.info(f"Received response from OpenRouter: {text[:200]}...")
        return text


def create_completion_client(provider: Optional[str] = None) -> CompletionClient:
    """Build the configured client. Only this factory reads module config."""
    provider = provider or config.LLM_PROVIDER
    if provider == "gemini":
        return GeminiCompletionClient(
            api_key=config.GEMINI_API_KEY,
            model=config.GEMINI_MODEL,
            timeout=config.GENERATION_TIMEOUT,
        )
    if provider == "openrouter":
        return OpenRouterCompletionClient(
            api_key=config.OPENROUTER_API_KEY,
            model=config.OPENROUTER_MODEL,
            timeout=config.GENERATION_TIMEOUT,
        )
    raise ConfigurationError(
        f"Unknown LLM provider '{provider}'", suggestion="Set LLM_PROVIDER to gemini or openrouter"
    )
