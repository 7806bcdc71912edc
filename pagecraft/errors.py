"""Error taxonomy shared by the pipeline and the HTTP boundary.

Every error carries the HTTP status it maps to and a user-facing suggestion,
so the routes can turn any of them into the ``{message, error, suggestion}``
failure payload without knowing which layer raised it.
"""

DEFAULT_SUGGESTION = "Please try again with a more specific request"


class PageCraftError(Exception):
    status_code = 500
    suggestion = DEFAULT_SUGGESTION

    def __init__(self, message: str, suggestion: str | None = None):
        super().__init__(message)
        self.message = message
        if suggestion is not None:
            self.suggestion = suggestion


class RequestValidationError(PageCraftError):
    """Missing conversation or an empty/missing final user turn."""

    status_code = 400
    suggestion = "Please enter a message describing the page you want"


class ConfigurationError(PageCraftError):
    """Unknown template key or unusable provider settings."""

    status_code = 400
    suggestion = "Choose one of the available templates: basic, modern, saas"


class ServiceError(PageCraftError):
    """The remote model call failed or returned an unusable payload."""

    status_code = 502


class GenerationTimeoutError(PageCraftError, TimeoutError):
    status_code = 504
    suggestion = "The request took too long. Please try again"


class GenerationInProgressError(PageCraftError):
    status_code = 409
    suggestion = "Wait for the current response before sending another message"


class SessionNotFoundError(PageCraftError):
    status_code = 404
    suggestion = "Start a new session"


class PreviewUnavailableError(PageCraftError):
    status_code = 404
    suggestion = "Ask for a page first, then open the preview"


class AuthenticationRequiredError(PageCraftError):
    status_code = 401
    suggestion = "Sign in and try again"
