"""Exceptions raised while rendering and publishing API documents."""

from pathlib import Path


class OpenApiNotionError(Exception):
    """Base class for all errors raised by openapi-notion."""


class ConfigError(OpenApiNotionError):
    """The configuration file is missing or malformed."""


class ParseValidationError(OpenApiNotionError):
    """A source document is structurally invalid.

    ``fatal`` distinguishes documents that abort the whole run (unsafe or
    invalid content) from documents that are skipped with a warning
    (missing info section or title).
    """

    def __init__(self, path: Path, messages: list[str], fatal: bool = True):
        self.path = path
        self.messages = messages
        self.fatal = fatal
        detail = "\n".join(messages)
        super().__init__(f"{path.name}: {detail}" if detail else path.name)


class UnresolvedReferenceError(OpenApiNotionError):
    """A ``$ref`` does not point to any component schema."""

    def __init__(self, ref: str):
        self.ref = ref
        super().__init__(f"Could not resolve schema {ref}")


class RemoteError(OpenApiNotionError):
    """The Notion API answered with an error."""

    def __init__(self, status: int, code: str = "", message: str = ""):
        self.status = status
        self.code = code
        self.message = message
        super().__init__(f"status={status} code={code or '-'} {message}".rstrip())


class TransientRemoteError(RemoteError):
    """Rate limited (429), server error (5xx) or transport failure; safe to retry."""


class FatalRemoteError(RemoteError):
    """Any other error response; never retried."""


class RetryExhaustedError(OpenApiNotionError):
    """Transient errors persisted past the maximum number of attempts."""

    def __init__(self, attempts: int, last_error: BaseException | None):
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(f"Too many retries ({attempts} attempts), last error: {last_error}")
