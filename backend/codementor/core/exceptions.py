"""
Exception hierarchy for the analysis pipeline.

Each error carries the HTTP status the API layer should answer with, so the
routers can translate them with a single handler.
"""
from typing import Any, Dict, Optional


class CodeMentorError(Exception):
    """Base exception for all pipeline errors."""

    status_code = 500

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class InvalidInputError(CodeMentorError, ValueError):
    """Raised when a problem statement or code submission is missing or too short."""

    status_code = 400

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message, {"field": field} if field else None)
        self.field = field


class SessionNotFoundError(CodeMentorError, KeyError):
    """Raised when an interview session id is unknown or has expired."""

    status_code = 404

    def __init__(self, session_id: str):
        super().__init__(f"Session not found: {session_id}", {"session_id": session_id})
        self.session_id = session_id

    def __str__(self) -> str:
        return self.message


class EmbeddingError(CodeMentorError):
    """Raised when no embedding backend can produce a vector."""

    status_code = 503


class CompletionError(CodeMentorError):
    """Raised when the completion backend is unreachable, times out or errors."""

    status_code = 502
