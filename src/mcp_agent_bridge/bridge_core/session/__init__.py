"""Per-request run orchestration."""

from .run_session import RunSession, SessionState, ConnectionFactory, GENERIC_ERROR_MESSAGE

__all__ = ["RunSession", "SessionState", "ConnectionFactory", "GENERIC_ERROR_MESSAGE"]
