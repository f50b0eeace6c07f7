"""Domain errors raised by the ordering and moderation services.

Each error carries the HTTP status the API answers with; the exception handler
in ``comissao.main`` does the translation so services stay transport-agnostic.
"""

from __future__ import annotations


class ComissaoError(Exception):
    """Base class for precondition violations reported to the caller."""

    status_code: int = 400

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class RecordNotFound(ComissaoError):
    """Submission record does not exist (or is not owned by the caller)."""

    status_code = 404


class CandidateNotFound(ComissaoError):
    """A record or request points at a candidate that does not exist."""

    status_code = 404


class InvalidStateError(ComissaoError):
    """Deciding or editing a record that is no longer pending."""

    status_code = 409


class DuplicatePendingError(InvalidStateError):
    """A second pending waiver intent was about to be created."""


class InvalidSubmissionError(ComissaoError):
    status_code = 422


class PoolRankError(ComissaoError):
    """Malformed or duplicate rank inside a pool, caught at ingestion."""

    status_code = 422
