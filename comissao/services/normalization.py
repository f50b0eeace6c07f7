"""Normalization boundary between database rows and domain models.

Rows coming out of Supabase carry free-form strings with legacy aliases
(``IND``/``INDIGENA``, ``PROVAVEL``, ``POSSE``, ``QUERO_ENVIAR``, ``RECUSADO``
...).  Each ``*_from_row`` function maps them onto the closed enums exactly
once; each ``*_to_row`` function produces the column values a table expects.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any
from uuid import UUID

from comissao.core.constants import POOL_ALIASES, POOL_CODES
from comissao.core.errors import InvalidSubmissionError
from comissao.models.candidate import Candidate
from comissao.models.enums import (
    AlreadyAppointed,
    IntendsToAccept,
    NominationState,
    Pool,
    SubmissionStatus,
    SubmissionVariant,
    WaiverKind,
    WaiverStatus,
)
from comissao.models.notification import Notification
from comissao.models.submission import SecondaryApproval, WaiverIntent

logger = logging.getLogger(__name__)


def _clean(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip().upper()


# ---------------------------------------------------------------------------
# Scalar normalizers
# ---------------------------------------------------------------------------

def normalize_pool(value: Any) -> Pool:
    """Map a ``sistema_concorrencia`` value to a ``Pool``.

    Unknown or empty values fall back to ampla concorrencia, as the listings
    always have.
    """
    cleaned = _clean(value)
    pool = POOL_ALIASES.get(cleaned)
    if pool is None:
        logger.warning("unknown_pool_value", extra={"value": value})
        return Pool.open
    return pool


def normalize_nomination_state(value: Any) -> NominationState:
    if _clean(value) in ("NOMEADO", "POSSE", "EM_POSSE"):
        return NominationState.nominated
    return NominationState.awaiting


def normalize_waiver_status(value: Any) -> WaiverStatus:
    cleaned = _clean(value)
    if cleaned == "SIM":
        return WaiverStatus.confirmed
    if cleaned in ("TALVEZ", "PROVAVEL"):
        return WaiverStatus.interested
    return WaiverStatus.none


def normalize_waiver_kind(value: Any) -> WaiverKind:
    cleaned = _clean(value)
    if cleaned == "ENVIADO":
        return WaiverKind.sent
    if cleaned in ("INTERESSE", "QUERO_ENVIAR"):
        return WaiverKind.interested
    raise InvalidSubmissionError(f"Tipo de TD inválido: {value!r}")


def normalize_submission_status(value: Any) -> SubmissionStatus:
    cleaned = _clean(value)
    if cleaned == "APROVADO":
        return SubmissionStatus.approved
    if cleaned in ("REJEITADO", "RECUSADO"):
        return SubmissionStatus.rejected
    return SubmissionStatus.pending


def normalize_intends_to_accept(value: Any) -> IntendsToAccept:
    cleaned = _clean(value)
    if cleaned == "SIM":
        return IntendsToAccept.yes
    if cleaned == "NAO":
        return IntendsToAccept.no
    return IntendsToAccept.maybe


def normalize_already_appointed(value: Any) -> AlreadyAppointed:
    cleaned = _clean(value)
    if cleaned == "SIM":
        return AlreadyAppointed.yes
    if cleaned == "EM_ANDAMENTO":
        return AlreadyAppointed.in_progress
    return AlreadyAppointed.no


def parse_timestamp(value: Any) -> datetime | None:
    if not value:
        return None
    if isinstance(value, datetime):
        return value
    try:
        return datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        return None


def _parse_uuid(value: Any) -> UUID | None:
    if not value:
        return None
    return value if isinstance(value, UUID) else UUID(str(value))


def _parse_int(value: Any) -> int | None:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


# ---------------------------------------------------------------------------
# Write-side mapping
# ---------------------------------------------------------------------------

def waiver_status_to_db(status: WaiverStatus) -> str | None:
    return None if status == WaiverStatus.none else status.value


def submission_status_to_db(
    status: SubmissionStatus, variant: SubmissionVariant
) -> str:
    """Rejected secondary approvals are stored as ``RECUSADO``."""
    if (
        status == SubmissionStatus.rejected
        and variant == SubmissionVariant.secondary_approval
    ):
        return "RECUSADO"
    return status.value


def build_unique_code(pool: Pool, rank: int) -> str:
    return f"{POOL_CODES[pool]}{rank}"


# ---------------------------------------------------------------------------
# Row -> model
# ---------------------------------------------------------------------------

def candidate_from_row(row: dict[str, Any]) -> Candidate:
    return Candidate(
        id=UUID(str(row["id"])),
        name=row.get("nome") or "",
        pool=normalize_pool(row.get("sistema_concorrencia")),
        pool_rank=_parse_int(row.get("classificacao_lista")),
        unique_code=row.get("id_unico"),
        nomination_position=_parse_int(row.get("ordem_nomeacao_base")),
        nomination_state=normalize_nomination_state(row.get("status_nomeacao")),
        waiver_status=normalize_waiver_status(row.get("td_status")),
        waiver_note=row.get("td_observacao"),
        created_at=parse_timestamp(row.get("created_at")),
        updated_at=parse_timestamp(row.get("updated_at")),
    )


def secondary_approval_from_row(row: dict[str, Any]) -> SecondaryApproval:
    raw_pool = row.get("sistema_concorrencia")
    return SecondaryApproval(
        id=UUID(str(row["id"])),
        candidate_id=UUID(str(row["candidate_id"])),
        status=normalize_submission_status(row.get("status")),
        note=row.get("observacao"),
        created_at=parse_timestamp(row.get("created_at")),
        updated_at=parse_timestamp(row.get("updated_at")),
        decided_at=parse_timestamp(row.get("approved_at")),
        decided_by=_parse_uuid(row.get("approved_by")),
        orgao=row.get("orgao"),
        role=row.get("cargo"),
        pool=normalize_pool(raw_pool) if raw_pool else None,
        rank=_parse_int(row.get("classificacao")),
        intends_to_accept=normalize_intends_to_accept(row.get("pretende_assumir")),
        # older rows were written with ja_nomeado
        already_appointed=normalize_already_appointed(
            row.get("ja_foi_nomeado", row.get("ja_nomeado"))
        ),
    )


def waiver_intent_from_row(row: dict[str, Any]) -> WaiverIntent:
    return WaiverIntent(
        id=UUID(str(row["id"])),
        candidate_id=UUID(str(row["candidate_id"])),
        status=normalize_submission_status(row.get("status")),
        note=row.get("observacao"),
        created_at=parse_timestamp(row.get("created_at")),
        updated_at=parse_timestamp(row.get("updated_at")),
        decided_at=parse_timestamp(row.get("approved_at")),
        decided_by=_parse_uuid(row.get("approved_by")),
        kind=normalize_waiver_kind(row.get("tipo_td")),
        submitted_by=_parse_uuid(row.get("user_id")),
        reference_date=parse_timestamp(row.get("data_aprovacao")),
    )


def record_from_row(
    variant: SubmissionVariant, row: dict[str, Any]
) -> SecondaryApproval | WaiverIntent:
    if variant == SubmissionVariant.secondary_approval:
        return secondary_approval_from_row(row)
    return waiver_intent_from_row(row)


def notification_from_row(row: dict[str, Any]) -> Notification:
    return Notification(
        id=UUID(str(row["id"])),
        title=row.get("titulo") or "",
        body=row.get("corpo") or "",
        kind=row.get("tipo") or "RESUMO",
        audience=row.get("visivel_para") or "",
        metadata=row.get("metadata"),
        status=row.get("status") or "PENDENTE",
        error_message=row.get("error_message"),
        sent_at=parse_timestamp(row.get("sent_at")),
        created_at=parse_timestamp(row.get("created_at")),
    )


# ---------------------------------------------------------------------------
# Model -> row
# ---------------------------------------------------------------------------

def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


def record_to_row(record: SecondaryApproval | WaiverIntent) -> dict[str, Any]:
    """Column values for inserting or updating a submission record."""
    row: dict[str, Any] = {
        "id": str(record.id),
        "candidate_id": str(record.candidate_id),
        "status": submission_status_to_db(record.status, record.variant),
        "observacao": record.note,
        "updated_at": _iso(record.updated_at),
        "approved_at": _iso(record.decided_at),
        "approved_by": str(record.decided_by) if record.decided_by else None,
    }
    if record.created_at is not None:
        row["created_at"] = _iso(record.created_at)

    if isinstance(record, SecondaryApproval):
        row.update(
            {
                "orgao": record.orgao,
                "cargo": record.role,
                "sistema_concorrencia": record.pool.value if record.pool else None,
                "classificacao": record.rank,
                "pretende_assumir": record.intends_to_accept.value,
                "ja_foi_nomeado": record.already_appointed.value,
            }
        )
    else:
        row["tipo_td"] = record.kind.value
        if record.submitted_by is not None:
            row["user_id"] = str(record.submitted_by)
        if record.reference_date is not None:
            row["data_aprovacao"] = _iso(record.reference_date)
    return row
