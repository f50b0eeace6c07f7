"""Closed enum types for every status column.

Values are the canonical spellings stored in Postgres.  Legacy aliases found
in older rows (``IND``, ``PROVAVEL``, ``POSSE`` ...) are mapped onto these
members in ``comissao.services.normalization`` and nowhere else.
"""

from enum import Enum


class Pool(str, Enum):
    """Admission quota (sistema de concorrencia) a candidate competes in."""
    open = "AC"
    disability = "PCD"
    race_reserved = "PPP"
    indigenous = "INDIGENA"


class NominationState(str, Enum):
    awaiting = "AGUARDANDO"
    nominated = "NOMEADO"


class WaiverStatus(str, Enum):
    """Candidate waiver (TD) status; ``none`` is stored as SQL null."""
    none = "NENHUM"
    interested = "TALVEZ"
    confirmed = "SIM"


class SubmissionStatus(str, Enum):
    pending = "PENDENTE"
    approved = "APROVADO"
    rejected = "REJEITADO"


class SubmissionVariant(str, Enum):
    """Kind of self-reported record; the value is its table name."""
    secondary_approval = "outras_aprovacoes"
    waiver_intent = "td_requests"


class WaiverKind(str, Enum):
    """What a waiver-intent request declares."""
    interested = "INTERESSE"
    sent = "ENVIADO"


class IntendsToAccept(str, Enum):
    yes = "SIM"
    no = "NAO"
    maybe = "TALVEZ"


class AlreadyAppointed(str, Enum):
    yes = "SIM"
    no = "NAO"
    in_progress = "EM_ANDAMENTO"


class Decision(str, Enum):
    """Moderator decision on a pending record."""
    approve = "APROVAR"
    reject = "REJEITAR"


class NotificationStatus(str, Enum):
    pending = "PENDENTE"
    sent = "ENVIADO"
    failed = "ERRO"
    cancelled = "CANCELADO"
