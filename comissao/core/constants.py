"""Application constants.

Contains the quota reservation pattern used for the nomination order, the
note templates written to ``candidates.td_observacao`` and notification kinds.
"""

from comissao.models.enums import Pool, WaiverKind
from comissao.models.ordering import ReservationPattern, ReservationRule

# ---------------------------------------------------------------------------
# Nomination order reservation pattern
# Rules are evaluated top to bottom; a position matching two rules goes to the
# first one.  Positions matching none go to ampla concorrencia (AC).
# ---------------------------------------------------------------------------
DEFAULT_RESERVATION_PATTERN = ReservationPattern(
    rules=(
        ReservationRule(pool=Pool.indigenous, anchors=(10,), step=35),
        ReservationRule(pool=Pool.disability, anchors=(5, 11), step=10),
        ReservationRule(pool=Pool.race_reserved, anchors=(3, 8), step=5),
    ),
    default_pool=Pool.open,
    fallbacks={
        Pool.indigenous: (Pool.indigenous, Pool.race_reserved, Pool.disability, Pool.open),
        Pool.race_reserved: (Pool.race_reserved, Pool.open, Pool.disability, Pool.indigenous),
        Pool.disability: (Pool.disability, Pool.open, Pool.race_reserved, Pool.indigenous),
        Pool.open: (Pool.open, Pool.race_reserved, Pool.disability, Pool.indigenous),
    },
)

# ---------------------------------------------------------------------------
# Legacy spellings accepted at the normalization boundary
# ---------------------------------------------------------------------------
POOL_ALIASES: dict[str, Pool] = {
    "AC": Pool.open,
    "AMPLA": Pool.open,
    "PCD": Pool.disability,
    "PPP": Pool.race_reserved,
    "IND": Pool.indigenous,
    "INDIGENA": Pool.indigenous,
}

# Prefix used in candidates.id_unico ("PPP12", "IND3", ...)
POOL_CODES: dict[Pool, str] = {
    Pool.open: "AC",
    Pool.disability: "PCD",
    Pool.race_reserved: "PPP",
    Pool.indigenous: "IND",
}

# ---------------------------------------------------------------------------
# Waiver note templates (candidates.td_observacao)
# ---------------------------------------------------------------------------
DEFAULT_ORGAO_LABEL = "Outro órgão"
DEFAULT_ROLE_LABEL = "Cargo não informado"

NOTE_APPOINTED_ELSEWHERE = "Nomeado no {orgao}. Cargo: {role}. Atualizado em {date}."
NOTE_INTENDS_TO_ACCEPT = "Pretende assumir {orgao}. Cargo: {role}. Atualizado em {date}."

WAIVER_NOTE_BY_KIND: dict[WaiverKind, str] = {
    WaiverKind.sent: "TD confirmado ({date})",
    WaiverKind.interested: "TD em preparação ({date})",
}

DATE_FORMAT_PT = "%d/%m/%Y"

# ---------------------------------------------------------------------------
# Notification templates
# ---------------------------------------------------------------------------
NOTIFICATION_KIND_SECONDARY = "OUTRA_APROVACAO"
NOTIFICATION_KIND_WAIVER = "TD"
NOTIFICATION_KIND_MANUAL_WAIVER = "TD_MANUAL"
NOTIFICATION_KIND_NOMINATION = "NOMEACAO"
NOTIFICATION_KIND_CUSTOM = "CUSTOM"
