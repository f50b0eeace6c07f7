"""Pydantic models for the ``candidates`` table.

Field names are the domain names; ``comissao.services.normalization`` maps
them to and from the Portuguese column names.
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from comissao.models.enums import NominationState, Pool, WaiverStatus


class CandidateCreate(BaseModel):
    """Payload for registering an approved candidate."""
    name: str = Field(min_length=1)
    pool: Pool
    pool_rank: int = Field(gt=0)


class Candidate(BaseModel):
    """Full candidate record returned from the database."""
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str = ""
    pool: Pool
    pool_rank: int | None = None
    unique_code: str | None = None  # id_unico, e.g. "PPP12"
    nomination_position: int | None = None  # derived, persisted for display
    nomination_state: NominationState = NominationState.awaiting
    waiver_status: WaiverStatus = WaiverStatus.none
    waiver_note: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class NominationCreate(BaseModel):
    """Payload for publishing a nomination act for one candidate."""
    candidate_id: UUID
    nominated_on: datetime
    act_number: str | None = None
    source_url: str | None = None
    note: str | None = None
    notify: bool = False
