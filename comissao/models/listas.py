"""Response models for the candidate lists (``/listas``) endpoint."""

from pydantic import BaseModel

from comissao.models.candidate import Candidate
from comissao.models.ordering import OrderEntry


class PoolTotals(BaseModel):
    """Approved / nominated / confirmed-waiver counts for one pool."""
    approved: int = 0
    nominated: int = 0
    waivers_confirmed: int = 0


class ListasTotals(BaseModel):
    overall: PoolTotals = PoolTotals()
    open: PoolTotals = PoolTotals()
    disability: PoolTotals = PoolTotals()
    race_reserved: PoolTotals = PoolTotals()
    indigenous: PoolTotals = PoolTotals()


class ListasResponse(BaseModel):
    """Full response for GET /api/v1/listas."""
    order: list[OrderEntry] = []
    open: list[Candidate] = []
    disability: list[Candidate] = []
    race_reserved: list[Candidate] = []
    indigenous: list[Candidate] = []
    totals: ListasTotals = ListasTotals()
