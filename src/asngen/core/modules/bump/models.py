from pydantic import BaseModel

from asngen.core.modules.asn.models import ASNData


class BumpResult(BaseModel):
    """Outcome of bumping one namespace."""

    namespace: int
    previous_counter: int
    asn: ASNData  # Placeholder ASN allocated by the bump, carrying its provenance
    next_asn: str  # ASN the next regular allocation in this namespace will receive


class BumpRecommendation(BaseModel):
    """Suggested bump delta derived from the timing statistics.

    A heuristic assuming normally distributed registration gaps, not a guarantee.
    """

    sigma: float
    hours: float
    hourly_rate: float  # Worst-case registrations per namespace per hour at this sigma
    delta_counter: int
    namespaces: list[int]
