from enum import IntEnum

from recordclass import dataobject


class PartnershipKind(IntEnum):
    CASUAL = 0
    STABLE = 1


class Relation(dataobject):
    """
    Edge record held by one end of a partnership, pointing at the other end.
    duration is the clock tick the partnership ends at, visited the last tick
    the edge was processed (so a pass over both ends handles it once).
    """

    person: "Person"
    kind: PartnershipKind
    duration: int
    visited: int = -1

    @property
    def is_stable(self) -> bool:
        return self.kind == PartnershipKind.STABLE
