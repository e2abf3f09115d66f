"""
Weighted-penalty scoring.

DFM reports, template match scores and manufacturing validation all start
from 100 and subtract weighted penalties. This module keeps that arithmetic
in one place.
"""
from dataclasses import dataclass
from typing import Dict, Iterable, List

SEVERITY_WEIGHTS: Dict[str, float] = {
    "critical": 25.0,
    "warning": 10.0,
    "info": 2.0,
}


@dataclass(frozen=True)
class Penalty:
    """A weighted deduction.

    Attributes:
        weight: Points removed at full shortfall
        shortfall: Fraction of the weight to remove (0 = none, 1 = all)
        label: What the penalty is for (for logs and reports)
    """
    weight: float
    shortfall: float = 1.0
    label: str = ""

    @property
    def points(self) -> float:
        return self.weight * self.shortfall


def weighted_penalty_score(
    penalties: Iterable[Penalty],
    start: float = 100.0,
    floor: float = 0.0,
    ceiling: float = 100.0,
) -> float:
    """Subtract all penalties from ``start`` and clamp to [floor, ceiling]."""
    score = start - sum(p.points for p in penalties)
    return max(floor, min(ceiling, score))


def severity_penalties(severities: Iterable[str]) -> List[Penalty]:
    """One full-weight penalty per issue severity. Unknown severities cost nothing."""
    return [
        Penalty(weight=SEVERITY_WEIGHTS.get(s, 0.0), label=s)
        for s in severities
    ]
