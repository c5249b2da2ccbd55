"""
Choice correlation — which CYOA choices get picked together.

Each beacon carries ``selectedChoices`` (ids of active choices when the
reader left). For every pair of choices seen together we report:

- ``count``   sessions containing both
- ``percent`` count as a share of all sessions (0–100)
- ``prob_a`` / ``prob_b``  share of sessions containing each choice
- ``lift``    P(A∩B) / (P(A)·P(B))
"""

import math
from collections import Counter
from dataclasses import asdict, dataclass
from itertools import combinations
from typing import Callable, Iterable


@dataclass(frozen=True)
class ChoiceCorrelation:
    id_a: str
    id_b: str
    count: int
    percent: float
    prob_a: float
    prob_b: float
    lift: float

    def to_dict(self) -> dict:
        return asdict(self)


def _prob_ab(c: ChoiceCorrelation) -> float:
    return c.percent / 100


def jaccard(c: ChoiceCorrelation) -> float:
    union = c.prob_a + c.prob_b - _prob_ab(c)
    return 0.0 if union <= 0 else _prob_ab(c) / union


def cosine(c: ChoiceCorrelation) -> float:
    denom = math.sqrt(c.prob_a * c.prob_b)
    return 0.0 if denom <= 0 else _prob_ab(c) / denom


def log_weighted_lift(c: ChoiceCorrelation) -> float:
    return c.lift * math.log(c.count + 1)


# name → (label, score); higher score sorts first
SORT_METRICS: dict[str, tuple[str, Callable[[ChoiceCorrelation], float]]] = {
    "log_weighted_lift": ("Log-Weighted Lift (Balanced Heuristic)", log_weighted_lift),
    "jaccard": ("Jaccard Index (Intersection over Union)", jaccard),
    "cosine": ("Cosine Similarity", cosine),
    "frequency_weighted_lift": ("Frequency-weighted Lift", lambda c: c.lift * c.count),
    "lift": ("Lift (Basic Probability Ratio)", lambda c: c.lift),
    "percent": ("Co-Occurrence Percentage", lambda c: c.percent),
    "count": ("Co-Occurrence Count", lambda c: c.count),
}

DEFAULT_METRIC = "log_weighted_lift"


def _session_choices(payload: dict) -> set[str]:
    choices = payload.get("selectedChoices")
    if not isinstance(choices, list):
        return set()
    return {str(c) for c in choices if c is not None and not isinstance(c, (dict, list))}


def choice_correlations(payloads: Iterable[dict]) -> list[ChoiceCorrelation]:
    """Pairwise co-occurrence statistics across all sessions."""
    sessions = [_session_choices(p) for p in payloads if isinstance(p, dict)]
    total = len(sessions)
    if total == 0:
        return []

    singles: Counter = Counter()
    pairs: Counter = Counter()
    for choices in sessions:
        singles.update(choices)
        pairs.update(combinations(sorted(choices), 2))

    results = []
    for (a, b), count in pairs.items():
        prob_a = singles[a] / total
        prob_b = singles[b] / total
        prob_ab = count / total
        results.append(ChoiceCorrelation(
            id_a=a,
            id_b=b,
            count=count,
            percent=prob_ab * 100,
            prob_a=prob_a,
            prob_b=prob_b,
            lift=prob_ab / (prob_a * prob_b),
        ))
    return results


def sort_correlations(
    correlations: list[ChoiceCorrelation],
    metric: str = DEFAULT_METRIC,
) -> list[ChoiceCorrelation]:
    if metric not in SORT_METRICS:
        raise ValueError(f"Unknown sort metric: {metric}")
    _, score = SORT_METRICS[metric]
    return sorted(correlations, key=score, reverse=True)
