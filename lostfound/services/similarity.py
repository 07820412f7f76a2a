"""Similarity scoring between two vision analyses.

Each signal (labels, objects, web entities) is turned into a weight map
``name -> weight``. Labels and web entities weigh 1; objects weigh their
detection confidence. Two maps are compared with a weighted overlap:

    overlap = sum(min(wa, wb) for matched) /
              (sum(min(wa, wb) for matched) + sum(w for unmatched))

With unit weights this is the Jaccard index. Matched pairs add the same
amount to numerator and denominator, so adding a shared entry never lowers
the score.

The composite is a weighted average of the sub-scores, skipping signals
for which neither side carries any information.
"""
from dataclasses import dataclass

from lostfound.services.vision_provider import VisionAnalysis

LABEL_WEIGHT = 0.4
OBJECT_WEIGHT = 0.3
WEB_ENTITY_WEIGHT = 0.3


@dataclass(frozen=True)
class SimilarityDetails:
    """Per-signal sub-scores, each in [0, 100]."""
    label_similarity: float
    object_similarity: float
    web_entity_similarity: float

    def to_dict(self) -> dict:
        return {
            "labelSimilarity": self.label_similarity,
            "objectSimilarity": self.object_similarity,
            "webEntitySimilarity": self.web_entity_similarity,
        }


@dataclass(frozen=True)
class SimilarityResult:
    """Composite score in [0, 100] with its breakdown."""
    similarity_score: float
    details: SimilarityDetails

    def to_dict(self) -> dict:
        return {"similarityScore": self.similarity_score, "details": self.details.to_dict()}


def normalize_term(term: str) -> str:
    return term.strip().casefold()


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def term_weights(terms) -> dict[str, float]:
    """Unit weight per distinct normalized term."""
    return {key: 1.0 for key in (normalize_term(t) for t in terms) if key}


def object_weights(objects) -> dict[str, float]:
    """Confidence per distinct normalized object name, highest wins."""
    weights: dict[str, float] = {}
    for obj in objects:
        key = normalize_term(obj.name)
        if not key:
            continue
        score = _clamp(float(obj.score), 0.0, 1.0)
        weights[key] = max(score, weights.get(key, 0.0))
    return weights


def weighted_overlap(a: dict[str, float], b: dict[str, float]) -> tuple[float, float]:
    """Return (matched, total) mass of the weighted overlap of two maps."""
    matched = 0.0
    total = 0.0
    for key in sorted(a.keys() | b.keys()):
        wa, wb = a.get(key), b.get(key)
        if wa is not None and wb is not None:
            shared = min(wa, wb)
            matched += shared
            total += shared
        else:
            total += wa if wa is not None else wb
    return matched, total


def compare_analyses(a: VisionAnalysis, b: VisionAnalysis) -> SimilarityResult:
    """Score how similar two analyses are; symmetric and order independent."""
    signals = [
        (LABEL_WEIGHT, weighted_overlap(term_weights(a.labels), term_weights(b.labels))),
        (OBJECT_WEIGHT, weighted_overlap(object_weights(a.objects), object_weights(b.objects))),
        (WEB_ENTITY_WEIGHT, weighted_overlap(term_weights(a.web_entities), term_weights(b.web_entities))),
    ]

    sub_scores = []
    weighted_sum = 0.0
    weight_total = 0.0
    for weight, (matched, total) in signals:
        # No data on either side is not evidence of similarity
        score = 100.0 * matched / total if total > 0 else 0.0
        sub_scores.append(round(_clamp(score, 0.0, 100.0), 2))
        if total > 0:
            weighted_sum += weight * score
            weight_total += weight

    composite = weighted_sum / weight_total if weight_total > 0 else 0.0

    return SimilarityResult(
        similarity_score=round(_clamp(composite, 0.0, 100.0), 2),
        details=SimilarityDetails(*sub_scores),
    )
