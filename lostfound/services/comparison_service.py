"""Image comparison service for lost and found items."""
import asyncio
import logging
from dataclasses import dataclass

from lostfound.exceptions import AnalysisUnavailableError, InvalidInputError
from lostfound.services.similarity import SimilarityDetails, SimilarityResult, compare_analyses
from lostfound.services.vision_provider import VisionAnalysis, VisionProvider, describe_reference

logger = logging.getLogger(__name__)

ITEM_TYPES = ("lost", "found")


@dataclass
class Item:
    """Lost or found item as stored by the item store."""
    id: str
    user_id: str
    image_url: str
    item_type: str
    description: str = ""
    vision_data: VisionAnalysis | None = None
    is_resolved: bool = False


@dataclass
class ItemMatch:
    """Candidate item scored against a query item."""
    item_id: str
    score: float
    details: SimilarityDetails


@dataclass
class MatchSearchResult:
    """Ranked matches for one item."""
    item_id: str
    matches: list[ItemMatch]
    candidate_count: int
    errors: list[str]


def _require_reference(image: str | bytes | None, message: str) -> str | bytes:
    if image is None or (isinstance(image, str) and not image.strip()) or len(image) == 0:
        raise InvalidInputError(message)
    return image.strip() if isinstance(image, str) else image


class ImageComparisonService:
    """Resolves vision analyses through a provider and scores them."""

    def __init__(self, provider: VisionProvider, threshold: float = 50.0):
        self.provider = provider
        self.threshold = threshold

    async def analyze(self, image: str | bytes | None) -> VisionAnalysis:
        """Analyze a single image URL or image content."""
        image = _require_reference(image, "Image reference is required")
        analysis = await self.provider.analyze(image)
        logger.info(
            f"Analyzed {describe_reference(image)}: {len(analysis.labels)} labels, "
            f"{len(analysis.objects)} objects, {len(analysis.web_entities)} web entities"
        )
        return analysis

    async def compare_images(
        self, image1: str | bytes | None, image2: str | bytes | None
    ) -> SimilarityResult:
        """Analyze two images and score their similarity.

        Both references are validated before any provider call.

        Raises:
            InvalidInputError: If either reference is missing
            AnalysisUnavailableError: If either image cannot be analyzed
        """
        image1 = _require_reference(image1, "Both image references are required")
        image2 = _require_reference(image2, "Both image references are required")

        analysis1, analysis2 = await asyncio.gather(
            self.provider.analyze(image1), self.provider.analyze(image2)
        )
        result = self.compare_analyses(analysis1, analysis2)
        logger.info(
            f"Compared {describe_reference(image1)} with {describe_reference(image2)}: "
            f"{result.similarity_score:.2f}"
        )
        return result

    def compare_analyses(self, a: VisionAnalysis, b: VisionAnalysis) -> SimilarityResult:
        """Score two already resolved analyses."""
        return compare_analyses(a, b)

    async def _resolve(self, item: Item) -> VisionAnalysis:
        if item.vision_data is not None:
            return item.vision_data
        return await self.analyze(item.image_url)

    async def find_matches(
        self, item: Item, candidates: list[Item], limit: int = 10,
        threshold: float | None = None
    ) -> MatchSearchResult:
        """Rank unresolved items of the opposite type against an item.

        Args:
            item: Query item, lost or found
            candidates: Items to compare against
            limit: Max matches returned (clamped 1-100)
            threshold: Minimum score; service default when None

        Returns:
            MatchSearchResult sorted by descending score

        Raises:
            InvalidInputError: If the item type is not lost or found
            AnalysisUnavailableError: If the query item cannot be analyzed
        """
        if item.item_type not in ITEM_TYPES:
            raise InvalidInputError(f"Unknown item type: {item.item_type}")

        limit = max(1, min(100, limit))
        threshold = self.threshold if threshold is None else threshold

        eligible = [
            c for c in candidates
            if c.item_type != item.item_type and not c.is_resolved and c.id != item.id
        ]
        if not eligible:
            return MatchSearchResult(item.id, [], 0, [])

        query = await self._resolve(item)
        resolved = await asyncio.gather(
            *(self._resolve(c) for c in eligible), return_exceptions=True
        )

        matches: list[ItemMatch] = []
        errors: list[str] = []

        for candidate, analysis in zip(eligible, resolved):
            if isinstance(analysis, (AnalysisUnavailableError, InvalidInputError)):
                errors.append(f"{candidate.id}: {analysis}")
                continue
            if isinstance(analysis, BaseException):
                raise analysis

            result = self.compare_analyses(query, analysis)
            if result.similarity_score >= threshold:
                matches.append(ItemMatch(candidate.id, result.similarity_score, result.details))

        if errors:
            logger.warning(f"Skipped {len(errors)} candidates for item {item.id}")

        sorted_matches = sorted(matches, key=lambda m: m.score, reverse=True)[:limit]
        logger.info(f"Item {item.id}: {len(sorted_matches)} matches from {len(eligible)} candidates")

        return MatchSearchResult(
            item_id=item.id,
            matches=sorted_matches,
            candidate_count=len(eligible),
            errors=errors
        )
