"""Pytest fixtures for image comparison tests."""
import pytest

from lostfound.exceptions import AnalysisUnavailableError
from lostfound.services.vision_provider import DetectedObject, VisionAnalysis, VisionProvider

LOGO_URL = "https://example.com/images/logo.png"
LOGO_COPY_URL = "https://example.com/images/logo-copy.png"
WALLET_URL = "https://example.com/images/wallet.jpg"
BROKEN_URL = "https://example.com/images/broken.jpg"


class FakeVisionProvider(VisionProvider):
    """In-memory provider keyed by image reference."""

    def __init__(self, analyses: dict):
        self.analyses = analyses
        self.calls: list = []

    async def analyze(self, image):
        self.calls.append(image)
        key = image if isinstance(image, str) else "<bytes>"
        if key not in self.analyses:
            raise AnalysisUnavailableError(key, "image not found")
        return self.analyses[key]


@pytest.fixture
def logo_analysis() -> VisionAnalysis:
    return VisionAnalysis(
        labels=("Test", "Item", "Logo"),
        objects=(DetectedObject("Logo", 0.9),),
        web_entities=("Google", "Artificial intelligence"),
    )


@pytest.fixture
def wallet_analysis() -> VisionAnalysis:
    return VisionAnalysis(
        labels=("Wallet", "Leather", "Brown"),
        objects=(DetectedObject("Wallet", 0.95),),
        web_entities=("Leather wallet",),
    )


@pytest.fixture
def fake_provider(logo_analysis, wallet_analysis) -> FakeVisionProvider:
    """Provider that knows the logo, a copy of it, a wallet and raw uploads."""
    return FakeVisionProvider({
        LOGO_URL: logo_analysis,
        LOGO_COPY_URL: logo_analysis,
        WALLET_URL: wallet_analysis,
        "<bytes>": wallet_analysis,
    })
