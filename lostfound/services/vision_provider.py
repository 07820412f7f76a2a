"""Vision provider client backed by the Google Cloud Vision REST API."""
import asyncio
import base64
import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass

import requests

from lostfound.exceptions import AnalysisUnavailableError

logger = logging.getLogger(__name__)

DEFAULT_ENDPOINT = "https://vision.googleapis.com/v1/images:annotate"


@dataclass(frozen=True)
class DetectedObject:
    """Object localized in an image with its detection confidence."""
    name: str
    score: float


@dataclass(frozen=True)
class VisionAnalysis:
    """Labels, detected objects and web entities for one image."""
    labels: tuple[str, ...] = ()
    objects: tuple[DetectedObject, ...] = ()
    web_entities: tuple[str, ...] = ()

    def to_dict(self) -> dict:
        return {
            "labels": list(self.labels),
            "objects": [{"name": o.name, "score": o.score} for o in self.objects],
            "webEntities": list(self.web_entities),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "VisionAnalysis":
        """Build from the wire shape; missing keys mean no data for that signal."""
        return cls(
            labels=tuple(data.get("labels") or ()),
            objects=tuple(
                DetectedObject(name=o["name"], score=float(o.get("score", 0.0)))
                for o in data.get("objects") or ()
            ),
            web_entities=tuple(data.get("webEntities") or ()),
        )


def describe_reference(image: str | bytes) -> str:
    """Short printable form of an image reference for logs and errors."""
    if isinstance(image, bytes):
        return f"<{len(image)} bytes>"
    return image


class VisionProvider(ABC):
    """Source of VisionAnalysis values for image references."""

    @abstractmethod
    async def analyze(self, image: str | bytes) -> VisionAnalysis:
        """Analyze an image URL or raw image bytes.

        Raises:
            AnalysisUnavailableError: If no analysis can be produced
        """
        ...


def parse_annotation(response: dict) -> VisionAnalysis:
    """Convert one `images:annotate` response entry into a VisionAnalysis."""
    labels = tuple(
        a["description"] for a in response.get("labelAnnotations", [])
        if a.get("description")
    )
    objects = tuple(
        DetectedObject(name=o["name"], score=float(o.get("score", 0.0)))
        for o in response.get("localizedObjectAnnotations", [])
        if o.get("name")
    )
    web = response.get("webDetection", {})
    web_entities = tuple(
        e["description"] for e in web.get("webEntities", [])
        if e.get("description")
    )
    return VisionAnalysis(labels=labels, objects=objects, web_entities=web_entities)


class GoogleVisionProvider(VisionProvider):
    """Thin wrapper around the Cloud Vision `images:annotate` endpoint."""

    FEATURES = ("LABEL_DETECTION", "OBJECT_LOCALIZATION", "WEB_DETECTION")

    def __init__(
        self, api_key: str, endpoint: str = DEFAULT_ENDPOINT, timeout: float = 15.0,
        max_results: int = 20, max_retries: int = 3,
        session: requests.Session | None = None
    ):
        self.api_key = api_key
        self.endpoint = endpoint
        self.timeout = timeout
        self.max_results = max_results
        self.max_retries = max(1, max_retries)
        if session is None:
            session = requests.Session()
            adapter = requests.adapters.HTTPAdapter(pool_connections=16, pool_maxsize=16)
            session.mount("http://", adapter)
            session.mount("https://", adapter)
        self._session = session

    @classmethod
    def from_config(cls, cfg: dict) -> "GoogleVisionProvider":
        """Create provider from the `vision` config section."""
        vision = cfg.get("vision", {})
        return cls(
            api_key=vision.get("api_key", ""),
            endpoint=vision.get("endpoint") or DEFAULT_ENDPOINT,
            timeout=vision.get("timeout", 15.0),
            max_results=vision.get("max_results", 20),
            max_retries=vision.get("max_retries", 3),
        )

    def _build_request(self, image: str | bytes) -> dict:
        if isinstance(image, bytes):
            source = {"content": base64.b64encode(image).decode("ascii")}
        else:
            source = {"source": {"imageUri": image}}
        return {
            "requests": [{
                "image": source,
                "features": [
                    {"type": feature, "maxResults": self.max_results}
                    for feature in self.FEATURES
                ],
            }]
        }

    def analyze_sync(self, image: str | bytes) -> VisionAnalysis:
        """Blocking analysis call with retries on transient failures."""
        ref = describe_reference(image)
        if not image or (isinstance(image, str) and not image.strip()):
            raise AnalysisUnavailableError(ref or "<empty>", "empty image reference")
        if not self.api_key:
            raise AnalysisUnavailableError(ref, "vision API key is not configured")

        payload = self._build_request(image.strip() if isinstance(image, str) else image)
        last_error = "no attempt made"

        for attempt in range(self.max_retries):
            try:
                r = self._session.post(
                    self.endpoint, params={"key": self.api_key},
                    json=payload, timeout=self.timeout
                )
            except (requests.ConnectionError, requests.Timeout) as e:
                last_error = f"request failed: {e}"
            else:
                if r.status_code < 500:
                    return self._parse_response(ref, r)
                last_error = f"provider returned HTTP {r.status_code}"

            logger.debug(f"Vision attempt {attempt + 1}/{self.max_retries} for {ref}: {last_error}")
            if attempt + 1 < self.max_retries:
                time.sleep(0.5 * 2 ** attempt)

        raise AnalysisUnavailableError(ref, last_error)

    def _parse_response(self, ref: str, r: requests.Response) -> VisionAnalysis:
        try:
            data = r.json()
        except ValueError:
            raise AnalysisUnavailableError(ref, f"malformed response (HTTP {r.status_code})")
        if not isinstance(data, dict):
            raise AnalysisUnavailableError(ref, f"malformed response (HTTP {r.status_code})")

        if r.status_code >= 400:
            error = data.get("error")
            message = error.get("message") if isinstance(error, dict) else None
            raise AnalysisUnavailableError(ref, message or f"HTTP {r.status_code}")

        responses = data.get("responses") or []
        if not responses:
            raise AnalysisUnavailableError(ref, "empty response from provider")

        entry = responses[0]
        if "error" in entry:
            raise AnalysisUnavailableError(ref, entry["error"].get("message", "provider error"))

        return parse_annotation(entry)

    async def analyze(self, image: str | bytes) -> VisionAnalysis:
        return await asyncio.to_thread(self.analyze_sync, image)
