"""FastAPI application."""
import logging
from functools import lru_cache
from fastapi import Depends, FastAPI, File, HTTPException, UploadFile
from fastapi.middleware.cors import CORSMiddleware

from lostfound.api.schemas import (
    AnalysisData, AnalyzeRequest, AnalyzeResponse, CompareData, CompareRequest,
    CompareResponse, HealthResponse, ItemIn, ItemMatchOut, MatchesData, MatchesRequest,
    MatchesResponse, ScoredMatch
)
from lostfound.exceptions import AnalysisUnavailableError, InvalidInputError, UnsupportedFormatError
from lostfound.services.comparison_service import ImageComparisonService, Item
from lostfound.services.vision_provider import GoogleVisionProvider, VisionAnalysis
from lostfound.utils.config_loader import load_config, get_config
from lostfound.utils.image_utils import preprocess_image

load_config()
cfg = get_config()

logging.basicConfig(level=cfg.get("logging", {}).get("level", "INFO"))
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Lost and Found Image Comparison API",
    version="1.0.0"
)

# Configurable CORS
allowed_origins = cfg.get("api", {}).get("allowed_origins", ["http://localhost:3000"])
app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)


@lru_cache
def get_comparison_service() -> ImageComparisonService:
    """Service wired to the configured vision provider."""
    threshold = cfg.get("matching", {}).get("threshold", 50.0)
    return ImageComparisonService(GoogleVisionProvider.from_config(cfg), threshold=threshold)


def _to_item(item: ItemIn) -> Item:
    vision_data = None
    if item.vision_api_data is not None:
        vision_data = VisionAnalysis.from_dict(item.vision_api_data.model_dump(by_alias=True))
    return Item(
        id=item.id,
        user_id=item.user_id,
        image_url=item.image_url,
        item_type=item.item_type,
        description=item.description,
        vision_data=vision_data,
        is_resolved=item.is_resolved,
    )


def _analysis_response(analysis: VisionAnalysis) -> AnalyzeResponse:
    return AnalyzeResponse(data=AnalysisData.model_validate(analysis.to_dict()))


@app.get("/health", response_model=HealthResponse)
async def health():
    """Health check endpoint."""
    return HealthResponse()


@app.post("/api/image-comparison/analyze", response_model=AnalyzeResponse)
async def analyze(
    request: AnalyzeRequest,
    service: ImageComparisonService = Depends(get_comparison_service)
):
    """Analyze an image URL."""
    try:
        analysis = await service.analyze(request.image_url)
    except InvalidInputError as e:
        logger.warning(f"Invalid analyze request: {e}")
        raise HTTPException(400, str(e))
    except AnalysisUnavailableError as e:
        logger.error(f"Analysis failed: {e}")
        raise HTTPException(502, str(e))

    return _analysis_response(analysis)


@app.post("/api/image-comparison/analyze/upload", response_model=AnalyzeResponse)
async def analyze_upload(
    file: UploadFile = File(...),
    service: ImageComparisonService = Depends(get_comparison_service)
):
    """Analyze an uploaded image."""
    # Validate content type
    content_type = file.content_type or ""
    if not content_type.startswith("image/"):
        raise HTTPException(400, "File must be an image")

    # Read with size limit
    files_cfg = cfg.get("files", {})
    max_size = files_cfg.get("max_size_mb", 10) * 1024 * 1024
    content = await file.read(max_size + 1)
    if len(content) > max_size:
        raise HTTPException(413, f"File too large (max {max_size // (1024*1024)}MB)")

    try:
        processed = preprocess_image(
            content, max_dim=files_cfg.get("max_dim", 1920),
            allowed_formats=files_cfg.get("allowed_formats")
        )
        analysis = await service.analyze(processed)
    except UnsupportedFormatError as e:
        logger.warning(f"Rejected upload {file.filename}: {e}")
        raise HTTPException(415, str(e))
    except InvalidInputError as e:
        raise HTTPException(400, str(e))
    except AnalysisUnavailableError as e:
        logger.error(f"Analysis failed for upload {file.filename}: {e}")
        raise HTTPException(502, str(e))

    return _analysis_response(analysis)


@app.post("/api/image-comparison/compare", response_model=CompareResponse)
async def compare(
    request: CompareRequest,
    service: ImageComparisonService = Depends(get_comparison_service)
):
    """Compare two image URLs."""
    try:
        result = await service.compare_images(request.image1_url, request.image2_url)
    except InvalidInputError as e:
        logger.warning(f"Invalid compare request: {e}")
        raise HTTPException(400, str(e))
    except AnalysisUnavailableError as e:
        logger.error(f"Comparison failed: {e}")
        raise HTTPException(502, str(e))

    return CompareResponse(data=CompareData(matches=[
        ScoredMatch(score=result.similarity_score, details=result.details.to_dict())
    ]))


@app.post("/api/image-comparison/matches", response_model=MatchesResponse)
async def matches(
    request: MatchesRequest,
    service: ImageComparisonService = Depends(get_comparison_service)
):
    """Rank candidate items against a lost or found item."""
    if request.item is None:
        logger.warning("Invalid matches request: item is missing")
        raise HTTPException(400, "Item is required")

    limit = request.limit or cfg.get("matching", {}).get("limit", 10)

    try:
        result = await service.find_matches(
            _to_item(request.item),
            [_to_item(c) for c in request.candidates],
            limit=limit,
            threshold=request.threshold
        )
    except InvalidInputError as e:
        logger.warning(f"Invalid matches request: {e}")
        raise HTTPException(400, str(e))
    except AnalysisUnavailableError as e:
        logger.error(f"Match search failed for item {request.item.id}: {e}")
        raise HTTPException(502, str(e))

    return MatchesResponse(data=MatchesData(
        matches=[
            ItemMatchOut(item_id=m.item_id, score=m.score, details=m.details.to_dict())
            for m in result.matches
        ],
        candidate_count=result.candidate_count,
        errors=result.errors
    ))
