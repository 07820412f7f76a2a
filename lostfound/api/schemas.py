"""Pydantic schemas for API."""
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Accepts and emits camelCase keys."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class AnalyzeRequest(CamelModel):
    image_url: str | None = None


class CompareRequest(CamelModel):
    image1_url: str | None = Field(default=None, alias="image1Url")
    image2_url: str | None = Field(default=None, alias="image2Url")


class DetectedObjectOut(BaseModel):
    name: str
    score: float


class AnalysisData(CamelModel):
    """Vision analysis of one image."""
    labels: list[str] = []
    objects: list[DetectedObjectOut] = []
    web_entities: list[str] = []


class AnalyzeResponse(BaseModel):
    data: AnalysisData


class SimilarityDetailsOut(CamelModel):
    label_similarity: float
    object_similarity: float
    web_entity_similarity: float


class ScoredMatch(BaseModel):
    score: float
    details: SimilarityDetailsOut


class CompareData(BaseModel):
    matches: list[ScoredMatch]


class CompareResponse(BaseModel):
    data: CompareData


class ItemIn(CamelModel):
    """Item as stored by the item store, with optional cached analysis."""
    id: str = Field(default="", alias="_id")
    user_id: str = ""
    image_url: str = ""
    item_type: str = ""
    description: str = ""
    vision_api_data: AnalysisData | None = None
    is_resolved: bool = False


class MatchesRequest(CamelModel):
    item: ItemIn | None = None
    candidates: list[ItemIn] = []
    limit: int | None = Field(default=None, ge=1, le=100)
    threshold: float | None = Field(default=None, ge=0, le=100)


class ItemMatchOut(CamelModel):
    item_id: str
    score: float
    details: SimilarityDetailsOut


class MatchesData(CamelModel):
    matches: list[ItemMatchOut]
    candidate_count: int
    errors: list[str] = []


class MatchesResponse(BaseModel):
    data: MatchesData


class HealthResponse(BaseModel):
    """Response for health endpoint."""
    status: str = "ok"
    version: str = "1.0.0"
