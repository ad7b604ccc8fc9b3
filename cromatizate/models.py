from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ColorBlindnessCategory(str, Enum):
    """Supported color-vision classifications"""
    NORMAL = "normal"
    PROTANOPIA = "protanopia"
    DEUTERANOPIA = "deuteranopia"
    TRITANOPIA = "tritanopia"
    PROTANOMALY = "protanomaly"
    DEUTERANOMALY = "deuteranomaly"
    TRITANOMALY = "tritanomaly"
    ACHROMATOPSIA = "achromatopsia"


class InteractionKind(str, Enum):
    """Interaction kinds the aggregator understands. Others are stored but ignored."""
    CONTRAST_ADJUSTMENT = "contrast_adjustment"
    SATURATION_ADJUSTMENT = "saturation_adjustment"
    PALETTE_SELECTION = "palette_selection"
    RECOMMENDATION_FEEDBACK = "recommendation_feedback"


class RecommendationKind(str, Enum):
    PALETTE = "palette"
    CONTRAST = "contrast"
    SATURATION = "saturation"
    TEXTUAL = "textual"


class RecommendationSource(str, Enum):
    ONTOLOGY = "ontology"
    INTERACTION = "interaction"


class UserPreferences(BaseModel):
    """Canonical per-visitor preferences.

    Serialized with the legacy keys (``type``, ``textDescriptions``) so rows
    written by earlier clients stay readable.
    """
    model_config = ConfigDict(populate_by_name=True, frozen=True, use_enum_values=False)

    category: ColorBlindnessCategory = Field(ColorBlindnessCategory.NORMAL, alias="type")
    intensity: int = Field(70, ge=0, le=100)
    contrast: int = Field(100, ge=0, le=200)
    saturation: int = Field(100, ge=0, le=150)
    text_descriptions_enabled: bool = Field(False, alias="textDescriptions")

    def to_record(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class InteractionEvent(BaseModel):
    """Append-only record of a visitor action"""
    kind: str
    payload: Any = Field(default_factory=dict)
    timestamp: datetime = Field(default_factory=utcnow)

    @field_validator("kind")
    @classmethod
    def validate_kind(cls, v):
        """Kind is free-form but never blank"""
        if not v or not v.strip():
            raise ValueError("Interaction kind cannot be empty")
        return v.strip()


class Recommendation(BaseModel):
    """Derived suggestion; ``content`` always carries a ``confidence``"""
    kind: RecommendationKind
    content: Dict[str, Any]
    source: RecommendationSource
    created_at: Optional[datetime] = None

    @property
    def confidence(self) -> float:
        value = self.content.get("confidence", 0.5)
        return float(value) if isinstance(value, (int, float)) else 0.5


class RGB(BaseModel):
    r: int
    g: int
    b: int


class HSL(BaseModel):
    h: float
    s: float
    l: float  # noqa: E741


class ColorAccessibility(BaseModel):
    contrast: float
    problematic_for: List[ColorBlindnessCategory] = Field(default_factory=list)


class ColorAnalysis(BaseModel):
    hex: str
    rgb: RGB
    hsl: HSL
    accessibility: ColorAccessibility


class VisualContent(BaseModel):
    """Content handed to the semantic agent"""
    type: str = "image"
    source: Optional[str] = None
    colors: List[str] = Field(default_factory=list)
    objects: List[str] = Field(default_factory=list)
    metadata: Dict[str, Any] = Field(default_factory=dict)


class SemanticDescription(BaseModel):
    type: str
    description: str
    alternative_text: str
    color_blindness_adaptations: Dict[str, str] = Field(default_factory=dict)


class Visitor(BaseModel):
    """Stored visitor row"""
    id: str
    preferences: Dict[str, Any] = Field(default_factory=dict)
    color_blindness: Optional[ColorBlindnessCategory] = None
    adopted: Dict[str, Any] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


# Request bodies

class PreferencesUpdate(BaseModel):
    """PUT /users/preferences body"""
    userId: Optional[str] = None
    colorProfile: Optional[str] = None
    preferences: Optional[Dict[str, Any]] = None


class ProfileUpdate(BaseModel):
    """POST /agents/profile body"""
    preferences: Dict[str, Any]


class InteractionCreate(BaseModel):
    userId: Optional[str] = None
    type: str
    payload: Any = Field(default_factory=dict)


class RecommendationFeedback(BaseModel):
    userId: Optional[str] = None
    type: Optional[RecommendationKind] = None
    feedback: Optional[str] = None
    accepted: bool = False


class OntologyUpsert(BaseModel):
    domain: str
    name: str
    version: str = "1.0"
    jsonld: Dict[str, Any]
    rules: Optional[List[Dict[str, Any]]] = None


class SemanticProcessRequest(BaseModel):
    inputType: str
    inputData: Any


class SemanticAgentRequest(BaseModel):
    colors: Optional[List[str]] = None
    metadata: Optional[Dict[str, Any]] = None
    visionType: Optional[str] = None


class ExternalAnalysisRequest(BaseModel):
    url: str


class SessionCreate(BaseModel):
    userId: Optional[str] = None
    metadata: Dict[str, Any]


class HealthResponse(BaseModel):
    """Health check response"""
    ok: bool = True
    timestamp: datetime = Field(default_factory=utcnow)
    version: str = "0.1.0"
    services: Dict[str, bool] = Field(default_factory=dict)
