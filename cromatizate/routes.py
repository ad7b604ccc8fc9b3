import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from urllib.parse import urlparse

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response, status
from fastapi.responses import JSONResponse

from .analyzer import ImageAnalyzer
from .colors import analyze
from .config import AppConfig
from .db import Store
from .errors import NotFound, StoreError, StoreUnavailable
from .identity import ensure_visitor, require_visitor_id, resolve_visitor_id
from .interactions import aggregate
from .models import (
    ColorBlindnessCategory,
    ExternalAnalysisRequest,
    InteractionCreate,
    InteractionEvent,
    InteractionKind,
    OntologyUpsert,
    PreferencesUpdate,
    ProfileUpdate,
    Recommendation,
    RecommendationFeedback,
    SemanticAgentRequest,
    SemanticProcessRequest,
    SessionCreate,
    UserPreferences,
    Visitor,
    VisualContent,
)
from .ontology import (
    JSONLD_MEDIA_TYPE,
    color_blindness_document,
    visual_content_document,
    visual_content_ontology,
    with_suggestions,
)
from .preferences import (
    NormalizationResult,
    coerce_category,
    merge_preferences,
    normalize,
    profile_adaptation,
    profile_hints,
)
from .recommendations import merge_recommendations, novel_recommendations, recommend
from .security import get_current_operator
from .semantic import adaptation_suggestions, transform_colors, transform_metadata

logger = logging.getLogger(__name__)

router = APIRouter()

DEFAULT_ONTOLOGY_DOMAIN = "colorBlindness"
SUPPORTED_INPUT_TYPES = ("image", "color")


def get_store(request: Request) -> Store:
    return request.app.state.store


def get_config(request: Request) -> AppConfig:
    return request.app.state.config


def get_analyzer(request: Request) -> ImageAnalyzer:
    return request.app.state.analyzer


def _raise_store_error(e: StoreError, action: str):
    if isinstance(e, NotFound):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    logger.error(f"[api] {action} failed: {e}")
    raise HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail="Storage is temporarily unavailable",
    ) from e


def _visitor_preferences(visitor: Visitor) -> NormalizationResult:
    """Stored preferences normalized, falling back to the visitor's category column"""
    raw: Dict[str, Any] = dict(visitor.preferences)
    if "type" not in raw and "category" not in raw and visitor.color_blindness:
        raw["type"] = visitor.color_blindness.value
    result = normalize(raw)
    _log_corrections(visitor.id, result)
    return result


def _log_corrections(visitor_id: str, result: NormalizationResult):
    for c in result.corrections:
        logger.debug(
            f"[api] Preference {c.field} for {visitor_id}: {c.original!r} -> {c.applied!r} ({c.reason})"
        )


def _stored_category(prefs: UserPreferences) -> Optional[ColorBlindnessCategory]:
    return None if prefs.category is ColorBlindnessCategory.NORMAL else prefs.category


def _preference_summary(visitor: Visitor, prefs: UserPreferences) -> Dict[str, Any]:
    return {
        "colorProfile": visitor.color_blindness.value if visitor.color_blindness else None,
        "contrastLevel": f"{prefs.contrast}%",
        "labelPreference": "enabled" if prefs.text_descriptions_enabled else "disabled",
    }


def _recommendation_dict(rec: Recommendation) -> Dict[str, Any]:
    return {
        "type": rec.kind.value,
        "content": rec.content,
        "confidence": rec.confidence,
        "source": rec.source.value,
        "createdAt": (rec.created_at or datetime.now(timezone.utc)).isoformat(),
    }


def _profile_response(prefs: UserPreferences) -> Dict[str, Any]:
    return {
        "success": True,
        "data": {
            "preferences": prefs.to_record(),
            "adaptationRules": profile_adaptation(prefs),
            "recommendations": profile_hints(prefs),
        },
    }


# Visitors


@router.post("/users", status_code=status.HTTP_201_CREATED)
async def create_user(
    request: Request,
    store: Store = Depends(get_store),
    config: AppConfig = Depends(get_config),
):
    """Ensure the visitor row exists"""
    try:
        visitor = ensure_visitor(request, config, store)
    except StoreError as e:
        _raise_store_error(e, "Visitor creation")

    logger.info(f"[api] Visitor {visitor.id} ensured")
    return {"success": True, "data": visitor.model_dump(mode="json")}


@router.post("/bootstrap")
async def bootstrap(
    request: Request,
    store: Store = Depends(get_store),
    config: AppConfig = Depends(get_config),
):
    """Ensure the visitor and return its id with a preference summary"""
    try:
        visitor = ensure_visitor(request, config, store)
    except StoreError as e:
        _raise_store_error(e, "Bootstrap")

    prefs = _visitor_preferences(visitor).preferences
    return {
        "success": True,
        "data": {
            "user": {"id": visitor.id},
            "preferences": {**_preference_summary(visitor, prefs), **prefs.to_record()},
        },
    }


@router.get("/users/preferences")
async def get_preferences(
    request: Request,
    store: Store = Depends(get_store),
    config: AppConfig = Depends(get_config),
):
    visitor_id = require_visitor_id(request, config)
    try:
        visitor = store.get_visitor(visitor_id)
    except StoreError as e:
        _raise_store_error(e, "Preference lookup")

    if visitor is None:
        return {
            "success": True,
            "data": {
                "colorProfile": None,
                "contrastLevel": "100%",
                "labelPreference": "disabled",
                "preferences": {},
            },
        }

    prefs = _visitor_preferences(visitor).preferences
    return {
        "success": True,
        "data": {**_preference_summary(visitor, prefs), "preferences": prefs.to_record()},
    }


@router.put("/users/preferences")
async def update_preferences(
    update: PreferencesUpdate,
    request: Request,
    store: Store = Depends(get_store),
    config: AppConfig = Depends(get_config),
):
    """Merge incoming preferences over the stored ones and save the normalized result"""
    try:
        visitor = ensure_visitor(request, config, store, update.userId)
        incoming: Dict[str, Any] = dict(update.preferences or {})
        if update.colorProfile is not None:
            incoming["type"] = update.colorProfile

        result = merge_preferences(_visitor_preferences(visitor).preferences, incoming)
        _log_corrections(visitor.id, result)
        prefs = result.preferences

        visitor = store.update_visitor(
            visitor.id,
            preferences=prefs.to_record(),
            color_blindness=_stored_category(prefs),
            set_color_blindness=True,
        )
    except StoreError as e:
        _raise_store_error(e, "Preference update")

    logger.info(f"[api] Preferences saved for {visitor.id} ({prefs.category.value})")
    return {
        "success": True,
        "data": {
            "colorProfile": visitor.color_blindness.value if visitor.color_blindness else None,
            "preferences": prefs.to_record(),
        },
    }


# Profile agent


@router.get("/agents/profile")
async def get_profile(
    request: Request,
    store: Store = Depends(get_store),
    config: AppConfig = Depends(get_config),
):
    """Normalized preferences, the display adaptation derived from them, and hints"""
    try:
        visitor = ensure_visitor(request, config, store)
    except StoreError as e:
        _raise_store_error(e, "Profile lookup")

    return _profile_response(_visitor_preferences(visitor).preferences)


@router.post("/agents/profile")
async def update_profile(
    update: ProfileUpdate,
    request: Request,
    store: Store = Depends(get_store),
    config: AppConfig = Depends(get_config),
):
    try:
        visitor = ensure_visitor(request, config, store)
        result = merge_preferences(_visitor_preferences(visitor).preferences, update.preferences)
        _log_corrections(visitor.id, result)
        prefs = result.preferences
        store.update_visitor(
            visitor.id,
            preferences=prefs.to_record(),
            color_blindness=_stored_category(prefs),
            set_color_blindness=True,
        )
    except StoreError as e:
        _raise_store_error(e, "Profile update")

    logger.info(f"[api] Profile updated for {visitor.id}")
    return _profile_response(prefs)


# Interactions and recommendations


@router.post("/interactions", status_code=status.HTTP_201_CREATED)
async def create_interaction(
    interaction: InteractionCreate,
    request: Request,
    store: Store = Depends(get_store),
    config: AppConfig = Depends(get_config),
):
    """Append an interaction event to the visitor's history"""
    try:
        event = InteractionEvent(kind=interaction.type, payload=interaction.payload)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e

    try:
        visitor = ensure_visitor(request, config, store, interaction.userId)
        store.add_interaction(visitor.id, event)
    except StoreError as e:
        _raise_store_error(e, "Interaction write")

    return {
        "success": True,
        "data": {
            "type": event.kind,
            "payload": event.payload,
            "createdAt": event.timestamp.isoformat(),
        },
    }


@router.get("/recommendations")
async def get_recommendations(
    request: Request,
    store: Store = Depends(get_store),
    config: AppConfig = Depends(get_config),
):
    """Generate recommendations, persist the new ones, return one per kind"""
    visitor_id = require_visitor_id(request, config)
    try:
        visitor = store.get_visitor(visitor_id)
        if visitor is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail="Visitor not found"
            )

        interactions = store.recent_interactions(
            visitor_id, config.get("interactions.recommendation_window", 100)
        )
        existing = store.recent_recommendations(
            visitor_id, config.get("interactions.stored_recommendations", 20)
        )

        prefs = _visitor_preferences(visitor).preferences
        summary = aggregate(interactions)
        fresh = recommend(
            prefs.category,
            interactions,
            preferences={
                "contrast": summary.preferred_contrast,
                "saturation": summary.preferred_saturation,
            },
        )

        stored = store.add_recommendations(visitor_id, novel_recommendations(fresh, existing))
    except StoreError as e:
        _raise_store_error(e, "Recommendation generation")

    logger.info(
        f"[api] {len(fresh)} recommendation(s) for {visitor_id} ({prefs.category.value}), {stored} new"
    )

    user_preferences = {
        **prefs.to_record(),
        "contrast": summary.preferred_contrast,
        "saturation": summary.preferred_saturation,
        "palette": summary.preferred_palette or dict(visitor.preferences).get("palette"),
    }
    return {
        "success": True,
        "data": {
            "recommendations": [
                _recommendation_dict(rec) for rec in merge_recommendations(existing, fresh)
            ],
            "userPreferences": user_preferences,
            "colorBlindnessType": prefs.category.value,
            "interactionCount": len(interactions),
        },
    }


@router.post("/recommendations")
async def recommendation_feedback(
    feedback: RecommendationFeedback,
    request: Request,
    store: Store = Depends(get_store),
    config: AppConfig = Depends(get_config),
):
    """Record feedback; an accepted recommendation is adopted into the visitor's profile"""
    adopted = False
    try:
        visitor = ensure_visitor(request, config, store, feedback.userId)
        store.add_interaction(
            visitor.id,
            InteractionEvent(
                kind=InteractionKind.RECOMMENDATION_FEEDBACK.value,
                payload={
                    "recommendationType": feedback.type.value if feedback.type else None,
                    "feedback": feedback.feedback,
                    "accepted": feedback.accepted,
                    "timestamp": datetime.now(timezone.utc).isoformat(),
                },
            ),
        )

        if feedback.accepted and feedback.type:
            latest = store.latest_recommendation(visitor.id, feedback.type)
            if latest is not None:
                store.update_visitor(
                    visitor.id,
                    adopted={**visitor.adopted, feedback.type.value: latest.content},
                )
                adopted = True
    except StoreError as e:
        _raise_store_error(e, "Feedback write")

    if adopted:
        logger.info(f"[api] {visitor.id} adopted {feedback.type.value} recommendation")
    return {"success": True, "message": "Feedback recorded", "data": {"adopted": adopted}}


# Ontologies


@router.get("/ontologies")
async def get_ontology(
    request: Request,
    domain: str = Query(DEFAULT_ONTOLOGY_DOMAIN),
    vision_type: Optional[str] = Query(None, alias="type"),
    store: Store = Depends(get_store),
    config: AppConfig = Depends(get_config),
):
    """JSON-LD document for a domain with personalized suggestions"""
    stored = None
    try:
        stored = store.get_ontology(domain)
    except StoreUnavailable as e:
        logger.warning(f"[api] Stored ontology unavailable ({e}), generating one")

    suggestions: List[Any] = []
    if stored:
        jsonld = stored["jsonld"]
        if isinstance(stored["rules"], list):
            suggestions = stored["rules"]
    else:
        jsonld = color_blindness_document(coerce_category(vision_type or "deuteranopia"))
        if vision_type:
            suggestions = [_recommendation_dict(r) for r in recommend(vision_type)]

    visitor_id = resolve_visitor_id(request, config)
    if visitor_id and vision_type:
        try:
            visitor = store.get_visitor(visitor_id)
            interactions = store.recent_interactions(
                visitor_id, config.get("interactions.ontology_window", 50)
            )
        except StoreUnavailable as e:
            logger.warning(f"[api] Personalization skipped for {visitor_id}: {e}")
            visitor, interactions = None, []

        category = (visitor.color_blindness if visitor else None) or coerce_category(vision_type)
        preferences = visitor.preferences if visitor else None
        suggestions = [
            _recommendation_dict(r) for r in recommend(category, interactions, preferences)
        ]

    return JSONResponse(
        content=with_suggestions(jsonld, suggestions), media_type=JSONLD_MEDIA_TYPE
    )


@router.post("/ontologies")
async def upsert_ontology(
    ontology: OntologyUpsert,
    response: Response,
    store: Store = Depends(get_store),
    current_operator: str = Depends(get_current_operator),
):
    """Create or replace a stored ontology version"""
    try:
        row, created = store.upsert_ontology(ontology)
    except StoreError as e:
        _raise_store_error(e, "Ontology upsert")

    response.status_code = status.HTTP_201_CREATED if created else status.HTTP_200_OK
    logger.info(f"[api] Ontology {ontology.domain}@{ontology.version} saved by {current_operator}")
    return {"success": True, "data": row}


@router.get("/ontologies/visual-content")
async def get_visual_content_ontology():
    return JSONResponse(content=visual_content_ontology(), media_type=JSONLD_MEDIA_TYPE)


# Semantic processing


def _string_list(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, str)]


@router.post("/semantic/process")
async def process_semantic(
    body: SemanticProcessRequest,
    request: Request,
    store: Store = Depends(get_store),
    config: AppConfig = Depends(get_config),
):
    """JSON-LD metadata, descriptions and suggestions for image or color input"""
    if not body.inputType or not body.inputData:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="inputType and inputData are required",
        )
    if body.inputType not in SUPPORTED_INPUT_TYPES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unsupported inputType: {body.inputType}. Supported types: image, color",
        )

    visitor_id = require_visitor_id(request, config)
    category: Optional[ColorBlindnessCategory] = None
    try:
        visitor = store.get_visitor(visitor_id)
        if visitor is not None:
            category = visitor.color_blindness
    except StoreUnavailable as e:
        logger.warning(f"[api] Visitor lookup failed for {visitor_id}: {e}")

    data = body.inputData
    suggestions: List[Dict[str, Any]] = []
    if body.inputType == "image":
        fields = data if isinstance(data, dict) else {}
        content = VisualContent(
            type="image",
            source=fields.get("source") or fields.get("url") or "unknown",
            colors=_string_list(fields.get("colors")),
            objects=_string_list(fields.get("objects")),
            metadata=fields.get("metadata") if isinstance(fields.get("metadata"), dict) else {},
        )
        jsonld = visual_content_document(content, category)
        if category and category is not ColorBlindnessCategory.NORMAL:
            suggestions = adaptation_suggestions(category, analyze(content.colors))
    else:
        colors = data if isinstance(data, list) else [data]
        content = VisualContent(type="color", colors=_string_list(colors))
        jsonld = visual_content_document(content, category)

    output_id: Optional[str] = None
    try:
        output_id = store.add_semantic_output(
            visitor_id, body.inputType, data, jsonld, suggestions
        )
    except StoreError as e:
        logger.warning(f"[api] Semantic output not stored for {visitor_id}: {e}")

    return {
        "success": True,
        "data": {
            "id": output_id,
            "inputType": body.inputType,
            "jsonld": jsonld,
            "recommendations": suggestions,
            "colorBlindnessType": category.value if category else None,
        },
    }


@router.get("/semantic/process")
async def list_semantic_outputs(
    request: Request,
    limit: Optional[int] = Query(None, ge=1, le=100),
    store: Store = Depends(get_store),
    config: AppConfig = Depends(get_config),
):
    visitor_id = require_visitor_id(request, config)
    try:
        outputs = store.semantic_outputs(
            visitor_id, limit or config.get("interactions.semantic_outputs", 10)
        )
    except StoreError as e:
        _raise_store_error(e, "Semantic output lookup")
    return {"success": True, "data": outputs}


# Agents


@router.get("/agents/semantic")
async def semantic_agent_info():
    return {
        "success": True,
        "agent": "semantic",
        "description": "Color analysis and textual descriptions adapted to a vision type",
        "endpoints": {
            "POST": {
                "description": "Transform colors or content metadata for a vision type",
                "body": {
                    "colors": "string[] (optional) - hex colors",
                    "metadata": "object (optional) - content metadata with colors, palette or colorHints",
                    "visionType": 'string (optional) - color-blindness category (default: "normal")',
                },
            }
        },
    }


@router.post("/agents/semantic")
async def semantic_agent(body: SemanticAgentRequest):
    """Substitute hard-to-perceive colors and describe the result"""
    if body.colors is None and body.metadata is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail='At least "colors" or "metadata" is required',
        )

    vision = body.visionType or ColorBlindnessCategory.NORMAL.value
    if body.colors is not None:
        result = transform_colors(body.colors, vision)
    else:
        result = transform_metadata(body.metadata, vision)

    return {"success": True, "data": result.to_dict()}


@router.get("/agents/external")
async def external_agent_info(analyzer: ImageAnalyzer = Depends(get_analyzer)):
    return {
        "success": True,
        "agent": "external",
        "description": "Basic image analysis from a URL",
        "configured": analyzer.configured,
        "endpoints": {
            "POST": {
                "description": "Analyze an image URL and return labels and color hints",
                "body": {"url": "string (required) - image URL"},
            }
        },
    }


@router.post("/agents/external")
def external_agent(
    body: ExternalAnalysisRequest,
    analyzer: ImageAnalyzer = Depends(get_analyzer),
):
    """Labels and color hints for an image URL"""
    parsed = urlparse(body.url)
    if not parsed.scheme or not parsed.netloc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="The provided URL is not valid"
        )

    analysis = analyzer.analyze(body.url)
    return {"success": True, "data": {**analysis.to_dict(), "url": body.url}}


# Sessions


@router.post("/sessions", status_code=status.HTTP_201_CREATED)
async def create_session(
    body: SessionCreate,
    request: Request,
    store: Store = Depends(get_store),
    config: AppConfig = Depends(get_config),
):
    try:
        visitor = ensure_visitor(request, config, store, body.userId)
        session = store.create_session(visitor.id, body.metadata)
    except StoreError as e:
        _raise_store_error(e, "Session creation")
    return {"success": True, "data": session}
