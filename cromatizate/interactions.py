from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from .models import InteractionEvent, InteractionKind

DEFAULT_FACTOR = 1.0

EventLike = Union[InteractionEvent, Mapping[str, Any]]


@dataclass(frozen=True)
class InteractionSummary:
    preferred_contrast: float = DEFAULT_FACTOR
    preferred_saturation: float = DEFAULT_FACTOR
    preferred_palette: List[str] = field(default_factory=list)
    contrast_samples: int = 0
    saturation_samples: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "preferredContrast": self.preferred_contrast,
            "preferredSaturation": self.preferred_saturation,
            "preferredPalette": list(self.preferred_palette),
        }


def _kind_and_payload(event: EventLike):
    if isinstance(event, InteractionEvent):
        return event.kind, event.payload
    if isinstance(event, Mapping):
        return event.get("kind", event.get("type")), event.get("payload")
    return None, None


def _payload_value(payload: Any) -> float:
    value: Optional[Any] = payload.get("value") if isinstance(payload, Mapping) else None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return DEFAULT_FACTOR
    return float(value)


def _mean(values: List[float]) -> float:
    if not values:
        return DEFAULT_FACTOR
    return sum(values) / len(values)


def aggregate(events: Iterable[EventLike]) -> InteractionSummary:
    """Reduce interaction events to averaged factors and a deduplicated palette.

    Events are expected most-recent-first; order only affects which duplicate
    palette entry is kept. Unknown kinds are ignored.
    """
    contrast: List[float] = []
    saturation: List[float] = []
    palette: List[str] = []

    for event in events or ():
        kind, payload = _kind_and_payload(event)
        if kind == InteractionKind.CONTRAST_ADJUSTMENT.value:
            contrast.append(_payload_value(payload))
        elif kind == InteractionKind.SATURATION_ADJUSTMENT.value:
            saturation.append(_payload_value(payload))
        elif kind == InteractionKind.PALETTE_SELECTION.value:
            colors = payload.get("palette") if isinstance(payload, Mapping) else None
            if isinstance(colors, (list, tuple)):
                palette.extend(str(c) for c in colors)

    return InteractionSummary(
        preferred_contrast=_mean(contrast),
        preferred_saturation=_mean(saturation),
        preferred_palette=list(dict.fromkeys(palette)),
        contrast_samples=len(contrast),
        saturation_samples=len(saturation),
    )
