"""
External Image Analysis
Labels and color hints for an image URL. Delegates to a remote endpoint
when one is configured and falls back to URL keyword heuristics.

Remote contract (ours, not a third-party API): POST {"url": ...} with an
optional Bearer key; the reply is {"labels": [...], "colorHints": [...]}.
"""

import logging
import os
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import requests

logger = logging.getLogger(__name__)

UNLABELED = ["unlabeled"]
UNKNOWN_HINTS = ["#999999"]

# (keywords, labels, color hints)
_KEYWORD_RULES = [
    (("landscape", "nature"), ["landscape", "nature", "outdoor"], ["#228B22", "#87CEEB", "#8B4513"]),
    (("portrait", "person"), ["portrait", "person", "human"], ["#FFDBB3", "#8B4513", "#000000"]),
    (("food", "meal"), ["food", "meal", "cooking"], ["#FF6347", "#FFD700", "#8B4513"]),
    (("animal", "pet"), ["animal", "pet", "wildlife"], ["#8B4513", "#654321", "#000000"]),
]
_GENERIC = (["image", "photo", "visual-content"], ["#808080", "#CCCCCC", "#666666"])


@dataclass
class ImageAnalysis:
    labels: List[str] = field(default_factory=lambda: list(UNLABELED))
    color_hints: List[str] = field(default_factory=lambda: list(UNKNOWN_HINTS))

    def to_dict(self) -> Dict[str, Any]:
        return {"labels": self.labels, "colorHints": self.color_hints}


def _should_retry(status: int) -> bool:
    return status >= 500 or status == 429


def keyword_analysis(url: str) -> ImageAnalysis:
    lowered = url.lower()
    for keywords, labels, hints in _KEYWORD_RULES:
        if any(k in lowered for k in keywords):
            return ImageAnalysis(labels=list(labels), color_hints=list(hints))
    return ImageAnalysis(labels=list(_GENERIC[0]), color_hints=list(_GENERIC[1]))


class ImageAnalyzer:
    """Analyzes images by URL"""

    def __init__(
        self,
        api_url: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout: float = 10.0,
        retries: int = 1,
        backoff_sec: float = 0.5,
        session: Optional[requests.Session] = None,
    ):
        self.api_url = api_url
        self.api_key = api_key
        self.timeout = timeout
        self.retries = retries
        self.backoff_sec = backoff_sec
        self.session = session or requests.Session()

    @classmethod
    def from_config(cls, config) -> "ImageAnalyzer":
        key_env = config.get("analyzer.api_key_env") or "HUGGINGFACE_API_KEY"
        return cls(
            api_url=config.get("analyzer.api_url") or os.getenv("EXTERNAL_ANALYZER_API_URL"),
            api_key=os.getenv(key_env),
            timeout=float(config.get("analyzer.timeout_sec", 10)),
        )

    @property
    def configured(self) -> bool:
        return bool(self.api_url or self.api_key)

    def _remote(self, url: str) -> ImageAnalysis:
        headers = {"Authorization": f"Bearer {self.api_key}"} if self.api_key else {}
        last_exc: Optional[Exception] = None
        for attempt in range(self.retries + 1):
            try:
                resp = self.session.post(
                    self.api_url, json={"url": url}, headers=headers, timeout=self.timeout
                )
                if _should_retry(resp.status_code) and attempt < self.retries:
                    time.sleep(self.backoff_sec * (2**attempt))
                    continue
                resp.raise_for_status()
                data = resp.json() if resp.content else {}
                if not isinstance(data, dict):
                    data = {}
                labels = [str(x) for x in data.get("labels") or []]
                hints = [str(x) for x in data.get("colorHints") or []]
                return ImageAnalysis(
                    labels=labels or list(UNLABELED),
                    color_hints=hints or list(UNKNOWN_HINTS),
                )
            except requests.RequestException as e:
                last_exc = e
                if attempt < self.retries:
                    time.sleep(self.backoff_sec * (2**attempt))
        raise last_exc  # type: ignore[misc]

    def analyze(self, url: str) -> ImageAnalysis:
        if not self.configured:
            return ImageAnalysis()

        if self.api_url:
            try:
                return self._remote(url)
            except (requests.RequestException, ValueError) as e:
                logger.warning(f"[analyzer] Remote analysis failed for {url}: {e}, using keywords")

        return keyword_analysis(url)

    def analyze_many(self, urls: List[str]) -> List[ImageAnalysis]:
        return [self.analyze(u) for u in urls]

    def dominant_colors(self, url: str) -> List[str]:
        return self.analyze(url).color_hints
