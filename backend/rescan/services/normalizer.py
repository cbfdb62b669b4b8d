"""
Normalization of raw vision responses into MaterialClassification.

The vision model is asked for JSON but is not guaranteed to comply: replies
arrive as clean JSON, JSON inside markdown fences, JSON surrounded by prose,
"key: value" text, or nothing useful at all. Parsing is two-staged and tagged:

1. StructuredParse: a JSON object validated against VisionPayload
2. FallbackParse: regex extraction of individual fields from free text
3. ParseFailed: no field could be recovered

A single normalize step turns any of these into a MaterialClassification.
Nothing in this module raises on malformed model output.
"""

import json
import logging
import math
import re
from dataclasses import dataclass
from typing import Any, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError

from ..config import Config
from ..models import MaterialClassification, MaterialType, ParseMethod

logger = logging.getLogger(__name__)


# Checked in order; first hit wins. Cardboard precedes paper and aluminum
# precedes metal so the more specific material is chosen. Synonyms match at
# a word start, so "plastics" counts but "environment" is not "iron".
_MATERIAL_SYNONYMS: list[tuple[MaterialType, re.Pattern]] = [
    (MaterialType.PLASTIC, re.compile(
        r"\b(?:plastic|polymer|polyethylene|polypropylene|polystyrene|polyvinyl|styrofoam|resin)"
    )),
    (MaterialType.CARDBOARD, re.compile(r"\b(?:cardboard|corrugated|paperboard|carton|boxboard)")),
    (MaterialType.PAPER, re.compile(r"\b(?:paper|newspaper|newsprint|magazine)")),
    (MaterialType.GLASS, re.compile(r"\bglass")),
    (MaterialType.ALUMINUM, re.compile(r"\b(?:aluminum|aluminium)")),
    (MaterialType.METAL, re.compile(r"\b(?:metal|steel|tin|tinplate|iron|copper|brass)\b")),
]

# Short resin abbreviations only count as whole words
_PLASTIC_ABBREVIATIONS = re.compile(r"\b(?:pete?|hdpe|ldpe|pvc|pp|ps)\b")

_MATERIAL_RE = re.compile(r"\b(?:material(?:_type)?|type)[\"']?\s*[:=]\s*[\"']?([^,\n\"'}]+)", re.IGNORECASE)
_RIC_RE = re.compile(r"\b(?:ric(?:_code)?|code|number)[\"']?\s*[:=]\s*[\"']?#?\s*(\d{1,3})\b", re.IGNORECASE)
_CONFIDENCE_RE = re.compile(
    r"\b(?:confidence|certainty)[\"']?\s*[:=]\s*[\"']?(\d{1,5}(?:\.\d{1,6})?)\b", re.IGNORECASE
)
_RECYCLABLE_RE = re.compile(
    r"\brecyclable[\"']?\s*[:=]\s*[\"']?(yes|no|true|false)\b", re.IGNORECASE
)
_DESCRIPTION_RE = re.compile(r"\bdescription[\"']?\s*[:=]\s*[\"']?([^\n\"}]+)", re.IGNORECASE)


class VisionPayload(BaseModel):
    """Schema the vision model is asked to return."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    material_type: Optional[str] = Field(
        None, validation_alias=AliasChoices("material_type", "material", "type")
    )
    ric_code: Optional[int] = Field(None, validation_alias=AliasChoices("ric_code", "ric"))
    confidence: Optional[float] = None
    recyclable: Optional[bool] = None
    description: Optional[str] = None


@dataclass(frozen=True)
class ExtractedFields:
    """Raw field values recovered from a response, before normalization."""
    material: Optional[str] = None
    ric_code: Optional[Any] = None
    confidence: Optional[float] = None
    recyclable: Optional[bool] = None
    description: Optional[str] = None

    def is_empty(self) -> bool:
        return all(
            value is None
            for value in (self.material, self.ric_code, self.confidence, self.recyclable)
        )


@dataclass(frozen=True)
class StructuredParse:
    fields: ExtractedFields


@dataclass(frozen=True)
class FallbackParse:
    fields: ExtractedFields


@dataclass(frozen=True)
class ParseFailed:
    reason: str


ParseResult = Union[StructuredParse, FallbackParse, ParseFailed]


def _strip_code_fence(text: str) -> str:
    """Remove a surrounding ```json ... ``` block if present."""
    text = text.strip()
    if text.startswith("```"):
        lines = text.split("\n")
        lines = lines[1:]
        if lines and lines[-1].strip().startswith("```"):
            lines = lines[:-1]
        text = "\n".join(lines).strip()
    return text


def _find_json_object(text: str) -> Optional[dict]:
    """Decode the response as a JSON object, or the first {...} block inside it."""
    text = _strip_code_fence(text)
    try:
        data = json.loads(text)
        return data if isinstance(data, dict) else None
    except ValueError:
        # JSONDecodeError, or an integer literal past the int conversion limit
        pass

    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end <= start:
        return None
    try:
        data = json.loads(text[start:end + 1])
    except ValueError:
        return None
    return data if isinstance(data, dict) else None


def parse_structured(raw_text: str) -> Optional[StructuredParse]:
    """Strict decode against VisionPayload. None when the response doesn't conform."""
    data = _find_json_object(raw_text)
    if data is None:
        return None
    try:
        payload = VisionPayload.model_validate(data)
    except ValidationError as e:
        logger.debug(f"Vision JSON failed schema validation: {e.error_count()} errors")
        return None
    return StructuredParse(ExtractedFields(
        material=payload.material_type,
        ric_code=payload.ric_code,
        confidence=payload.confidence,
        recyclable=payload.recyclable,
        description=payload.description,
    ))


def parse_free_text(raw_text: str) -> Union[FallbackParse, ParseFailed]:
    """Best-effort field extraction from prose or malformed JSON."""
    material_match = _MATERIAL_RE.search(raw_text)
    ric_match = _RIC_RE.search(raw_text)
    confidence_match = _CONFIDENCE_RE.search(raw_text)
    recyclable_match = _RECYCLABLE_RE.search(raw_text)
    description_match = _DESCRIPTION_RE.search(raw_text)

    confidence = None
    if confidence_match:
        confidence = float(confidence_match.group(1))

    fields = ExtractedFields(
        material=material_match.group(1).strip() if material_match else None,
        ric_code=int(ric_match.group(1)) if ric_match else None,
        confidence=confidence,
        recyclable=(
            recyclable_match.group(1).lower() in ("yes", "true") if recyclable_match else None
        ),
        description=description_match.group(1).strip() if description_match else None,
    )
    if fields.is_empty():
        return ParseFailed("No recognizable fields in response")
    return FallbackParse(fields)


def parse_response(raw_text: Optional[str]) -> ParseResult:
    """Run the strict stage, then the fallback stage."""
    if not raw_text or not raw_text.strip():
        return ParseFailed("Empty response")
    structured = parse_structured(raw_text)
    if structured is not None:
        return structured
    return parse_free_text(raw_text)


def normalize_material(value: Optional[str]) -> MaterialType:
    """Map free-form material text onto the canonical vocabulary."""
    if not value:
        return MaterialType.UNKNOWN

    text = value.strip().lower()
    if text in {m.value for m in MaterialType}:
        return MaterialType(text)

    for material, pattern in _MATERIAL_SYNONYMS:
        if pattern.search(text):
            return material
    if _PLASTIC_ABBREVIATIONS.search(text):
        return MaterialType.PLASTIC
    return MaterialType.UNKNOWN


def normalize_confidence(value: Optional[float]) -> int:
    """Clamp to 0-100 as an integer. Ratios in (0, 1) are scaled to percent."""
    if value is None:
        return Config.DEFAULT_CONFIDENCE
    try:
        number = float(value)
    except (TypeError, ValueError):
        return Config.DEFAULT_CONFIDENCE
    if math.isnan(number):
        return Config.DEFAULT_CONFIDENCE
    if 0 < number < 1:
        number *= 100
    number = max(0.0, min(100.0, number))
    return int(math.floor(number + 0.5))


def normalize_ric_code(value: Any) -> Optional[int]:
    """Keep only integer codes 1-7."""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not number.is_integer():
        return None
    code = int(number)
    return code if 1 <= code <= 7 else None


class ResponseNormalizer:
    """
    Turns an untrusted vision response into a MaterialClassification.

    Deterministic: identical raw text always yields an identical result.
    """

    def __init__(
        self,
        default_confidence: int = Config.DEFAULT_CONFIDENCE,
        uncertain_threshold: int = Config.UNCERTAIN_CONFIDENCE_THRESHOLD,
    ):
        self.default_confidence = default_confidence
        self.uncertain_threshold = uncertain_threshold

    def normalize(self, raw_text: Optional[str]) -> MaterialClassification:
        """Parse and normalize a raw response. Never raises for malformed input."""
        result = parse_response(raw_text)

        if isinstance(result, ParseFailed):
            logger.info(f"Vision response not parsable: {result.reason}")
            fields = ExtractedFields()
            method = ParseMethod.FAILED
        elif isinstance(result, FallbackParse):
            fields = result.fields
            method = ParseMethod.FALLBACK
        else:
            fields = result.fields
            method = ParseMethod.STRUCTURED

        return self._classify(fields, method)

    def _classify(self, fields: ExtractedFields, method: ParseMethod) -> MaterialClassification:
        material = normalize_material(fields.material)
        confidence = (
            normalize_confidence(fields.confidence)
            if fields.confidence is not None
            else self.default_confidence
        )
        ric_code = normalize_ric_code(fields.ric_code)
        recyclable = fields.recyclable if fields.recyclable is not None else material != MaterialType.UNKNOWN
        uncertain = confidence < self.uncertain_threshold or material == MaterialType.UNKNOWN

        description = fields.description.strip() if fields.description else None
        if description:
            description = description[:Config.MAX_DESCRIPTION_LENGTH]

        classification = MaterialClassification(
            material_type=material,
            ric_code=ric_code,
            confidence=confidence,
            recyclable=recyclable,
            uncertain=uncertain,
            description=description or None,
            parse_method=method,
        )
        logger.debug(f"Normalized ({method.value}): {classification}")
        return classification
