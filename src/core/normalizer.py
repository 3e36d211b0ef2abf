"""Schema-tolerant mapping of upstream payloads into text and entities.

The upstream response is treated as an untrusted document: every field may be
missing or of an unexpected type. Lookups go through ordered fallback chains
where the first present value wins. Neither public function raises.
"""

from typing import Any, Iterable, List, Mapping, Optional

from loguru import logger

from domain.models import Entity

NO_TEXT = "No text extracted"
TEXT_ERROR = "Error extracting text"

_EMPTY: Mapping[str, Any] = {}


def _is_present(value: Any) -> bool:
    if value is None or value is False or value == "":
        return False
    if isinstance(value, (int, float)) and value == 0:
        return False
    return True


def _first(source: Any, keys: Iterable[str], default: Any = None) -> Any:
    if not isinstance(source, Mapping):
        return default
    for key in keys:
        value = source.get(key)
        if _is_present(value):
            return value
    return default


def _as_mapping(value: Any) -> Mapping[str, Any]:
    return value if isinstance(value, Mapping) else _EMPTY


def _as_list(value: Any) -> Optional[list]:
    return value if isinstance(value, (list, tuple)) else None


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


def _as_confidence(value: Any) -> float:
    if isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return 0.0
    return 0.0


def first_prediction(payload: Any) -> Optional[Mapping[str, Any]]:
    """Element 0 of ``predictions`` or None when there is no usable list."""
    predictions = _as_list(_as_mapping(payload).get("predictions"))
    if not predictions:
        return None
    return _as_mapping(predictions[0])


def _segment_text(segment: Any) -> str:
    if isinstance(segment, Mapping):
        return _as_text(_first(segment, ("text",), ""))
    return _as_text(segment)


def _prediction_text(prediction: Mapping[str, Any]) -> Optional[str]:
    direct = _first(prediction, ("extracted_text", "ocr_text", "text"))
    if direct is not None:
        return _as_text(direct)

    segments = _as_list(prediction.get("text_segments"))
    if segments is not None:
        return " ".join(_segment_text(s) for s in segments)

    regions = _as_list(prediction.get("regions"))
    if regions is not None:
        return " ".join(_as_text(_first(r, ("text", "value"), "")) for r in regions)

    return None


def extract_text(payload: Any) -> str:
    try:
        prediction = first_prediction(payload)
        if prediction is not None:
            text = _prediction_text(prediction)
            if text is not None:
                return text

        fallback = _first(payload, ("text", "ocr_result"))
        if fallback is not None:
            return _as_text(fallback)
        return NO_TEXT
    except Exception as e:
        logger.error(f"Error extracting text: {e}")
        return TEXT_ERROR


def _entities_from_items(items: list) -> List[Entity]:
    return [
        Entity(
            type=_as_text(_first(item, ("type", "label", "class"), "Unknown")),
            value=_as_text(_first(item, ("value", "text", "content"), "")),
            confidence=_as_confidence(_first(item, ("confidence", "score", "probability"), 0)),
        )
        for item in items
    ]


def _entities_from_pairs(pairs: list) -> List[Entity]:
    return [
        Entity(
            type=_as_text(_first(pair, ("key",), "Key-Value")),
            value=_as_text(_first(pair, ("value",), "")),
            confidence=_as_confidence(_first(pair, ("confidence",), 0)),
        )
        for pair in pairs
    ]


def _row_count(table: Any) -> int:
    table = _as_mapping(table)
    for key in ("rows", "data"):
        rows = _as_list(table.get(key))
        if rows:
            return len(rows)
    return 0


def _entities_from_tables(tables: list) -> List[Entity]:
    return [
        Entity(
            type="Table",
            value=f"Table {index} ({_row_count(table)} rows)",
            confidence=_as_confidence(_first(table, ("confidence",), 0)),
        )
        for index, table in enumerate(tables, start=1)
    ]


def _entities_from_boxes(boxes: list) -> List[Entity]:
    return [
        Entity(
            type=_as_text(_first(box, ("label", "class"), "Detection")),
            value=_as_text(_first(box, ("text", "value"), f"Detection {index}")),
            confidence=_as_confidence(_first(box, ("confidence", "score"), 0)),
        )
        for index, box in enumerate(boxes, start=1)
    ]


# Order matters: categories are emitted in this sequence
_ENTITY_SOURCES = (
    ("entities", _entities_from_items),
    ("key_value_pairs", _entities_from_pairs),
    ("tables", _entities_from_tables),
    ("bounding_boxes", _entities_from_boxes),
)


def extract_entities(payload: Any) -> List[Entity]:
    try:
        prediction = first_prediction(payload)
        if prediction is None:
            return []

        entities: List[Entity] = []
        for key, builder in _ENTITY_SOURCES:
            items = _as_list(prediction.get(key))
            if items is not None:
                entities.extend(builder(items))
        return entities
    except Exception as e:
        logger.error(f"Error extracting entities: {e}")
        return []
