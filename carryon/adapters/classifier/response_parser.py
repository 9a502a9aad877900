"""
Classifier Response Parser

Turns the raw text returned by a vision/text language model into an
Extraction. The model is asked for facts only; anything verdict-like it
returns anyway is discarded here.

Parsing is deterministic and never raises: unusable content becomes an
unidentified Extraction carrying an error message.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Optional

from carryon.core.catalog import DEFAULT_CATALOG, CategoryCatalog
from carryon.core.entities import Extraction

logger = logging.getLogger(__name__)

PARSE_ERROR = "Could not parse classifier response."

_FENCE_PATTERN = re.compile(r"```(?:json)?\s*", re.IGNORECASE)
_OBJECT_PATTERN = re.compile(r"\{.*\}", re.DOTALL)


def parse_classifier_response(content: Optional[str]) -> Extraction:
    """
    Parses classifier output into an Extraction.

    Markdown code fences are stripped and the outermost JSON object is
    decoded.

    Args:
        content: Raw model output

    Returns:
        Extraction (``identified`` False with ``error`` set on failure)
    """
    if not content or not content.strip():
        return Extraction(error=PARSE_ERROR)

    cleaned = _FENCE_PATTERN.sub("", content).strip()
    match = _OBJECT_PATTERN.search(cleaned)
    if match is None:
        logger.warning("Classifier response contains no JSON object")
        return Extraction(error=PARSE_ERROR)

    try:
        payload: Any = json.loads(match.group(0))
    except json.JSONDecodeError as e:
        logger.warning(f"Classifier response is not valid JSON: {e}")
        return Extraction(error=PARSE_ERROR)

    if not isinstance(payload, dict):
        return Extraction(error=PARSE_ERROR)

    if "verdict" in payload:
        logger.info("Discarding verdict supplied by classifier")

    return Extraction.from_dict(payload)


def build_classifier_prompt(catalog: Optional[CategoryCatalog] = None) -> str:
    """
    Builds the system prompt for an external classifier.

    The prompt lists the categories and asks for facts only. It
    deliberately contains no baggage rules.
    """
    catalog = catalog or DEFAULT_CATALOG
    lines = [
        "You identify items that travellers want to take on a flight and read "
        "technical data from their labels.",
        "",
        "CATEGORIES:",
    ]
    for category in catalog.list_categories():
        keywords = ", ".join(category.keywords)
        lines.append(f'- ID: "{category.id}" | Name: "{category.name}" | Keywords: {keywords}')

    lines.extend([
        "",
        "Read every visible value (mAh, Wh, V, ml, cm). Do not judge whether the "
        "item is allowed; report facts only.",
        "",
        "Respond ONLY with valid JSON (no markdown):",
        "{",
        '  "identified": true,',
        '  "itemName": "Descriptive name of the item",',
        '  "categoryId": "one of the category IDs above",',
        '  "confidence": "high" | "medium" | "low",',
        '  "detectedFacts": {',
        '    "capacity_mAh": number or null,',
        '    "voltage_V": number or null,',
        '    "energy_Wh": number or null,',
        '    "volume_ml": number or null,',
        '    "blade_length_cm": number or null',
        "  },",
        '  "missingCriticalData": true if a value needed for this category is unreadable,',
        '  "summary": "Short description of what you detected"',
        "}",
        "",
        'If you cannot identify the item: {"identified": false, "summary": "why not"}',
    ])
    return "\n".join(lines)
