"""Extract an enrichment record from free-form model output."""

import json
import logging
import re

from pydantic import ValidationError

from enricher.errors import FormatError
from enricher.models import EnrichmentRecord

logger = logging.getLogger(__name__)

# Greedy: first "{" through last "}". Stray braces in surrounding prose are
# not guarded against.
JSON_SPAN = re.compile(r"\{[\s\S]*\}")


def find_json_span(raw_text: str) -> str:
    """Return the largest brace-delimited span of the text."""
    match = JSON_SPAN.search(raw_text.strip())
    if not match:
        raise FormatError("Invalid response format from AI: no JSON object found.")
    return match.group(0)


def extract_record(raw_text: str) -> EnrichmentRecord:
    """Decode the JSON object embedded in the model's answer."""
    span = find_json_span(raw_text)

    try:
        payload = json.loads(span)
    except json.JSONDecodeError as e:
        logger.debug(f"JSON decode failed at position {e.pos}: {e.msg}")
        raise FormatError(
            "Failed to parse AI response. The format was not valid JSON."
        ) from e

    try:
        return EnrichmentRecord.model_validate(payload)
    except ValidationError as e:
        raise FormatError(
            f"AI response does not match the expected structure: {e.error_count()} invalid field(s)"
        ) from e
