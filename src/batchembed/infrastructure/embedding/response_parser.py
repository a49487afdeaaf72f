"""Response parsing logic for embedding API."""

import json
import logging
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from .models import (
    ApiError,
    EmbeddingsParsed,
    IndexedEmbedding,
    ParseFailure,
    ParseOutcome,
)

logger = logging.getLogger(__name__)

SCHEMA_MISMATCH_REASON = "response matches neither error nor data schema"


class _ErrorBody(BaseModel):
    """Shape of the ``error`` field."""

    model_config = ConfigDict(strict=True)

    message: str
    type: str


class _EmbeddingItem(BaseModel):
    """Shape of one entry in the ``data`` field.

    Strict: no string-to-number or bool-to-number coercion. JSON integers
    are still accepted as floats.
    """

    model_config = ConfigDict(strict=True)

    index: int = Field(ge=0)
    embedding: list[float]


_DATA_ADAPTER = TypeAdapter(list[_EmbeddingItem])


def _read_error(payload: dict[str, Any]) -> Optional[ApiError]:
    if "error" not in payload:
        return None
    try:
        body = _ErrorBody.model_validate(payload["error"])
    except ValidationError as e:
        logger.debug(f"'error' field present but malformed: {e}")
        return None
    return ApiError(message=body.message, type=body.type)


def _read_data(payload: dict[str, Any]) -> Optional[list[IndexedEmbedding]]:
    if "data" not in payload:
        return None
    try:
        items = _DATA_ADAPTER.validate_python(payload["data"])
    except ValidationError as e:
        logger.debug(f"'data' field present but malformed: {e}")
        return None
    return [IndexedEmbedding(index=item.index, vector=item.embedding) for item in items]


def parse_embedding_response(raw_body: str) -> ParseOutcome:
    """
    Classify a raw response body.

    The error shape is checked before the data shape, so a body carrying
    both a valid ``error`` and a valid ``data`` field is an error.

    Args:
        raw_body: Response body text as returned by the transport

    Returns:
        ApiError if the body holds a well-formed ``error`` object,
        EmbeddingsParsed if it holds a well-formed ``data`` list,
        ParseFailure otherwise (``invalid_json`` tells the two failure
        causes apart)
    """
    try:
        payload = json.loads(raw_body)
    except (json.JSONDecodeError, TypeError) as e:
        return ParseFailure(reason=f"invalid JSON: {e}", raw=raw_body, invalid_json=True)

    if not isinstance(payload, dict):
        return ParseFailure(reason=SCHEMA_MISMATCH_REASON, raw=raw_body)

    error = _read_error(payload)
    if error is not None:
        return error

    embeddings = _read_data(payload)
    if embeddings is not None:
        return EmbeddingsParsed(embeddings=embeddings)

    return ParseFailure(reason=SCHEMA_MISMATCH_REASON, raw=raw_body)
