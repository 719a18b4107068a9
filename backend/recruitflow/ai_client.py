import logging
from typing import Optional, Union

import httpx
from pydantic import BaseModel, ConfigDict, ValidationError

from recruitflow import config
from recruitflow.errors import AIParseError
from recruitflow.models import ParsedResumeData

logger = logging.getLogger(__name__)


class AIParseSuccess(BaseModel):
    model_config = ConfigDict(frozen=True)

    data: ParsedResumeData
    model: str


class AIParseFailure(BaseModel):
    model_config = ConfigDict(frozen=True)

    error: str


AIParseResult = Union[AIParseSuccess, AIParseFailure]


def _read_parse_response(resp: httpx.Response) -> ParsedResumeData:
    """Validate the AI backend's `{success, data}` envelope."""
    try:
        body = resp.json()
    except ValueError as e:
        raise AIParseError(f"AI service returned invalid JSON: {e}") from e

    if not isinstance(body, dict):
        raise AIParseError("AI service returned an unexpected payload")
    if not body.get("success"):
        raise AIParseError(body.get("error") or "AI parsing failed")

    data = body.get("data")
    if not isinstance(data, dict):
        raise AIParseError("AI service response has no data object")
    try:
        return ParsedResumeData.model_validate(data)
    except ValidationError as e:
        raise AIParseError(f"AI service data failed validation: {e.error_count()} error(s)") from e


async def request_ai_parse(
    text: str,
    model: Optional[str] = None,
    client: Optional[httpx.AsyncClient] = None,
) -> AIParseResult:
    """Ask the AI backend to parse resume text.

    Never raises: every network, HTTP or payload problem is reported as an
    AIParseFailure so the caller can fall back to local extraction.
    """
    model = model or config.AI_MODEL
    if not config.AI_PARSE_ENDPOINT:
        return AIParseFailure(error="AI parse endpoint not configured")

    payload = {"fileContent": text, "model": model}
    headers = {"Content-Type": "application/json"}
    try:
        if client is None:
            async with httpx.AsyncClient(timeout=config.AI_TIMEOUT_SECONDS) as own_client:
                resp = await own_client.post(config.AI_PARSE_ENDPOINT, headers=headers, json=payload)
        else:
            resp = await client.post(config.AI_PARSE_ENDPOINT, headers=headers, json=payload)
        resp.raise_for_status()
        data = _read_parse_response(resp)
    except httpx.HTTPStatusError as e:
        return AIParseFailure(error=f"AI service responded with HTTP {e.response.status_code}")
    except httpx.HTTPError as e:
        return AIParseFailure(error=f"AI service request failed: {e.__class__.__name__}: {e}")
    except AIParseError as e:
        return AIParseFailure(error=str(e))

    logger.info("AI parse succeeded with model %s (confidence %.2f)", model, data.confidence)
    return AIParseSuccess(data=data, model=model)
