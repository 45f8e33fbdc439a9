import logging
from typing import Any, Optional, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from memoriza import config
from memoriza.models import (
    Flashcard,
    FlashcardSet,
    GenerateFlashcardsRequest,
    GenerateFlashcardsResponse,
    GenerateFromSummaryRequest,
    UpstreamFlashcard,
    flashcard_from_upstream,
    to_upstream_request,
    to_upstream_summary_request,
)

logger = logging.getLogger(__name__)

INVALID_RESPONSE_MESSAGE = "Invalid response from flashcard service"

ModelT = TypeVar("ModelT", bound=BaseModel)


class UpstreamError(RuntimeError):
    """The upstream answered with a non-2xx status."""

    def __init__(self, status_code: int, message: str):
        super().__init__(message)
        self.status_code = status_code
        self.message = message


class UpstreamConnectionError(RuntimeError):
    """The upstream could not be reached."""


def _error_message(response: httpx.Response) -> str:
    message = f"Error {response.status_code}: {response.reason_phrase}"
    try:
        body = response.json()
    except ValueError:
        return message
    if isinstance(body, dict) and body.get("error"):
        return str(body["error"])
    return message


async def _request(
    method: str,
    endpoint: str,
    auth_token: str,
    json: Optional[dict] = None,
    params: Optional[dict] = None,
) -> Any:
    """Call the upstream API and return the decoded JSON body."""
    url = f"{config.get_api_base_url()}{endpoint}"
    headers = {"Content-Type": "application/json"}
    if auth_token:
        headers["Authorization"] = f"Bearer {auth_token}"

    logger.debug("Upstream %s %s", method, url)
    try:
        async with httpx.AsyncClient(timeout=config.get_upstream_timeout()) as client:
            response = await client.request(
                method, url, headers=headers, json=json, params=params
            )
    except httpx.RequestError as err:
        logger.error("Upstream request to %s failed: %s", url, err)
        raise UpstreamConnectionError(
            f"Could not reach the flashcard service at {url}: {err}"
        ) from err

    if response.is_error:
        message = _error_message(response)
        logger.error("Upstream %s %s returned %s: %s", method, url, response.status_code, message)
        raise UpstreamError(response.status_code, message)

    if not response.content:
        return None
    try:
        return response.json()
    except ValueError as err:
        raise _invalid_response(url, err) from err


def _invalid_response(where: str, err: Exception) -> UpstreamError:
    logger.error("Invalid response from %s: %s", where, err)
    return UpstreamError(502, INVALID_RESPONSE_MESSAGE)


def _unwrap(payload: Any, key: str) -> Any:
    if isinstance(payload, dict) and key in payload:
        return payload[key]
    return payload


def _parse(model: type[ModelT], data: Any, where: str) -> ModelT:
    try:
        return model.model_validate(data)
    except ValidationError as err:
        raise _invalid_response(where, err) from err


def _parse_list(model: type[ModelT], items: Any, where: str) -> list[ModelT]:
    if items is None:
        return []
    if not isinstance(items, list):
        raise _invalid_response(where, TypeError(f"expected a list, got {type(items).__name__}"))
    return [_parse(model, item, where) for item in items]


async def generate_flashcards(
    request: GenerateFlashcardsRequest, auth_token: str
) -> GenerateFlashcardsResponse:
    body = to_upstream_request(request).model_dump(mode="json", exclude_none=True)
    data = await _request("POST", "/flashcards/generate", auth_token, json=body)
    result = _parse(GenerateFlashcardsResponse, data, "/flashcards/generate")
    logger.info(
        "Generated %d flashcards for topic %r (set %s)",
        len(result.flashcards),
        request.topic,
        result.flashcard_set_id,
    )
    return result


async def generate_from_summary(
    request: GenerateFromSummaryRequest, auth_token: str
) -> GenerateFlashcardsResponse:
    body = to_upstream_summary_request(request).model_dump(mode="json", exclude_none=True)
    endpoint = "/flashcards/generate-from-summary"
    data = await _request("POST", endpoint, auth_token, json=body)
    result = _parse(GenerateFlashcardsResponse, data, endpoint)
    logger.info(
        "Generated %d flashcards from %s content (set %s)",
        len(result.flashcards),
        request.content_type.value,
        result.flashcard_set_id,
    )
    return result


async def get_flashcard_set(set_id: str, auth_token: str) -> FlashcardSet:
    endpoint = f"/flashcardsets/{set_id}"
    data = await _request("GET", endpoint, auth_token)
    return _parse(FlashcardSet, _unwrap(data, "flashcard_set"), endpoint)


async def get_flashcards_by_set_id(set_id: str, auth_token: str) -> list[Flashcard]:
    endpoint = f"/flashcardsets/{set_id}/flashcards"
    data = await _request("GET", endpoint, auth_token)
    cards = _parse_list(UpstreamFlashcard, _unwrap(data, "flashcards"), endpoint)
    return [flashcard_from_upstream(card) for card in cards]


async def get_user_flashcard_sets(user_id: str, auth_token: str) -> list[FlashcardSet]:
    endpoint = f"/users/{user_id}/flashcardsets"
    data = await _request("GET", endpoint, auth_token)
    return _parse_list(FlashcardSet, _unwrap(data, "flashcard_sets"), endpoint)


async def get_user_flashcards_by_topic(
    user_id: str, topic: str, auth_token: str
) -> list[Flashcard]:
    endpoint = f"/users/{user_id}/flashcards-topic"
    data = await _request("GET", endpoint, auth_token, params={"topic": topic})
    cards = _parse_list(UpstreamFlashcard, _unwrap(data, "flashcards"), endpoint)
    return [flashcard_from_upstream(card, topic) for card in cards]
