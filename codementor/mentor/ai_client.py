"""
CodeMentor - Inference API Client
Async client for the Together inference endpoint with bounded retries.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, Optional

import httpx

from codementor.config import (
    MENTOR_API_URL, MENTOR_API_KEY, MENTOR_MODEL,
    MENTOR_TIMEOUT_SECONDS, MENTOR_MAX_RETRIES, MENTOR_RETRY_DELAY_SECONDS
)

logger = logging.getLogger(__name__)

RETRYABLE_SERVER_ERRORS = (500, 503)


# ============================================
# ERRORS
# ============================================

class MentorServiceError(Exception):
    """
    Failure talking to the inference service.
    `reason` says why and `http_status` is what the API reports to its caller.
    """

    HTTP_STATUS = {
        "invalid_request": 400,
        "auth": 502,
        "quota": 503,
        "rate_limited": 429,
        "unavailable": 503,
        "timeout": 504,
        "bad_response": 502,
        "connection": 503,
    }

    def __init__(self, message: str, reason: str, upstream_status: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.reason = reason
        self.upstream_status = upstream_status

    @property
    def http_status(self) -> int:
        return self.HTTP_STATUS.get(self.reason, 502)


def error_for_status(status: int) -> MentorServiceError:
    if status == 400:
        return MentorServiceError(
            "The request was invalid. This might be due to an issue with your input or the API configuration.",
            "invalid_request", status)
    if status == 401:
        return MentorServiceError(
            "Authentication failed. Please check your API key configuration.", "auth", status)
    if status == 402:
        return MentorServiceError(
            "API quota exceeded. Please check your API usage limits.", "quota", status)
    if status == 429:
        return MentorServiceError(
            "You've sent too many requests in a short period. Please try again in a few moments.",
            "rate_limited", status)
    if status >= 500:
        return MentorServiceError(
            "The AI service is currently experiencing issues. Please try again later.",
            "unavailable", status)
    return MentorServiceError(f"Failed to generate a response: HTTP {status}", "bad_response", status)


def extract_text(data: Dict[str, Any]) -> str:
    """Pull the generated text out of the response shapes the endpoint returns"""
    output = data.get("output") or {}
    if isinstance(output, dict):
        if output.get("choices"):
            return output["choices"][0].get("text", "")
        if "text" in output:
            return output["text"]
    if data.get("choices"):
        return data["choices"][0].get("text", "")
    if "text" in data:
        return data["text"]
    raise MentorServiceError("Unexpected API response format", "bad_response")


# ============================================
# CLIENT
# ============================================

class MentorClient:
    """
    Sends prompts to the inference endpoint.

    Retries up to `max_retries` times: rate limits back off exponentially,
    500/503 back off linearly and timeouts wait half a step longer each time.
    Other failures are raised immediately as `MentorServiceError`.
    """

    def __init__(
        self,
        api_url: Optional[str] = None,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        timeout: Optional[float] = None,
        max_retries: Optional[int] = None,
        retry_delay: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep
    ):
        self.api_url = api_url or MENTOR_API_URL
        self.api_key = api_key if api_key is not None else MENTOR_API_KEY
        self.model = model or MENTOR_MODEL
        self.timeout = timeout or MENTOR_TIMEOUT_SECONDS
        self.max_retries = MENTOR_MAX_RETRIES if max_retries is None else max_retries
        self.retry_delay = MENTOR_RETRY_DELAY_SECONDS if retry_delay is None else retry_delay
        self._transport = transport
        self._sleep = sleep

    def build_payload(self, prompt: str) -> dict:
        return {
            "model": self.model,
            "prompt": prompt,
            "max_tokens": 600,
            "temperature": 0.7,
            "top_p": 0.9,
            "top_k": 50,
            "repetition_penalty": 1.1,
            "stop": ["</s>", "Human:", "Assistant:", "\n\n\n"]
        }

    def retry_wait(self, status: int, attempt: int) -> Optional[float]:
        """Seconds to wait before retrying after `status`, None if it is not retryable"""
        if status == 429:
            return self.retry_delay * (2 ** attempt)
        if status in RETRYABLE_SERVER_ERRORS:
            return self.retry_delay * (attempt + 1)
        return None

    async def complete(self, prompt: str) -> str:
        logger.info(f"Sending prompt with {len(prompt)} characters to {self.model}")
        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            response = await self._post_with_retries(client, prompt)

        try:
            data = response.json()
        except ValueError as e:
            raise MentorServiceError("Unexpected API response format", "bad_response") from e
        return extract_text(data)

    async def _post_with_retries(self, client: httpx.AsyncClient, prompt: str) -> httpx.Response:
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json"
        }
        payload = self.build_payload(prompt)

        for attempt in range(self.max_retries + 1):
            try:
                response = await client.post(self.api_url, json=payload, headers=headers)
            except httpx.TimeoutException as e:
                if attempt < self.max_retries:
                    wait = self.retry_delay * (attempt + 0.5)
                    logger.warning(f"Request timeout, retrying ({attempt + 1}/{self.max_retries}) in {wait}s")
                    await self._sleep(wait)
                    continue
                raise MentorServiceError(
                    "The request timed out. This might be due to high server load or connectivity issues.",
                    "timeout") from e
            except httpx.HTTPError as e:
                logger.error(f"Inference request failed: {e}")
                raise MentorServiceError(f"Failed to generate a response: {e}", "connection") from e

            if response.status_code < 400:
                return response

            wait = self.retry_wait(response.status_code, attempt)
            if wait is not None and attempt < self.max_retries:
                logger.warning(
                    f"Inference API returned {response.status_code}, "
                    f"retrying ({attempt + 1}/{self.max_retries}) in {wait}s"
                )
                await self._sleep(wait)
                continue

            logger.error(f"Inference API error {response.status_code}: {response.text[:500]}")
            raise error_for_status(response.status_code)

        # Loop always returns or raises
        raise MentorServiceError("The AI service is currently experiencing issues.", "unavailable")
