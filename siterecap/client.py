"""Anthropic API client abstraction."""
import asyncio
import base64
import json
import logging
from typing import Protocol

from anthropic import AsyncAnthropic

try:
    from .errors import ConfigurationError, ModelResponseError
except ImportError:
    from errors import ConfigurationError, ModelResponseError

logger = logging.getLogger(__name__)

_SIGNATURES = [
    (b"\xff\xd8\xff", "image/jpeg"),
    (b"\x89PNG\r\n\x1a\n", "image/png"),
    (b"GIF87a", "image/gif"),
    (b"GIF89a", "image/gif"),
]


class ModelClient(Protocol):
    """Anything that can turn a prompt (and optionally one image) into text."""
    model: str

    async def call(
        self,
        prompt: str,
        *,
        image: bytes | None = None,
        max_tokens: int = 1024,
        timeout: float = 60.0,
    ) -> str:
        ...


def detect_media_type(image: bytes) -> str:
    """Guess the image media type from its leading bytes."""
    for signature, media_type in _SIGNATURES:
        if image.startswith(signature):
            return media_type
    if image[:4] == b"RIFF" and image[8:12] == b"WEBP":
        return "image/webp"
    return "image/jpeg"


def build_content(prompt: str, image: bytes | None = None) -> list[dict]:
    """Build the user message content blocks, image first."""
    content = []
    if image is not None:
        content.append({
            "type": "image",
            "source": {
                "type": "base64",
                "media_type": detect_media_type(image),
                "data": base64.b64encode(image).decode("ascii"),
            },
        })
    content.append({"type": "text", "text": prompt})
    return content


class APIClient:
    """Wrapper around Anthropic API with timeout and optional retry handling."""

    def __init__(
        self,
        api_key: str | None,
        model: str = "claude-haiku-4-5",
        max_retries: int = 1,
    ):
        if not api_key:
            raise ConfigurationError("ANTHROPIC_API_KEY environment variable is required")
        self.client = AsyncAnthropic(api_key=api_key)
        self.model = model
        self.max_retries = max(1, max_retries)

    @classmethod
    def from_settings(cls, settings) -> "APIClient":
        return cls(settings.anthropic_api_key, model=settings.model, max_retries=settings.max_retries)

    async def call(
        self,
        prompt: str,
        *,
        image: bytes | None = None,
        max_tokens: int = 1024,
        timeout: float = 60.0,
        semaphore: asyncio.Semaphore | None = None
    ) -> str:
        """Call the API, bounded by ``timeout`` per attempt."""
        if semaphore:
            async with semaphore:
                return await self._call_with_retry(prompt, image, max_tokens, timeout)
        return await self._call_with_retry(prompt, image, max_tokens, timeout)

    async def _call_with_retry(self, prompt, image, max_tokens, timeout) -> str:
        messages = [{"role": "user", "content": build_content(prompt, image)}]
        for attempt in range(self.max_retries):
            try:
                response = await asyncio.wait_for(
                    self.client.messages.create(
                        model=self.model,
                        max_tokens=max_tokens,
                        messages=messages,
                    ),
                    timeout=timeout
                )
                return response.content[0].text.strip()

            except Exception as e:
                if attempt < self.max_retries - 1:
                    logger.info("Model call failed (%s), retrying (attempt %d)", e, attempt + 2)
                    await asyncio.sleep(2 ** attempt)
                    continue
                raise


def parse_json(content: str) -> dict:
    """Parse a JSON object from an LLM response, handling code blocks and truncation."""
    content = content.strip()

    # Extract from code block if present
    if content.startswith("```"):
        parts = content.split("```")
        if len(parts) >= 2:
            content = parts[1]
            if content.startswith(("json", "JSON")):
                content = content[4:]
            content = content.strip()

    try:
        data = json.loads(content)
    except json.JSONDecodeError:
        data = _recover_object(content)

    if not isinstance(data, dict):
        raise ModelResponseError(f"Expected a JSON object, got {type(data).__name__}")
    return data


def _recover_object(content: str) -> dict:
    """Return the first balanced top-level object in ``content``."""
    start = content.find("{")
    if start < 0:
        raise ModelResponseError(f"No JSON object in response: {content[:200]!r}")

    depth = 0
    in_string = False
    escape_next = False

    for i in range(start, len(content)):
        char = content[i]
        if escape_next:
            escape_next = False
            continue
        if char == "\\" and in_string:
            escape_next = True
            continue
        if char == '"':
            in_string = not in_string
            continue
        if in_string:
            continue

        if char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                try:
                    return json.loads(content[start:i + 1])
                except json.JSONDecodeError as e:
                    raise ModelResponseError(f"Malformed JSON object: {e}") from e

    raise ModelResponseError(
        f"Could not parse JSON. Last 500 chars: {content[-500:]}"
    )
