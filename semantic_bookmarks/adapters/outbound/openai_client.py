"""Client for OpenAI-compatible embeddings and chat completion endpoints.

Every call goes through a ``RequestExecutor`` so timeouts, 429s, 5xx and
transport failures are retried with backoff, while other 4xx responses
and malformed bodies fail immediately.
"""

import asyncio
import json
import logging
from collections.abc import Sequence
from typing import Any

import requests

from ...config.settings import Settings
from ...core.domain import Embedding, QAPair
from ...core.domain.exceptions import (
    ApiError,
    ClientError,
    EmptyResponseError,
    MalformedResponseError,
    MissingAPIKeyError,
    NetworkError,
    RateLimitError,
    RequestTimeoutError,
    ServerError,
)
from ...core.ports import EmbeddingPort, QAGeneratorPort
from ...core.services.request_executor import RequestExecutor

logger = logging.getLogger(__name__)

EMBEDDINGS_ENDPOINT = "/embeddings"
CHAT_ENDPOINT = "/chat/completions"
ERROR_BODY_PREVIEW_CHARS = 500


class OpenAICompatibleClient(EmbeddingPort, QAGeneratorPort):
    """Resilient client for an OpenAI-compatible HTTP API.

    Blocking ``requests`` calls run in a worker thread so the event loop
    stays free; each attempt is bounded by the configured timeout both at
    the socket level and as an overall deadline.
    """

    def __init__(
        self,
        settings: Settings,
        session: requests.Session | None = None,
        executor: RequestExecutor | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            settings: Loaded settings (API key, base URL, models, limits).
            session: Optional pre-built HTTP session; one is created if omitted.
            executor: Optional retry executor; built from ``settings.retry_policy``
                if omitted.
        """
        self.settings = settings
        self.session = session or requests.Session()
        self.session.headers.update({"User-Agent": "Semantic-Bookmarks/0.1"})
        self.executor = executor or RequestExecutor(settings.retry_policy)

    def __enter__(self) -> "OpenAICompatibleClient":
        """Enter context manager."""
        return self

    def __exit__(self, *args) -> None:
        """Exit context manager and close session."""
        self.close()

    def close(self) -> None:
        """Close the HTTP session."""
        if self.session:
            self.session.close()

    async def generate_embeddings(
        self,
        texts: Sequence[str],
        cancel_event: asyncio.Event | None = None,
    ) -> list[Embedding]:
        """Embed a batch of texts in a single request.

        The API may return items in any order; they are re-sorted by their
        ``index`` so output position matches input position. Either the
        whole batch comes back or the call fails.

        Args:
            texts: Texts to embed.
            cancel_event: Optional event that aborts pending retries when set.

        Returns:
            One embedding per input text, in input order.

        Raises:
            MissingAPIKeyError: If no API key is configured.
            EmptyResponseError: If the response holds no usable embeddings.
            MalformedResponseError: If response items lack ``index``/``embedding``.
            ApiError: The terminal HTTP or transport error after retries.
        """
        batch = list(texts)
        if not batch:
            return []

        logger.debug(
            f"Embedding {len(batch)} texts with {self.settings.embedding_model} "
            f"(max length {max(len(t) for t in batch)})"
        )

        data = await self._post(
            EMBEDDINGS_ENDPOINT,
            {"model": self.settings.embedding_model, "input": batch},
            cancel_event,
        )

        items = data.get("data")
        if not isinstance(items, list) or not items:
            raise EmptyResponseError(
                "Embeddings response contained no data",
                endpoint=EMBEDDINGS_ENDPOINT,
                context={"inputs": len(batch)},
            )

        try:
            ordered = sorted(items, key=lambda item: int(item["index"]))
            embeddings = [[float(v) for v in item["embedding"]] for item in ordered]
        except (KeyError, TypeError, ValueError) as e:
            raise MalformedResponseError(
                "Embeddings response items are malformed",
                endpoint=EMBEDDINGS_ENDPOINT,
                cause=e,
            ) from e

        if len(embeddings) != len(batch) or any(not e for e in embeddings):
            raise EmptyResponseError(
                f"Expected {len(batch)} embeddings, got {sum(1 for e in embeddings if e)} usable",
                endpoint=EMBEDDINGS_ENDPOINT,
                context={"inputs": len(batch), "returned": len(embeddings)},
            )

        logger.debug(f"Received {len(embeddings)} embeddings of dimension {len(embeddings[0])}")
        return embeddings

    async def generate_qa_pairs(
        self,
        content: str,
        cancel_event: asyncio.Event | None = None,
    ) -> list[QAPair]:
        """Ask the chat model for Q&A pairs describing ``content``.

        Content is truncated to ``content_max_chars`` before sending. Pairs
        without a string question and answer are dropped.

        Raises:
            MissingAPIKeyError: If no API key is configured.
            MalformedResponseError: If the reply is empty or not the expected JSON.
            ApiError: The terminal HTTP or transport error after retries.
        """
        truncated = content[: self.settings.content_max_chars]
        body: dict[str, Any] = {
            "model": self.settings.chat_model,
            "messages": [
                {"role": "system", "content": self.settings.qa_system_prompt},
                {"role": "user", "content": truncated},
            ],
            "response_format": {"type": "json_object"},
        }
        if self.settings.use_chat_temperature:
            body["temperature"] = self.settings.chat_temperature

        data = await self._post(CHAT_ENDPOINT, body, cancel_event)

        try:
            message = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError):
            message = None
        if not isinstance(message, str) or not message:
            raise MalformedResponseError("Empty response from chat API", endpoint=CHAT_ENDPOINT)

        try:
            parsed = json.loads(message)
        except json.JSONDecodeError as e:
            raise MalformedResponseError(
                "Failed to parse Q&A pairs from API response",
                endpoint=CHAT_ENDPOINT,
                cause=e,
                context={"content": message[:ERROR_BODY_PREVIEW_CHARS]},
            ) from e

        if not isinstance(parsed, dict):
            raise MalformedResponseError(
                "Q&A response is not a JSON object", endpoint=CHAT_ENDPOINT
            )

        pairs = parsed.get("pairs") or []
        if not isinstance(pairs, list):
            raise MalformedResponseError("Q&A 'pairs' is not a list", endpoint=CHAT_ENDPOINT)

        result = [
            QAPair(question=p["question"].strip(), answer=p["answer"].strip())
            for p in pairs
            if isinstance(p, dict)
            and isinstance(p.get("question"), str)
            and isinstance(p.get("answer"), str)
        ]
        if len(result) < len(pairs):
            logger.warning(f"Dropped {len(pairs) - len(result)} malformed Q&A pairs")
        return result

    async def _post(
        self,
        endpoint: str,
        body: dict[str, Any],
        cancel_event: asyncio.Event | None = None,
    ) -> dict[str, Any]:
        """POST ``body`` under the retry policy and return the JSON object."""
        if not self.settings.api_key:
            raise MissingAPIKeyError(
                "API key not configured. "
                "Set SEMANTIC_BOOKMARKS_API_KEY in your environment or .env file.",
                context={"endpoint": endpoint},
            )
        return await self.executor.run(lambda: self._attempt(endpoint, body), cancel_event)

    async def _attempt(self, endpoint: str, body: dict[str, Any]) -> dict[str, Any]:
        """Issue a single HTTP attempt and classify the outcome."""
        url = f"{self.settings.api_base_url}{endpoint}"
        timeout = self.settings.request_timeout_seconds
        headers = {
            "Authorization": f"Bearer {self.settings.api_key}",
            "Content-Type": "application/json",
        }

        try:
            response = await asyncio.wait_for(
                asyncio.to_thread(
                    self.session.post, url, json=body, headers=headers, timeout=timeout
                ),
                timeout=timeout,
            )
        except (requests.Timeout, asyncio.TimeoutError) as e:
            raise RequestTimeoutError(
                f"Request to {endpoint} timed out after {self.settings.request_timeout_ms}ms",
                endpoint=endpoint,
                cause=e,
                context={"timeout_ms": self.settings.request_timeout_ms},
            ) from e
        except requests.RequestException as e:
            raise NetworkError(
                f"Network error calling {endpoint}: {e}",
                endpoint=endpoint,
                cause=e,
            ) from e

        status = response.status_code
        if 200 <= status < 300:
            try:
                data = response.json()
            except ValueError as e:
                raise MalformedResponseError(
                    f"Failed to parse API response from {endpoint}",
                    status=status,
                    endpoint=endpoint,
                    cause=e,
                ) from e
            if not isinstance(data, dict):
                raise MalformedResponseError(
                    f"API response from {endpoint} is not a JSON object",
                    status=status,
                    endpoint=endpoint,
                )
            return data

        raise _error_for_status(status, endpoint, _body_preview(response))


def _body_preview(response: requests.Response) -> str:
    return str(response.text)[:ERROR_BODY_PREVIEW_CHARS]


def _error_for_status(status: int, endpoint: str, detail: str) -> ApiError:
    """Map a non-2xx status onto the error taxonomy."""
    message = f"API error: {status} - {detail}"
    if status == 429:
        return RateLimitError(message, status=status, endpoint=endpoint)
    if 400 <= status < 500:
        return ClientError(message, status=status, endpoint=endpoint)
    if status >= 500:
        return ServerError(message, status=status, endpoint=endpoint)
    return ApiError(message, status=status, endpoint=endpoint)
