"""
Ollama API client with retry logic and timeout handling.
Low-level streaming interface for local Ollama models.
"""

import asyncio
import time
from typing import AsyncIterator, Dict, Optional, Tuple

import httpx
import ollama

from utils.logging_config import get_logger
from .constants import ConfigDefaults

logger = get_logger(__name__)


class OllamaEmptyResponseError(Exception):
    """Raised when Ollama ends a stream without producing anything."""
    pass


class OllamaRetryError(Exception):
    """Raised when all retry attempts are exhausted."""
    pass


class OllamaClient:
    """
    Low-level client for the Ollama API with retry and timeout handling.

    Retries only cover opening a stream (up to and including its first part);
    once text has been handed to the caller, a failure is raised as is.
    """

    def __init__(
        self,
        host: str = ConfigDefaults.OLLAMA_HOST,
        max_retries: int = ConfigDefaults.MAX_RETRIES,
        base_retry_delay: float = ConfigDefaults.RETRY_DELAY,
        verbose: bool = False,
        client: Optional[ollama.AsyncClient] = None
    ):
        """
        Initialize the Ollama client with timeout protection.

        Args:
            host: Ollama server URL
            max_retries: Additional attempts after the first failed one
            base_retry_delay: Delay before the first retry, doubled on each further retry
            verbose: Enable detailed logging
            client: Pre-built AsyncClient, mainly for tests
        """
        timeout_config = httpx.Timeout(
            connect=30.0,  # establish connection
            read=300.0,    # slow generation between chunks
            write=30.0,
            pool=10.0
        )
        self.client = client or ollama.AsyncClient(host=host, timeout=timeout_config)
        self.host = host
        self.max_retries = max_retries
        self.base_retry_delay = base_retry_delay
        self.verbose = verbose

        if self.verbose:
            logger.info(f"🔌 OllamaClient initialized for {host}")

    async def stream_text(
        self,
        prompt: str,
        model: str,
        system_prompt: Optional[str] = None,
        options: Optional[Dict] = None,
        keep_alive: Optional[str] = None,
        timeout: float = ConfigDefaults.PRODUCER_TIMEOUT,
        chunk_timeout: float = ConfigDefaults.CHUNK_TIMEOUT
    ) -> AsyncIterator[str]:
        """
        Stream generated text from an Ollama model.

        Args:
            prompt: User prompt
            model: Model name
            system_prompt: Optional system prompt
            options: Generation parameters (temperature, num_predict, ...)
            keep_alive: How long to keep the model loaded (e.g. "24h")
            timeout: Maximum wait for the first part of the stream
            chunk_timeout: Maximum wait between two consecutive parts

        Yields:
            Non-empty text fragments in generation order

        Raises:
            OllamaRetryError: When the stream cannot be opened
        """
        stream, first_text = await self._open_stream_with_retry(
            model=model,
            prompt=prompt,
            system=system_prompt,
            options=options or {},
            keep_alive=keep_alive,
            timeout=timeout
        )

        try:
            if first_text:
                yield first_text

            while True:
                try:
                    part = await asyncio.wait_for(stream.__anext__(), timeout=chunk_timeout)
                except StopAsyncIteration:
                    break
                except asyncio.TimeoutError:
                    raise asyncio.TimeoutError(f"No output from {model} for {chunk_timeout}s")

                text = part.get('response', '') if part else ''
                if text:
                    yield text
        finally:
            await self._close_stream(stream)

    async def _open_stream_with_retry(self, timeout: float, **kwargs) -> Tuple[AsyncIterator, str]:
        """
        Open a streaming generation and read its first part, retrying with
        exponential backoff on retryable failures.

        Returns:
            The underlying stream and the text of its first part
        """
        operation = f"Ollama stream from {kwargs.get('model', 'unknown')}"
        attempts = self.max_retries + 1

        for attempt in range(attempts):
            attempt_start = time.time()
            stream = None

            try:
                if self.verbose:
                    logger.debug(f"🔄 Attempt {attempt + 1}/{attempts} for {operation}")

                stream = await asyncio.wait_for(self.client.generate(stream=True, **kwargs), timeout=timeout)
                try:
                    first = await asyncio.wait_for(stream.__anext__(), timeout=timeout)
                except StopAsyncIteration:
                    raise OllamaEmptyResponseError("Model returned an empty stream")

                if self.verbose:
                    logger.debug(f"✅ {operation} opened in {time.time() - attempt_start:.2f}s")
                return stream, first.get('response', '') if first else ''

            except asyncio.TimeoutError as e:
                await self._close_stream(stream)
                error_msg = f"{operation} timed out after {timeout}s"
                if attempt < attempts - 1:
                    await self._backoff(attempt, error_msg)
                    continue
                raise OllamaRetryError(f"{error_msg} after {attempts} attempts") from e

            except Exception as e:
                await self._close_stream(stream)
                if self._is_retryable_error(e):
                    if attempt < attempts - 1:
                        await self._backoff(attempt, f"{type(e).__name__}: {e}")
                        continue
                    raise OllamaRetryError(f"{operation} failed after {attempts} attempts: {e}") from e
                logger.debug(f"❌ Non-retryable error: {type(e).__name__}: {e}")
                raise

        raise OllamaRetryError(f"{operation} was never attempted")

    async def _backoff(self, attempt: int, reason: str):
        delay = self.base_retry_delay * (2 ** attempt)
        logger.warning(f"⏳ {reason}; retrying in {delay}s")
        await asyncio.sleep(delay)

    async def _close_stream(self, stream):
        aclose = getattr(stream, 'aclose', None)
        if aclose is not None:
            await aclose()

    def _is_retryable_error(self, error: Exception) -> bool:
        """
        Determine if an error is retryable.

        Args:
            error: The exception that occurred

        Returns:
            True for network, server and other temporary failures
        """
        if isinstance(error, (OllamaEmptyResponseError, ConnectionError, httpx.TransportError)):
            return True

        status_code = getattr(error, 'status_code', None)
        if isinstance(status_code, int):
            # 5xx, Too Many Requests and Request Timeout
            if 500 <= status_code < 600 or status_code in (408, 429):
                return True

        error_msg = str(error).lower()
        retryable_patterns = [
            'connection', 'timeout', 'network', 'server', 'temporary',
            'unavailable', 'overload', 'busy', 'rate limit'
        ]
        return any(pattern in error_msg for pattern in retryable_patterns)
