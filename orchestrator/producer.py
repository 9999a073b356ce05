"""
Probabilistic text producers.

Every producer exposes `generate(prompt)`, an async generator of text chunks
in generation order. A generator is finite, cannot be restarted, and can be
closed early with `aclose()`, which stops the underlying generation.
"""

import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import AsyncIterator, Dict, Optional

from .config import OrchestratorConfig
from .constants import ConfigDefaults, ProducerBackends
from .error_handler import ConfigurationError, ProducerUnavailable, classify_error
from .ollama_client import OllamaClient

END_OF_DRAFT = "\n"


@dataclass(frozen=True)
class GenerationRequest:
    """Parameters for one generation."""
    prompt: str
    max_tokens: int = ConfigDefaults.MAX_TOKENS
    temperature: float = ConfigDefaults.TEMPERATURE

    def to_options(self) -> Dict:
        """Ollama generation options."""
        return {
            'temperature': self.temperature,
            'num_predict': self.max_tokens,
        }


class ProducerAdapter(ABC):
    """Opaque text generation capability consumed by the orchestrator."""

    name: str = "producer"

    @abstractmethod
    def generate(self, prompt: str) -> AsyncIterator[str]:
        """
        Stream text for a prompt.

        Raises (in place of a chunk):
            ProducerUnavailable: the backend failed before producing anything
            ProducerError: the backend failed mid-stream
        """

    async def complete(self, prompt: str) -> str:
        """Generate and return the whole text at once."""
        return ''.join([chunk async for chunk in self.generate(prompt)])


class OllamaProducer(ProducerAdapter):
    """Streams text from a local Ollama server."""

    name = ProducerBackends.OLLAMA.value

    def __init__(self, config: Optional[OrchestratorConfig] = None, client: Optional[OllamaClient] = None):
        self.config = config or OrchestratorConfig()
        self.client = client or OllamaClient(
            host=self.config.ollama_host,
            max_retries=self.config.max_retries,
            base_retry_delay=self.config.retry_delay,
            verbose=self.config.verbose
        )

    async def generate(self, prompt: str) -> AsyncIterator[str]:
        request = GenerationRequest(
            prompt=prompt,
            max_tokens=self.config.max_tokens,
            temperature=self.config.temperature
        )
        stream = self.client.stream_text(
            prompt=request.prompt,
            model=self.config.model,
            options=request.to_options(),
            keep_alive=self.config.keep_alive,
            timeout=self.config.producer_timeout,
            chunk_timeout=self.config.chunk_timeout
        )

        produced = False
        try:
            async for text in stream:
                produced = True
                yield text
        except Exception as e:
            raise classify_error(e, f"{self.name} ({self.config.model})", before_first_chunk=not produced) from e
        finally:
            await stream.aclose()


class EchoProducer(ProducerAdapter):
    """Offline stand-in for a model: streams the prompt back word by word."""

    name = ProducerBackends.ECHO.value

    def __init__(self, delay: float = ConfigDefaults.ECHO_DELAY):
        self.delay = delay

    async def generate(self, prompt: str) -> AsyncIterator[str]:
        for word in prompt.split():
            yield f"{word} "
            if self.delay:
                await asyncio.sleep(self.delay)
        yield END_OF_DRAFT


class UnconfiguredProducer(ProducerAdapter):
    """Placeholder used when no backend is configured."""

    name = ProducerBackends.NONE.value

    def __init__(self, reason: str = "no text producer backend is configured"):
        self.reason = reason

    async def generate(self, prompt: str) -> AsyncIterator[str]:
        raise ProducerUnavailable(self.reason)
        yield  # pragma: no cover


def create_producer(config: OrchestratorConfig) -> ProducerAdapter:
    """Build the producer selected by `config.producer_backend`."""
    backend = config.producer_backend
    if backend == ProducerBackends.OLLAMA.value:
        return OllamaProducer(config)
    if backend == ProducerBackends.ECHO.value:
        return EchoProducer(delay=config.echo_delay)
    if backend == ProducerBackends.NONE.value:
        return UnconfiguredProducer()
    raise ConfigurationError(f"Unknown producer backend: {backend!r}")
