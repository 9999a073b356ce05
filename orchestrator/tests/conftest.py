"""
Shared pytest fixtures for orchestrator tests.
Provides scripted text producers so no test needs a running model.
"""

from typing import List, Optional

import pytest

from orchestrator.config import OrchestratorConfig
from orchestrator.error_handler import ProducerError, ProducerUnavailable
from orchestrator.flow_manager import QueryOrchestrator
from orchestrator.producer import ProducerAdapter
from orchestrator.statistics import StatisticsRecorder


class ScriptedProducer(ProducerAdapter):
    """Yields a fixed list of chunks, optionally failing after some of them."""

    name = "scripted"

    def __init__(self, chunks: List[str], fail_after: Optional[int] = None,
                 error: Optional[Exception] = None):
        self.chunks = chunks
        self.fail_after = fail_after
        self.error = error
        self.prompts = []
        self.closed = 0
        self.finished = 0

    async def generate(self, prompt: str):
        self.prompts.append(prompt)
        try:
            for index, chunk in enumerate(self.chunks):
                if self.fail_after is not None and index == self.fail_after:
                    raise self.error or ProducerError("stream broke")
                yield chunk
            if self.fail_after is not None and self.fail_after >= len(self.chunks):
                raise self.error or ProducerError("stream broke")
            self.finished += 1
        finally:
            self.closed += 1


class UnavailableProducer(ProducerAdapter):
    """Fails before the first chunk."""

    name = "unavailable"

    def __init__(self):
        self.calls = 0

    async def generate(self, prompt: str):
        self.calls += 1
        raise ProducerUnavailable("backend offline")
        yield  # pragma: no cover


@pytest.fixture
def test_config():
    """Configuration that never touches a real backend."""
    return OrchestratorConfig(producer_backend='none', echo_delay=0.0)


@pytest.fixture
def statistics():
    return StatisticsRecorder()


@pytest.fixture
def draft_producer():
    """Producer whose draft contains one true and one false claim."""
    return ScriptedProducer(["Sure. ", "10 * 5 = 50 and ", "2 + 2 = 5", "."])


@pytest.fixture
def make_orchestrator(test_config, statistics):
    """Factory building an orchestrator around a given producer."""
    def factory(producer: ProducerAdapter = None, **config_overrides):
        config = test_config
        if config_overrides:
            config = OrchestratorConfig.from_dict({**test_config.to_dict(), **config_overrides})
        return QueryOrchestrator(config=config, producer=producer, statistics=statistics)
    return factory


@pytest.fixture
def scripted_producer():
    """The ScriptedProducer class, for tests that need their own script."""
    return ScriptedProducer


@pytest.fixture
def unavailable_producer():
    return UnavailableProducer()
