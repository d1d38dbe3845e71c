"""
Pytest configuration and fixtures
"""
import pytest

from railroad.domain.collaborators import Collaborators
from railroad.domain.memory.cache_store import TTLCache
from railroad.domain.memory.memory_store import InMemoryMemoryStore
from railroad.domain.social.social_graph import InMemorySocialGraph
from railroad.domain.state.state_manager import StateManager
from railroad.infrastructure.config.configuration_service import (
    ConfigurationService, InMemoryConfigurationStore
)
from railroad.infrastructure.config.settings import Settings

from fakes import FakeClock


@pytest.fixture
def settings() -> Settings:
    return Settings(_env_file=None, log_format="console")


@pytest.fixture
def memory_store() -> InMemoryMemoryStore:
    return InMemoryMemoryStore()


@pytest.fixture
def social_graph() -> InMemorySocialGraph:
    return InMemorySocialGraph()


@pytest.fixture
def state_manager() -> StateManager:
    return StateManager()


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def configuration(fake_clock) -> ConfigurationService:
    return ConfigurationService(
        InMemoryConfigurationStore(),
        cache=TTLCache(default_ttl=300, clock=fake_clock)
    )


@pytest.fixture
def collaborators(memory_store, social_graph, configuration, state_manager) -> Collaborators:
    return Collaborators(
        memory_store=memory_store,
        social_graph=social_graph,
        configuration=configuration,
        session_state=state_manager,
    )
