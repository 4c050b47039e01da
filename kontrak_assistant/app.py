"""Assembly of the assistant from settings."""

from pathlib import Path
from typing import Optional

from google import genai

from .config.config_paths import ConfigPaths
from .config.settings import AssistantSettings
from .core.orchestrator import EventSink, TurnOrchestrator
from .model.gemini import GeminiModel
from .store.adapter import SessionStore
from .store.backends import JsonFileSessionBackend, SessionBackend
from .tools.base import ToolRegistry
from .tools.contracts import ContractRepository, InMemoryContractRepository
from .tools.specs import register_default_specs


def build_assistant(
    settings: AssistantSettings,
    backend: Optional[SessionBackend] = None,
    contracts: Optional[ContractRepository] = None,
    client: Optional[genai.Client] = None,
    event_sink: Optional[EventSink] = None,
) -> TurnOrchestrator:
    """Wire the session store, tools and Gemini model into an orchestrator.

    Args:
        settings: Loaded assistant settings
        backend: Session backend; defaults to JSON files in the config dir
        contracts: Contract repository for the lookup tool; empty if omitted
        client: Pre-built Gemini client
        event_sink: Async callable receiving structured turn events
    """
    if backend is None:
        backend = JsonFileSessionBackend(ConfigPaths.get_sessions_dir())

    registry = ToolRegistry()
    register_default_specs(registry, contracts or InMemoryContractRepository())

    return TurnOrchestrator(
        store=SessionStore(backend, ttl=settings.session_ttl),
        model=GeminiModel(registry, settings=settings, client=client),
        fallback_answer=settings.fallback_answer,
        model_timeout=settings.model_timeout,
        event_sink=event_sink,
    )


def load_contracts(path: Optional[Path]) -> Optional[ContractRepository]:
    """Load a contract repository from a JSON file, if a path is given."""
    if path is None:
        return None
    return InMemoryContractRepository.from_json_file(path)
