"""Realtime transcription provider adapters."""

from typing import Dict, Optional, Type

from .base import AbstractRealtimeProvider, SessionNegotiationError, INTERVIEW_PROMPT
from .openai_provider import OpenAIRealtimeProvider
from .deepseek_provider import DeepSeekRealtimeProvider
from ...models.session import Provider

PROVIDER_ADAPTERS: Dict[Provider, Type[AbstractRealtimeProvider]] = {
    Provider.OPENAI: OpenAIRealtimeProvider,
    Provider.DEEPSEEK: DeepSeekRealtimeProvider,
}


def get_provider_class(provider: Provider) -> Type[AbstractRealtimeProvider]:
    """Look up the adapter class registered for ``provider``."""
    try:
        return PROVIDER_ADAPTERS[provider]
    except KeyError:
        raise ValueError(f"No realtime adapter registered for provider: {provider}")


def create_provider(provider: Provider,
                    api_key: str,
                    session_url: Optional[str] = None,
                    websocket_url: Optional[str] = None) -> AbstractRealtimeProvider:
    """Instantiate the adapter for ``provider``."""
    adapter_class = get_provider_class(provider)
    return adapter_class(api_key, session_url=session_url, websocket_url=websocket_url)


__all__ = [
    "AbstractRealtimeProvider",
    "SessionNegotiationError",
    "INTERVIEW_PROMPT",
    "OpenAIRealtimeProvider",
    "DeepSeekRealtimeProvider",
    "PROVIDER_ADAPTERS",
    "get_provider_class",
    "create_provider",
]
