"""
External service clients.

Protocols and errors live in base; each module implements one service.
"""

from brewdream.services.clients.base import (
    AssetStatusSource,
    AssetStore,
    BaseHttpClient,
    ClientConfig,
    ClientError,
    ClipProvider,
    ConfigurationError,
    SessionNotReadyError,
    SessionProvider,
    TextClient,
    UpstreamConnectionError,
    UpstreamError,
)
from brewdream.services.clients.claude_client import ClaudeClient
from brewdream.services.clients.daydream_client import DaydreamClient
from brewdream.services.clients.livepeer_client import LivepeerStudioClient
from brewdream.services.clients.openai_client import OpenAIChatClient, OpenAIImagesClient

__all__ = [
    # Protocols
    "AssetStatusSource",
    "AssetStore",
    "ClipProvider",
    "SessionProvider",
    "TextClient",
    # Base
    "BaseHttpClient",
    "ClientConfig",
    # Errors
    "ClientError",
    "ConfigurationError",
    "SessionNotReadyError",
    "UpstreamConnectionError",
    "UpstreamError",
    # Implementations
    "ClaudeClient",
    "DaydreamClient",
    "LivepeerStudioClient",
    "OpenAIChatClient",
    "OpenAIImagesClient",
]
