"""Smart Forward Agent - Text generation package."""

from .base import CallbackBridge, CallbackEngine, TextGenerator
from .cache import CachingGenerator, ResponseCache
from .gemini import GeminiGenerator
from .ollama import OllamaGenerator

__all__ = [
    "CallbackBridge",
    "CallbackEngine",
    "TextGenerator",
    "CachingGenerator",
    "ResponseCache",
    "GeminiGenerator",
    "OllamaGenerator",
]
