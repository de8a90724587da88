"""
Ollama-backed text generator.
- Talks to a local Ollama server over /api/generate
- Plain-text output (no JSON contract, the summarizer cleans it)
- Distinguishes "model not pulled" from other transport failures
- stop() closes the HTTP session and discards any answer still in flight
"""

import logging
import os
import threading
from typing import Any, Dict, Optional

import requests

from ..errors import GenerationCancelled, ModelNotLoadedError, TransportError

logger = logging.getLogger(__name__)


class OllamaGenerator:
    """Text generator backed by an Ollama model."""

    def __init__(
        self,
        model: str,
        base_url: Optional[str] = None,
        request_timeout: int = 120,
        temperature: float = 0.2,
        num_predict: int = 512,
        system_prompt: str = "",
    ):
        self.model = model
        self.base_url = (base_url or os.getenv("OLLAMA_HOST", "http://localhost:11434")).rstrip("/")
        self.request_timeout = request_timeout
        self.temperature = temperature
        self.num_predict = num_predict
        self.system_prompt = system_prompt
        self._session = requests.Session()
        self._stopped = threading.Event()

    def generate(self, prompt: str) -> str:
        """Generate a completion for ``prompt``."""
        if not self.model:
            raise ModelNotLoadedError("No Ollama model configured (set OLLAMA_MODEL)")

        self._stopped.clear()
        result = self._call_ollama(prompt)
        raw = (result.get("response") or "").strip()

        if not raw:
            raise TransportError("Empty LLM output (response was blank)")
        return raw

    def stop(self) -> None:
        """Abort the in-flight request."""
        self._stopped.set()
        self._session.close()
        self._session = requests.Session()

    def _call_ollama(self, prompt: str) -> Dict[str, Any]:
        """Low-level call to Ollama /api/generate"""
        payload = {
            "model": self.model,
            "prompt": prompt,
            "stream": False,
            # Disable thinking mode for reasoning models (e.g., Qwen3)
            "think": False,
            "options": {
                "temperature": self.temperature,
                "num_predict": self.num_predict,
            },
        }
        if self.system_prompt:
            payload["system"] = self.system_prompt

        try:
            response = self._session.post(
                f"{self.base_url}/api/generate",
                json=payload,
                timeout=self.request_timeout,
            )
        except requests.RequestException as e:
            if self._stopped.is_set():
                raise GenerationCancelled("Ollama generation stopped") from e
            raise TransportError(f"Ollama unreachable at {self.base_url}: {e}") from e

        # stop() cannot interrupt a connection already in use; drop the late answer
        if self._stopped.is_set():
            raise GenerationCancelled("Ollama generation stopped")

        if response.status_code == 404 and "not found" in response.text.lower():
            raise ModelNotLoadedError(f"Ollama model '{self.model}' is not available")

        try:
            response.raise_for_status()
            return response.json()
        except requests.HTTPError as e:
            raise TransportError(f"Ollama returned HTTP {response.status_code}") from e
        except ValueError as e:
            raise TransportError(f"Ollama returned invalid JSON: {e}") from e
