"""Gemini-backed text generator using the google-genai SDK."""

from google import genai

from ..errors import ModelNotLoadedError, TransportError


class GeminiGenerator:
    """Gemini text generator."""

    def __init__(self, api_key: str, model: str = "gemini-2.0-flash"):
        self.api_key = api_key
        self.model = model
        self.client = genai.Client(api_key=api_key) if api_key else None

    def generate(self, prompt: str) -> str:
        """Generate a completion for ``prompt``."""
        if self.client is None:
            raise ModelNotLoadedError("No Gemini API key configured (set GEMINI_API_KEY)")

        try:
            response = self.client.models.generate_content(
                model=self.model,
                contents=prompt,
            )
        except Exception as e:
            raise TransportError(f"Gemini request failed: {e}") from e

        text = (response.text or "").strip()
        if not text:
            raise TransportError("Gemini returned an empty response")
        return text

    def stop(self) -> None:
        """Gemini calls are single blocking requests; nothing to interrupt."""
