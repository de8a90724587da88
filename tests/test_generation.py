"""
Tests for text generators, the callback bridge and the response cache.
"""
import json
import threading
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from unittest.mock import MagicMock, patch

import pytest
import requests

from smart_forward.errors import GenerationCancelled, ModelNotLoadedError, TransportError
from smart_forward.generation import (
    CachingGenerator,
    CallbackBridge,
    GeminiGenerator,
    OllamaGenerator,
    ResponseCache,
)

from .conftest import FakeGenerator


class ScriptedEngine:
    """Callback engine that answers synchronously with each scripted callback."""

    def __init__(self, *callbacks):
        self.callbacks = callbacks
        self.stop_calls = 0

    def generate_response(self, prompt, callback):
        for response, error in self.callbacks:
            callback(response, error)

    def stop_generation(self):
        self.stop_calls += 1


class SilentEngine:
    """Callback engine that never answers until stopped."""

    def __init__(self):
        self.started = threading.Event()
        self.stop_calls = 0

    def generate_response(self, prompt, callback):
        self.started.set()

    def stop_generation(self):
        self.stop_calls += 1


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


class TestCallbackBridge:
    """Tests for adapting callback engines to blocking calls."""

    def test_returns_response(self):
        bridge = CallbackBridge(ScriptedEngine(("generated text", None)))

        assert bridge.generate("prompt") == "generated text"

    def test_first_callback_wins(self):
        """Test that later callbacks are ignored."""
        engine = ScriptedEngine(("first", None), ("second", None), (None, RuntimeError("late")))

        assert CallbackBridge(engine).generate("prompt") == "first"

    def test_error_callback_becomes_transport_error(self):
        engine = ScriptedEngine((None, RuntimeError("engine crashed")))

        with pytest.raises(TransportError, match="engine crashed"):
            CallbackBridge(engine).generate("prompt")

    def test_model_not_loaded_passes_through(self):
        engine = ScriptedEngine((None, ModelNotLoadedError("no model")))

        with pytest.raises(ModelNotLoadedError):
            CallbackBridge(engine).generate("prompt")

    def test_empty_response_rejected(self):
        with pytest.raises(TransportError):
            CallbackBridge(ScriptedEngine(("   ", None))).generate("prompt")

    def test_timeout_stops_engine(self):
        """Test that a silent engine times out and is told to stop."""
        engine = SilentEngine()

        with pytest.raises(TransportError, match="timed out"):
            CallbackBridge(engine, timeout=0.05).generate("prompt")
        assert engine.stop_calls == 1

    def test_stop_cancels_pending_call(self):
        """Test cancellation from another thread."""
        engine = SilentEngine()
        bridge = CallbackBridge(engine, timeout=5.0)
        errors = []

        def run():
            try:
                bridge.generate("prompt")
            except GenerationCancelled as e:
                errors.append(e)

        worker = threading.Thread(target=run)
        worker.start()
        assert engine.started.wait(timeout=2.0)
        bridge.stop()
        worker.join(timeout=2.0)

        assert not worker.is_alive()
        assert len(errors) == 1
        assert engine.stop_calls == 1


class TestResponseCache:
    """Tests for the LFU + TTL response cache."""

    def test_get_and_put(self):
        cache = ResponseCache()
        cache.put("k", "value")

        assert cache.get("k") == "value"
        assert "k" in cache
        assert cache.hits == 1

    def test_miss(self):
        cache = ResponseCache()

        assert cache.get("missing") is None
        assert cache.misses == 1

    def test_last_write_wins(self):
        cache = ResponseCache()
        cache.put("k", "old")
        cache.put("k", "new")

        assert cache.get("k") == "new"
        assert len(cache) == 1

    def test_entries_expire(self):
        """Test that entries vanish once the TTL has passed."""
        clock = FakeClock()
        cache = ResponseCache(ttl_seconds=10, clock=clock)
        cache.put("k", "value")

        clock.now = 9.9
        assert cache.get("k") == "value"
        clock.now = 10.0
        assert cache.get("k") is None
        assert len(cache) == 0

    def test_least_frequently_used_evicted(self):
        """Test that a full cache drops the least used entry."""
        clock = FakeClock()
        cache = ResponseCache(max_entries=2, clock=clock)
        cache.put("a", "A")
        clock.now = 1
        cache.put("b", "B")
        cache.get("a")

        clock.now = 2
        cache.put("c", "C")

        assert "a" in cache
        assert "b" not in cache
        assert "c" in cache

    def test_oldest_access_breaks_ties(self):
        clock = FakeClock()
        cache = ResponseCache(max_entries=2, clock=clock)
        cache.put("a", "A")
        clock.now = 1
        cache.put("b", "B")

        clock.now = 2
        cache.put("c", "C")

        assert "a" not in cache
        assert "b" in cache

    def test_expired_entries_purged_before_eviction(self):
        clock = FakeClock()
        cache = ResponseCache(max_entries=2, ttl_seconds=5, clock=clock)
        cache.put("old", "O")
        clock.now = 4
        cache.put("fresh", "F")
        cache.get("fresh")
        cache.get("old")
        cache.get("old")

        clock.now = 6
        cache.put("new", "N")

        assert "fresh" in cache
        assert "new" in cache
        assert len(cache) == 2

    def test_invalid_size(self):
        with pytest.raises(ValueError):
            ResponseCache(max_entries=0)


class TestCachingGenerator:
    """Tests for serving repeated prompts from the cache."""

    def test_repeated_prompt_hits_cache(self):
        inner = FakeGenerator("summary text")
        generator = CachingGenerator(inner, ResponseCache())

        assert generator.generate("prompt") == "summary text"
        assert generator.generate("prompt") == "summary text"
        assert inner.prompts == ["prompt"]

    def test_errors_are_not_cached(self):
        inner = FakeGenerator(TransportError("down"), "summary text")
        generator = CachingGenerator(inner, ResponseCache())

        with pytest.raises(TransportError):
            generator.generate("prompt")
        assert generator.generate("prompt") == "summary text"

    def test_stop_is_forwarded(self):
        inner = FakeGenerator()
        CachingGenerator(inner, ResponseCache()).stop()

        assert inner.stopped


def _response(status_code=200, payload=None, text=""):
    response = MagicMock()
    response.status_code = status_code
    response.text = text
    response.json.return_value = payload or {}
    if status_code >= 400:
        response.raise_for_status.side_effect = requests.HTTPError(f"{status_code} error")
    return response


class SlowOllamaHandler(BaseHTTPRequestHandler):
    """Answers /api/generate only once the test releases it."""

    received = None
    release = None

    def do_POST(self):
        self.rfile.read(int(self.headers.get("Content-Length", 0)))
        self.received.set()
        self.release.wait(timeout=5.0)

        body = json.dumps({"response": "late answer from the model"}).encode("utf-8")
        self.send_response(200)
        self.send_header("Content-Type", "application/json")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def log_message(self, format, *args):
        pass


@pytest.fixture
def slow_ollama():
    """A local HTTP server that holds each request until released."""
    handler = type("Handler", (SlowOllamaHandler,), {
        "received": threading.Event(),
        "release": threading.Event(),
    })
    server = ThreadingHTTPServer(("127.0.0.1", 0), handler)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    yield f"http://127.0.0.1:{server.server_port}", handler
    handler.release.set()
    server.shutdown()
    server.server_close()


class TestOllamaGenerator:
    """Tests for the Ollama HTTP generator."""

    @pytest.fixture
    def generator(self):
        return OllamaGenerator("llama3", base_url="http://localhost:11434/")

    def test_generate(self, generator):
        with patch.object(generator._session, "post", return_value=_response(payload={"response": " ok text "})) as post:
            assert generator.generate("prompt") == "ok text"

        url = post.call_args[0][0]
        payload = post.call_args[1]["json"]
        assert url == "http://localhost:11434/api/generate"
        assert payload["model"] == "llama3"
        assert payload["prompt"] == "prompt"
        assert payload["stream"] is False

    def test_system_prompt_sent(self):
        generator = OllamaGenerator("llama3", base_url="http://localhost:11434", system_prompt="Be brief.")

        with patch.object(generator._session, "post", return_value=_response(payload={"response": "ok"})) as post:
            generator.generate("prompt")

        assert post.call_args[1]["json"]["system"] == "Be brief."

    def test_missing_model_on_server(self, generator):
        response = _response(404, text='{"error":"model \'llama3\' not found"}')

        with patch.object(generator._session, "post", return_value=response):
            with pytest.raises(ModelNotLoadedError):
                generator.generate("prompt")

    def test_no_model_configured(self):
        with pytest.raises(ModelNotLoadedError):
            OllamaGenerator("", base_url="http://localhost:11434").generate("prompt")

    def test_connection_error(self, generator):
        with patch.object(generator._session, "post", side_effect=requests.ConnectionError("refused")):
            with pytest.raises(TransportError) as exc_info:
                generator.generate("prompt")

        assert not isinstance(exc_info.value, ModelNotLoadedError)

    def test_server_error(self, generator):
        with patch.object(generator._session, "post", return_value=_response(500, text="oops")):
            with pytest.raises(TransportError, match="HTTP 500"):
                generator.generate("prompt")

    def test_blank_response(self, generator):
        with patch.object(generator._session, "post", return_value=_response(payload={"response": "  "})):
            with pytest.raises(TransportError):
                generator.generate("prompt")

    def test_invalid_json(self, generator):
        response = _response()
        response.json.side_effect = ValueError("bad json")

        with patch.object(generator._session, "post", return_value=response):
            with pytest.raises(TransportError, match="invalid JSON"):
                generator.generate("prompt")

    def test_stop_turns_failure_into_cancellation(self, generator):
        """Test that a request broken by stop() reports cancellation."""
        session = generator._session

        def interrupted(*args, **kwargs):
            generator.stop()
            raise requests.ConnectionError("connection closed")

        with patch.object(session, "post", side_effect=interrupted):
            with pytest.raises(GenerationCancelled):
                generator.generate("prompt")

        assert generator._session is not session

    def test_stop_discards_answer_in_flight(self, slow_ollama):
        """Test that stop() during a slow request ends in cancellation, not a late success."""
        base_url, handler = slow_ollama
        generator = OllamaGenerator("llama3", base_url=base_url, request_timeout=10)
        outcome = {}

        def run():
            try:
                outcome["value"] = generator.generate("prompt")
            except GenerationCancelled as e:
                outcome["error"] = e

        worker = threading.Thread(target=run)
        worker.start()
        assert handler.received.wait(timeout=5.0)
        generator.stop()
        handler.release.set()
        worker.join(timeout=5.0)

        assert not worker.is_alive()
        assert "value" not in outcome
        assert isinstance(outcome["error"], GenerationCancelled)

    def test_new_request_after_stop_succeeds(self, slow_ollama):
        """Test that a stop only affects the request it interrupted."""
        base_url, handler = slow_ollama
        generator = OllamaGenerator("llama3", base_url=base_url, request_timeout=10)
        generator.stop()
        handler.release.set()

        assert generator.generate("prompt") == "late answer from the model"


class TestGeminiGenerator:
    """Tests for the Gemini generator."""

    def test_without_api_key(self):
        generator = GeminiGenerator(api_key="")

        with pytest.raises(ModelNotLoadedError):
            generator.generate("prompt")

    def test_generate(self):
        generator = GeminiGenerator(api_key="")
        generator.client = MagicMock()
        generator.client.models.generate_content.return_value = MagicMock(text=" summary ")

        assert generator.generate("prompt") == "summary"
        generator.client.models.generate_content.assert_called_once_with(model="gemini-2.0-flash", contents="prompt")

    def test_sdk_error(self):
        generator = GeminiGenerator(api_key="")
        generator.client = MagicMock()
        generator.client.models.generate_content.side_effect = RuntimeError("quota")

        with pytest.raises(TransportError, match="quota"):
            generator.generate("prompt")

    def test_empty_text(self):
        generator = GeminiGenerator(api_key="")
        generator.client = MagicMock()
        generator.client.models.generate_content.return_value = MagicMock(text=None)

        with pytest.raises(TransportError):
            generator.generate("prompt")


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
