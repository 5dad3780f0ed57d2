"""Integration tests for the HTTP API - protecting status code and envelope invariants."""

import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent / "src"))
sys.path.insert(0, str(Path(__file__).parent.parent))

from test_helpers import (
    FakeModel,
    FakeProvider,
    dialogue_output,
    failing_model,
    failing_provider,
    make_gateway,
    tutor_output,
)

from hablar.errors import ErrorKind
from hablar.server.app import UNAVAILABLE_MESSAGE, create_app


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


def _client(gateway) -> TestClient:
    return TestClient(create_app(gateway))


class TestTTSRoutes:
    def test_returns_audio_with_provider_header(self, cache_dir: Path) -> None:
        """
        INVARIANT: Success returns raw audio with X-TTS-Provider
        BREAKS: Client cannot play audio or report which vendor served it
        """
        client = _client(make_gateway(cache_dir, [FakeProvider("polly", audio=b"mp3")]))

        first = client.post("/api/v1/tts", json={"text": "Hola"})
        second = client.post("/api/v1/tts", json={"text": "Hola"})

        assert first.status_code == 200
        assert first.content == b"mp3"
        assert first.headers["content-type"] == "audio/mpeg"
        assert first.headers["x-tts-provider"] == "polly"
        assert "max-age" in first.headers["cache-control"]
        assert second.headers["x-tts-provider"] == "cache"

    def test_exhaustion_tells_client_to_use_web_speech(self, cache_dir: Path) -> None:
        """
        INVARIANT: Exhaustion is a 503 with fallbackAvailable=true
        BREAKS: Client shows an error instead of speaking locally
        """
        client = _client(
            make_gateway(
                cache_dir,
                [
                    failing_provider("elevenlabs", ErrorKind.RATE_LIMITED),
                    failing_provider("polly"),
                ],
            )
        )

        response = client.post("/api/v1/tts", json={"text": "Hola"})

        assert response.status_code == 503
        body = response.json()
        assert body["error"] == "Failed to generate speech"
        assert body["fallbackAvailable"] is True
        assert "Web Speech" in body["suggestion"]
        assert "elevenlabs" in body["details"]

    @pytest.mark.parametrize(
        "payload",
        [{"text": ""}, {"language": "es"}, {"text": "Hola", "options": {"speed": 9}}],
    )
    def test_invalid_requests_rejected(self, cache_dir: Path, payload: dict) -> None:
        provider = FakeProvider("polly")
        client = _client(make_gateway(cache_dir, [provider]))

        response = client.post("/api/v1/tts", json=payload)

        assert response.status_code in (400, 422)
        assert provider.calls == []

    @pytest.mark.parametrize(
        "options", [{"provider": 1}, {"voice_id": ["x"]}, {"voiceId": {"a": 1}}]
    )
    def test_non_string_voice_hints_are_400(
        self, cache_dir: Path, options: dict
    ) -> None:
        provider = FakeProvider("polly")
        client = _client(make_gateway(cache_dir, [provider]))

        response = client.post("/api/v1/tts", json={"text": "Hola", "options": options})

        assert response.status_code == 400
        assert "Invalid" in response.json()["error"]
        assert provider.calls == []

    def test_whitespace_text_is_400(self, cache_dir: Path) -> None:
        client = _client(make_gateway(cache_dir))

        response = client.post("/api/v1/tts", json={"text": "   "})

        assert response.status_code == 400
        assert response.json() == {"error": "Text cannot be empty"}

    def test_status(self, cache_dir: Path) -> None:
        client = _client(
            make_gateway(
                cache_dir,
                [FakeProvider("elevenlabs", configured=False), FakeProvider("google")],
            )
        )

        response = client.get("/api/v1/tts/status")

        assert response.json() == {
            "providers": {"elevenlabs": False, "google": True, "web_speech": True}
        }


class TestChatRoutes:
    def test_start_and_message(self, cache_dir: Path) -> None:
        """
        INVARIANT: Replies are wrapped in {"message": ...} and history accumulates
        BREAKS: Tutor forgets the conversation between turns
        """
        model = FakeModel("Gemini 2.5 Flash Lite", output=tutor_output("¡Hola, Ana!"))
        gateway = make_gateway(cache_dir, tutor_models=[model])
        client = _client(gateway)

        start = client.post(
            "/api/v1/chat/start",
            json={
                "sessionId": "s1",
                "topic": "Restaurant",
                "level": "beginner",
                "displayName": "Ana",
            },
        )
        message = client.post(
            "/api/v1/chat/message",
            json={"sessionId": "s1", "message": "Quiero tapas"},
        )

        assert start.status_code == 200
        assert start.json()["message"]["text"] == "¡Hola, Ana!"
        assert start.json()["message"]["model"] == "Gemini 2.5 Flash Lite"
        assert "correction" not in start.json()["message"]
        assert message.status_code == 200
        assert "assistant: ¡Hola, Ana!" in model.prompts[1]
        assert len(gateway.history.get("s1")) == 4

    def test_pre_filter_reply(self, cache_dir: Path) -> None:
        model = FakeModel("Gemini", output=tutor_output())
        client = _client(make_gateway(cache_dir, tutor_models=[model]))

        response = client.post(
            "/api/v1/chat/message",
            json={"sessionId": "s1", "message": "Yo querer comer pizza"},
        )

        assert response.json()["message"]["correction"] == "Yo quiero"
        assert response.json()["message"]["model"] == "rules"
        assert model.prompts == []

    def test_missing_session_id(self, cache_dir: Path) -> None:
        client = _client(make_gateway(cache_dir))

        response = client.post("/api/v1/chat/message", json={"message": "Hola"})

        assert response.status_code == 422

    def test_quota_exhaustion_then_circuit_open(self, cache_dir: Path) -> None:
        """
        INVARIANT: Quota exhaustion is 429 and then the tutor rests with Retry-After
        BREAKS: Clients hammer exhausted quotas
        """
        clock = FakeClock()
        model = failing_model("Gemini", ErrorKind.RATE_LIMITED)
        client = _client(make_gateway(cache_dir, tutor_models=[model], clock=clock))
        body = {"sessionId": "s1", "message": "Hola"}

        exhausted = client.post("/api/v1/chat/message", json=body)
        clock.now += 100.5
        resting = client.post("/api/v1/chat/message", json=body)
        health = client.get("/api/v1/chat/health")

        assert exhausted.status_code == 429
        assert exhausted.json() == {
            "error": "Quota exceeded",
            "code": "rate_limit_exceeded",
        }
        assert resting.status_code == 429
        assert resting.json()["code"] == "circuit_open"
        assert resting.json()["retryAfter"] == 200
        assert resting.headers["retry-after"] == "200"
        assert len(model.prompts) == 1
        assert health.json()["status"] == "resting"

    def test_non_quota_exhaustion_is_503(self, cache_dir: Path) -> None:
        client = _client(
            make_gateway(cache_dir, tutor_models=[failing_model("Gemini")])
        )

        response = client.post(
            "/api/v1/chat/message", json={"sessionId": "s1", "message": "Hola"}
        )

        assert response.status_code == 503
        assert response.json() == {
            "error": UNAVAILABLE_MESSAGE,
            "code": "generation_unavailable",
            "retryable": True,
        }

    def test_health_ok(self, cache_dir: Path) -> None:
        response = _client(make_gateway(cache_dir)).get("/api/v1/chat/health")

        assert response.status_code == 200
        assert response.json()["status"] == "ok"
        assert "timestamp" in response.json()


class TestDialogueRoute:
    def test_generates_dialogue(self, cache_dir: Path) -> None:
        client = _client(
            make_gateway(
                cache_dir,
                dialogue_models=[FakeModel("Gemini 1.5 Flash", output=dialogue_output())],
            )
        )

        response = client.post("/api/v1/dialogue", json={"topic": "el mercado"})

        assert response.status_code == 200
        body = response.json()
        assert body["title"] == "En el mercado"
        assert body["model"] == "Gemini 1.5 Flash"
        assert body["id"]
        assert [line["speaker"] for line in body["lines"]] == ["Juan", "María"]

    @pytest.mark.parametrize(
        ("payload", "message"),
        [
            ({"topic": "ab"}, "at least 3 characters"),
            ({"topic": "viajes", "level": "expert"}, "Invalid level"),
        ],
    )
    def test_invalid_dialogue_request(
        self, cache_dir: Path, payload: dict, message: str
    ) -> None:
        client = _client(make_gateway(cache_dir))

        response = client.post("/api/v1/dialogue", json=payload)

        assert response.status_code == 400
        assert message in response.json()["error"]

    def test_shares_circuit_with_chat(self, cache_dir: Path) -> None:
        gateway = make_gateway(
            cache_dir,
            tutor_models=[failing_model("Gemini", ErrorKind.RATE_LIMITED)],
            dialogue_models=[FakeModel("Gemini", output=dialogue_output())],
        )
        client = _client(gateway)

        client.post("/api/v1/chat/message", json={"sessionId": "s1", "message": "Hola"})
        response = client.post("/api/v1/dialogue", json={"topic": "el mercado"})

        assert response.status_code == 429
        assert response.json()["code"] == "circuit_open"


class TestGrammarRoute:
    def test_analyze_returns_report(self, cache_dir: Path) -> None:
        """
        INVARIANT: Grammar reports use the camelCase envelope clients read
        BREAKS: Feedback panel renders empty
        """
        model = FakeModel("Gemini", output=tutor_output())
        client = _client(make_gateway(cache_dir, tutor_models=[model]))

        response = client.post(
            "/api/v1/grammar/analyze",
            json={"text": "Yo querer. Yo gusta. Soy bien.", "context": "Restaurant"},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["score"] == 60
        assert "Buen intento" in body["generalFeedback"]
        assert body["corrections"][0] == {
            "original": "Yo querer",
            "corrected": "Yo quiero",
            "explanation": (
                "Debes conjugar los verbos. 'Yo' se usa con la terminación 'o' "
                "generalmente."
            ),
            "type": "grammar",
        }
        assert model.prompts == []

    def test_context_is_optional(self, cache_dir: Path) -> None:
        client = _client(make_gateway(cache_dir))

        response = client.post("/api/v1/grammar/analyze", json={"text": "x"})

        assert response.status_code == 200
        assert response.json()["score"] == 0

    @pytest.mark.parametrize("payload", [{}, {"text": ""}, {"context": "Travel"}])
    def test_missing_text_rejected(self, cache_dir: Path, payload: dict) -> None:
        client = _client(make_gateway(cache_dir))

        response = client.post("/api/v1/grammar/analyze", json=payload)

        assert response.status_code in (400, 422)
