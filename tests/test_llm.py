"""Tests for the Gemini client and prompt builders.

All network calls are mocked via ``unittest.mock.patch`` on ``httpx``.
"""
from __future__ import annotations

from datetime import date
from unittest.mock import MagicMock, patch

import httpx
import pytest

from app.llm.client import (
    GeminiClient,
    LLMConnectionError,
    LLMDisabledError,
    LLMTimeoutError,
)
from app.llm.prompts import (
    REPORT_SECTIONS,
    age_from_dob,
    build_health_report_prompt,
    build_system_prompt,
)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def _enable_llm(monkeypatch: pytest.MonkeyPatch):
    """Configure a Gemini key and defaults via environment."""
    monkeypatch.setenv("GEMINI_API_KEY", "test-key")
    monkeypatch.setenv("GEMINI_URL", "https://gemini.test/v1beta")
    monkeypatch.setenv("GEMINI_MODEL", "gemini-test")
    monkeypatch.setenv("GEMINI_TIMEOUT_S", "30")
    from app.core.settings import get_settings

    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture()
def _disable_llm(monkeypatch: pytest.MonkeyPatch):
    """Remove the Gemini key from the environment."""
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    from app.core.settings import get_settings

    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def _gemini_response(text: str = "Summary text") -> MagicMock:
    mock_resp = MagicMock()
    mock_resp.json.return_value = {
        "candidates": [{"content": {"parts": [{"text": text}]}}],
    }
    mock_resp.raise_for_status.return_value = None
    return mock_resp


# ===========================================================================
# GeminiClient tests
# ===========================================================================


class TestGeminiClientDisabled:
    @pytest.mark.usefixtures("_disable_llm")
    def test_generate_raises_llm_disabled_error(self) -> None:
        client = GeminiClient()
        with pytest.raises(LLMDisabledError, match="GEMINI_API_KEY"):
            client.generate("Hello")

    @pytest.mark.usefixtures("_disable_llm")
    def test_is_available_false_without_key(self) -> None:
        with patch("app.llm.client.httpx.get") as mock_get:
            assert GeminiClient().is_available() is False
        mock_get.assert_not_called()


class TestGeminiClientGenerate:
    @pytest.mark.usefixtures("_enable_llm")
    def test_successful_generate(self) -> None:
        with patch("app.llm.client.httpx.post", return_value=_gemini_response("All good")):
            assert GeminiClient().generate("Analyze") == "All good"

    @pytest.mark.usefixtures("_enable_llm")
    def test_request_shape(self) -> None:
        with patch("app.llm.client.httpx.post", return_value=_gemini_response()) as mock_post:
            GeminiClient().generate("Analyze", system="Be careful")

        args, kwargs = mock_post.call_args
        assert args[0] == "https://gemini.test/v1beta/models/gemini-test:generateContent"
        assert kwargs["headers"] == {"x-goog-api-key": "test-key"}
        assert kwargs["timeout"] == 30
        assert kwargs["json"]["contents"][0]["parts"][0]["text"] == "Analyze"
        assert kwargs["json"]["systemInstruction"] == {"parts": [{"text": "Be careful"}]}

    @pytest.mark.usefixtures("_enable_llm")
    def test_no_system_instruction_when_omitted(self) -> None:
        with patch("app.llm.client.httpx.post", return_value=_gemini_response()) as mock_post:
            GeminiClient().generate("Analyze")
        assert "systemInstruction" not in mock_post.call_args.kwargs["json"]

    @pytest.mark.usefixtures("_enable_llm")
    def test_multiple_parts_joined(self) -> None:
        resp = MagicMock()
        resp.json.return_value = {
            "candidates": [{"content": {"parts": [{"text": "Part one. "}, {"text": "Part two."}]}}]
        }
        with patch("app.llm.client.httpx.post", return_value=resp):
            assert GeminiClient().generate("x") == "Part one. Part two."

    @pytest.mark.usefixtures("_enable_llm")
    def test_empty_candidates_raise(self) -> None:
        resp = MagicMock()
        resp.json.return_value = {"candidates": []}
        with patch("app.llm.client.httpx.post", return_value=resp):
            with pytest.raises(LLMConnectionError, match="no candidate"):
                GeminiClient().generate("x")

    @pytest.mark.usefixtures("_enable_llm")
    def test_explicit_arguments_override_settings(self) -> None:
        client = GeminiClient(api_key="other", model="m2", base_url="https://x.test/", timeout_s=5)
        assert client.api_key == "other"
        assert client.model == "m2"
        assert client.base_url == "https://x.test"
        assert client.timeout_s == 5


class TestGeminiClientErrors:
    @pytest.mark.usefixtures("_enable_llm")
    def test_timeout_raises_llm_timeout_error(self) -> None:
        with patch("app.llm.client.httpx.post", side_effect=httpx.TimeoutException("slow")):
            client = GeminiClient()
            with pytest.raises(LLMTimeoutError, match="30s"):
                client.generate("x")
            assert client.last_latency_ms is not None

    @pytest.mark.usefixtures("_enable_llm")
    def test_connect_error_raises_llm_connection_error(self) -> None:
        with patch("app.llm.client.httpx.post", side_effect=httpx.ConnectError("refused")):
            with pytest.raises(LLMConnectionError, match="Cannot connect"):
                GeminiClient().generate("x")

    @pytest.mark.usefixtures("_enable_llm")
    def test_http_error_raises_llm_connection_error(self) -> None:
        request = httpx.Request("POST", "https://gemini.test")
        response = httpx.Response(403, request=request)
        mock_resp = MagicMock()
        mock_resp.raise_for_status.side_effect = httpx.HTTPStatusError(
            "forbidden", request=request, response=response
        )
        with patch("app.llm.client.httpx.post", return_value=mock_resp):
            with pytest.raises(LLMConnectionError, match="HTTP error"):
                GeminiClient().generate("x")


class TestGeminiClientLatencyAndAvailability:
    @pytest.mark.usefixtures("_enable_llm")
    def test_latency_is_none_before_first_call(self) -> None:
        assert GeminiClient().last_latency_ms is None

    @pytest.mark.usefixtures("_enable_llm")
    def test_latency_set_after_successful_call(self) -> None:
        client = GeminiClient()
        with patch("app.llm.client.httpx.post", return_value=_gemini_response()):
            client.generate("x")
        assert isinstance(client.last_latency_ms, int)
        assert client.last_latency_ms >= 0

    @pytest.mark.usefixtures("_enable_llm")
    def test_available_on_200(self) -> None:
        mock_resp = MagicMock()
        mock_resp.status_code = 200
        with patch("app.llm.client.httpx.get", return_value=mock_resp):
            assert GeminiClient().is_available() is True

    @pytest.mark.usefixtures("_enable_llm")
    def test_unavailable_on_connect_error(self) -> None:
        with patch("app.llm.client.httpx.get", side_effect=httpx.ConnectError("refused")):
            assert GeminiClient().is_available() is False


# ===========================================================================
# Prompt builders
# ===========================================================================


class TestPrompts:
    def test_health_report_prompt_contains_data_and_sections(self) -> None:
        prompt = build_health_report_prompt(
            profile={"blood_group": "A+"},
            vitals=[{"bp_systolic": 120}],
            medications=[{"medicine_name": "Metformin"}],
            health_score=[80, 82],
        )
        assert '- Patient Profile: {"blood_group": "A+"}' in prompt
        assert '- Vital Signs: [{"bp_systolic": 120}]' in prompt
        assert "- Health Score Trend: [80, 82]" in prompt
        for i, name in enumerate(REPORT_SECTIONS, start=1):
            assert f"{i}. {name}" in prompt
        assert prompt.rstrip().endswith("7. Next Steps")

    def test_system_prompt_context(self) -> None:
        system = build_system_prompt(
            profile={"user_id": "u-1", "DOB": "1980-06-15", "blood_group": "B-"},
            medications=[{"medicine_name": "Aspirin", "dosage": "81mg"}],
            today=date(2025, 6, 16),
        )
        assert "- Name: u-1" in system
        assert "- Age: 45" in system
        assert "- Blood group: B-" in system
        assert "- Current medications: Aspirin (81mg)" in system

    def test_system_prompt_placeholders(self) -> None:
        system = build_system_prompt(profile={}, medications=[])
        assert "- Name: Patient" in system
        assert "- Age: Not provided" in system
        assert "- Blood group: Not provided" in system
        assert "- Current medications: None" in system

    @pytest.mark.parametrize(
        ("dob", "expected"),
        [
            ("2000-01-01", 25),
            ("2000-01-01T00:00:00.000Z", 25),
            (date(2000, 1, 1), 25),
            ("not-a-date", None),
            (None, None),
            ("", None),
        ],
    )
    def test_age_from_dob(self, dob, expected) -> None:
        assert age_from_dob(dob, today=date(2025, 6, 1)) == expected
