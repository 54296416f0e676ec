# tests/test_llm_client.py

from __future__ import annotations

from types import SimpleNamespace

import pytest

from devcoach.errors import ApiError, ConfigError, NetworkError, ValidationError
from devcoach.llm import client as client_mod
from devcoach.llm.client import CoachLLMClient, ai_status, check_ai_connection, get_ai_response
from devcoach.llm.offline import FALLBACK_RESPONSES, OfflineLLMClient

from .fakes import FailingLLMClient, FakeLLMClient


# Stand-ins matched by class name, like the SDK's own exception types.
class RateLimitError(Exception):
    pass


class APIConnectionError(Exception):
    pass


class NotFoundError(Exception):
    pass


class AuthenticationError(Exception):
    pass


def _reply(text: str) -> SimpleNamespace:
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=text))])


class ScriptedCompletions:
    """Answers per model: an exception instance is raised, a string is returned."""

    def __init__(self, script: dict[str, object]) -> None:
        self.script = script
        self.models: list[str] = []

    def create(self, *, model: str, messages, timeout):
        self.models.append(model)
        outcome = self.script[model]
        if isinstance(outcome, Exception):
            raise outcome
        return _reply(str(outcome))


@pytest.fixture()
def llm(settings, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(client_mod, "_BAD_MODELS", {})
    client = CoachLLMClient(settings)

    def install(script: dict[str, object]) -> ScriptedCompletions:
        completions = ScriptedCompletions(script)
        fake_sdk = SimpleNamespace(chat=SimpleNamespace(completions=completions))
        monkeypatch.setattr(client, "_get_client", lambda _key: fake_sdk)
        return completions

    return client, install


def test_first_model_answers(llm) -> None:
    client, install = llm
    calls = install({"model-a": "  keep going  ", "model-b": "unused"})
    assert client.generate_reply("hi", "key") == "keep going"
    assert calls.models == ["model-a"]


def test_falls_back_on_rate_limit(llm) -> None:
    client, install = llm
    calls = install({"model-a": RateLimitError("slow down"), "model-b": "from b"})
    assert client.generate_reply("hi", "key") == "from b"
    assert calls.models == ["model-a", "model-b"]


def test_not_found_model_is_skipped_next_time(llm) -> None:
    client, install = llm
    calls = install({"model-a": NotFoundError("404"), "model-b": "from b"})
    client.generate_reply("hi", "key")
    client.generate_reply("hi again", "key")
    assert calls.models == ["model-a", "model-b", "model-b"]


def test_auth_error_fails_fast(llm) -> None:
    client, install = llm
    calls = install({"model-a": AuthenticationError("401"), "model-b": "never"})
    with pytest.raises(ApiError):
        client.generate_reply("hi", "key")
    assert calls.models == ["model-a"]


def test_connection_errors_everywhere_raise_network_error(llm) -> None:
    client, install = llm
    install({"model-a": APIConnectionError("down"), "model-b": APIConnectionError("down")})
    with pytest.raises(NetworkError):
        client.generate_reply("hi", "key")


def test_empty_replies_raise_api_error(llm) -> None:
    client, install = llm
    install({"model-a": "", "model-b": "   "})
    with pytest.raises(ApiError):
        client.generate_reply("hi", "key")


@pytest.mark.parametrize(("prompt", "key"), [("", "key"), ("   ", "key"), ("hi", ""), ("hi", None)])
def test_bad_arguments_are_validation_errors(llm, prompt, key) -> None:
    client, _install = llm
    with pytest.raises(ValidationError):
        client.generate_reply(prompt, key)


def test_empty_model_list_is_rejected(settings) -> None:
    settings.llm_models = []
    with pytest.raises(ConfigError):
        CoachLLMClient(settings)


def test_chat_without_key_explains_how_to_set_it(state) -> None:
    reply = get_ai_response(state, "hello")
    assert "/config set ai_api_key" in reply
    assert state.llm.calls == []


def test_chat_uses_config_key_over_environment(state) -> None:
    state.settings.ai_api_key = "env-key"
    state.config.data.ai_api_key = "config-key"
    state.llm = FakeLLMClient("Nice progress!")

    assert get_ai_response(state, "done with the parser") == "AI Coach: Nice progress!"
    prompt, key, timeout = state.llm.calls[0]
    assert key == "config-key"
    assert timeout == state.settings.chat_timeout_seconds
    assert prompt.endswith("done with the parser")


def test_chat_falls_back_when_ai_fails(state) -> None:
    state.settings.ai_api_key = "env-key"
    state.llm = FailingLLMClient()

    reply = get_ai_response(state, "hello")

    assert reply.startswith("AI Coach: ")
    assert reply.removeprefix("AI Coach: ") in FALLBACK_RESPONSES


def test_connection_check(state) -> None:
    assert check_ai_connection(state)[0] is False

    state.config.data.ai_api_key = "key"
    ok, _msg = check_ai_connection(state)
    assert ok
    assert state.llm.calls[0][2] == state.settings.test_timeout_seconds

    state.llm = FailingLLMClient()
    ok, msg = check_ai_connection(state)
    assert not ok
    assert "Network" in msg


def test_ai_status_reports_key_source(state) -> None:
    assert ai_status(state)["api_key"] == "not set"
    state.settings.ai_api_key = "env-key"
    assert ai_status(state)["api_key_source"] == "environment"
    state.config.data.ai_api_key = "config-key"
    assert ai_status(state)["api_key_source"] == "config"


def test_offline_client_returns_canned_reply() -> None:
    assert OfflineLLMClient().generate_reply("anything", "key") in FALLBACK_RESPONSES
