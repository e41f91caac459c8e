from types import SimpleNamespace

import pytest
from openai import OpenAIError

import suggest.sources as sources
from suggest.errors import SourceUnavailable
from suggest.sources import ChatCompletionSource, StaticSource, source_from_env


class FakeCompletions:
    def __init__(self, result=None, exc=None):
        self.result = result
        self.exc = exc
        self.calls = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.exc is not None:
            raise self.exc
        return self.result


def fake_client(completions):
    return SimpleNamespace(chat=SimpleNamespace(completions=completions))


def reply(content):
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


def test_chat_source_returns_message_content(monkeypatch):
    completions = FakeCompletions(result=reply('{"placements": [], "rationale": "x"}'))
    source = ChatCompletionSource("key", model="test-model")
    monkeypatch.setattr(source, "_get_client", lambda: fake_client(completions))
    assert source.generate("PROMPT") == '{"placements": [], "rationale": "x"}'
    call = completions.calls[0]
    assert call["model"] == "test-model"
    assert call["messages"][-1] == {"role": "user", "content": "PROMPT"}


def test_chat_source_maps_client_errors(monkeypatch):
    completions = FakeCompletions(exc=OpenAIError("timed out"))
    source = ChatCompletionSource("key")
    monkeypatch.setattr(source, "_get_client", lambda: fake_client(completions))
    with pytest.raises(SourceUnavailable, match="timed out"):
        source.generate("PROMPT")
    assert len(completions.calls) == 1


@pytest.mark.parametrize("result", [SimpleNamespace(choices=[]), reply(None)])
def test_chat_source_without_content_is_unavailable(monkeypatch, result):
    source = ChatCompletionSource("key")
    monkeypatch.setattr(source, "_get_client", lambda: fake_client(FakeCompletions(result=result)))
    with pytest.raises(SourceUnavailable):
        source.generate("PROMPT")


def test_chat_source_client_disables_retries():
    source = ChatCompletionSource("key", timeout=5.0)
    assert source._client_kwargs["max_retries"] == 0
    assert source._client_kwargs["timeout"] == 5.0


def test_chat_source_requires_key():
    with pytest.raises(ValueError):
        ChatCompletionSource("")


def test_source_from_env(monkeypatch):
    monkeypatch.setattr(sources, "SUGGEST_API_KEY", "")
    assert source_from_env() is None
    monkeypatch.setattr(sources, "SUGGEST_API_KEY", "secret")
    assert isinstance(source_from_env(), ChatCompletionSource)


def test_static_source_records_payloads():
    source = StaticSource("text")
    assert source.generate("a") == "text"
    assert source.generate("b") == "text"
    assert source.calls == ["a", "b"]
