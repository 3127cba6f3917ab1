from types import SimpleNamespace

import pytest

import core.ai_client as ai_client


@pytest.fixture(autouse=True)
def reset_client(monkeypatch, tmp_path):
    monkeypatch.setattr(ai_client, "_ai_client", None)
    monkeypatch.setattr(ai_client, "AI_API_KEY", "")
    monkeypatch.setattr(ai_client, "AI_API_KEY_FILE", tmp_path / "ai_api_key.txt")


def test_key_from_environment_wins(monkeypatch):
    monkeypatch.setattr(ai_client, "AI_API_KEY", "sk-env")
    ai_client.AI_API_KEY_FILE.write_text("sk-file\n", encoding="utf-8")

    assert ai_client.load_api_key() == "sk-env"


def test_key_from_file(monkeypatch):
    ai_client.AI_API_KEY_FILE.write_text("  sk-file\n", encoding="utf-8")

    assert ai_client.load_api_key() == "sk-file"


def test_no_key_means_no_client():
    assert ai_client.load_api_key() is None
    assert ai_client.get_ai_client() is None

    with pytest.raises(RuntimeError):
        ai_client.complete("hello")


def test_complete_returns_first_choice(monkeypatch):
    calls = []

    def create(**kwargs):
        calls.append(kwargs)
        message = SimpleNamespace(content="ACTION: VIEW")
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])

    fake = SimpleNamespace(chat=SimpleNamespace(completions=SimpleNamespace(create=create)))
    monkeypatch.setattr(ai_client, "_ai_client", fake)

    assert ai_client.complete("what's on today?") == "ACTION: VIEW"
    assert calls[0]["messages"] == [{"role": "user", "content": "what's on today?"}]
    assert calls[0]["temperature"] == 0
