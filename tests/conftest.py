from __future__ import annotations

from pathlib import Path

import pytest

from maxmovies.app.conversation.service import new_record
from maxmovies.app.llm.providers import ChatCompletionModel
from maxmovies.app.memory.store import TranscriptStore
from maxmovies.core.config import AppConfig


class FakeChatModel(ChatCompletionModel):
    def __init__(self, reply: str | None = "Try Inception tonight.", error: Exception | None = None) -> None:
        self.reply = reply
        self.error = error
        self.calls: list[list[dict[str, str]]] = []

    async def complete(self, messages: list[dict[str, str]]) -> str | None:
        self.calls.append(messages)
        if self.error is not None:
            raise self.error
        return self.reply


def build_test_config(memory_dir: Path, **overrides: object) -> AppConfig:
    values: dict[str, object] = {
        "app_name": "MaxMovies AI Assistant",
        "app_version": "1.0.0",
        "hf_token": "hf-test-token",
        "hf_api_url": "https://hf.test/v1/chat/completions",
        "hf_model": "meta-llama/Llama-3.2-1B-Instruct",
        "inference_timeout_seconds": 30.0,
        "memory_dir": str(memory_dir),
        "max_conversation_turns": 20,
        "log_level": "INFO",
    }
    values.update(overrides)
    return AppConfig(**values)


@pytest.fixture
def memory_dir(tmp_path: Path) -> Path:
    return tmp_path / "memory"


@pytest.fixture
def test_config(memory_dir: Path) -> AppConfig:
    return build_test_config(memory_dir)


@pytest.fixture
def transcript_store(memory_dir: Path) -> TranscriptStore:
    return TranscriptStore(memory_dir, seed_record=new_record)


@pytest.fixture
def fake_chat_model() -> FakeChatModel:
    return FakeChatModel()
