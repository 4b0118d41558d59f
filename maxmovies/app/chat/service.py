from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager

from maxmovies.app.chat.contracts import (
    DEFAULT_USER_ID,
    FALLBACK_REPLY,
    GenerateRequest,
    GenerateResponse,
    MemorySummary,
)
from maxmovies.app.conversation.service import (
    begin_exchange,
    build_messages,
    complete_exchange,
    new_record,
)
from maxmovies.app.language.service import classify_language, language_instruction
from maxmovies.app.llm.providers import ChatCompletionModel, build_chat_model
from maxmovies.app.memory.store import TranscriptStore
from maxmovies.core.config import AppConfig

LOGGER = logging.getLogger(__name__)


class PromptValidationError(Exception):
    pass


class ConfigurationError(Exception):
    pass


class ChatService:
    """Runs one prompt/reply exchange against a user's stored transcript.

    The load, mutate and save sequence for a user id is serialized within the
    process by a per-user lock. Separate processes sharing a memory directory
    still race with last-write-wins semantics.
    """

    def __init__(
        self,
        config: AppConfig,
        *,
        store: TranscriptStore | None = None,
        model_factory: Callable[[AppConfig], ChatCompletionModel | None] = build_chat_model,
    ) -> None:
        self._config = config
        self._store = store or TranscriptStore(config.memory_dir, seed_record=new_record)
        self._model_factory = model_factory
        self._user_locks: dict[str, asyncio.Lock] = {}
        self._lock_holders: dict[str, int] = {}

    @property
    def store(self) -> TranscriptStore:
        return self._store

    @asynccontextmanager
    async def _serialized(self, user_id: str) -> AsyncIterator[None]:
        lock = self._user_locks.setdefault(user_id, asyncio.Lock())
        self._lock_holders[user_id] = self._lock_holders.get(user_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            # Entries live only while a request holds or waits on the lock.
            remaining = self._lock_holders[user_id] - 1
            if remaining:
                self._lock_holders[user_id] = remaining
            else:
                del self._lock_holders[user_id]
                del self._user_locks[user_id]

    async def generate(self, request: GenerateRequest) -> GenerateResponse:
        prompt = request.prompt
        if not isinstance(prompt, str) or not prompt.strip():
            raise PromptValidationError("Missing or empty prompt parameter.")
        user_id = request.user_id or DEFAULT_USER_ID

        async with self._serialized(user_id):
            record = self._store.load(user_id)
            begin_exchange(record, prompt=prompt, project=request.project)
            tone = classify_language(prompt)
            messages = build_messages(record, language_instruction(tone))

            model = self._model_factory(self._config)
            if model is None:
                raise ConfigurationError("HF_TOKEN is not set")

            reply = await model.complete(messages)
            if not reply:
                LOGGER.warning("Empty completion for user %s, using fallback", user_id)
                reply = FALLBACK_REPLY

            cleaned = complete_exchange(
                record,
                reply,
                max_turns=self._config.max_conversation_turns,
            )
            persisted = self._store.save(user_id, record)

        _emit_exchange_event(
            user_id=user_id,
            tone=tone.value,
            message_count=len(messages),
            conversation_length=len(record.conversation),
            persisted=persisted,
        )
        return GenerateResponse(
            reply=cleaned,
            memory=MemorySummary(
                last_project=record.last_project,
                conversation_length=len(record.conversation),
                user_id=user_id,
            ),
        )


def _emit_exchange_event(**fields: object) -> None:
    LOGGER.info("chat_exchange %s", json.dumps(fields, sort_keys=True))
