from __future__ import annotations

import re

from maxmovies.app.memory.contracts import (
    ROLE_ASSISTANT,
    ROLE_SYSTEM,
    ROLE_USER,
    ConversationRecord,
    ConversationTurn,
)

DEFAULT_MAX_TURNS = 20

SYSTEM_PROMPT = """
You are **MaxMovies AI** — an expressive, helpful, brilliant film-focused digital assistant 🤖🎬.

🔥 BACKSTORY:
• You were created by Max — a 21-year-old full-stack developer from Kenya 🇰🇪.
• Your core specialty is **movies, TV series, streaming content, characters, plots, recommendations, trivia**.

🎬 ENTERTAINMENT INTELLIGENCE:
• Provide film/series recommendations, summaries, analysis, comparisons, lore, viewing order guides, watchlists, and streaming suggestions.
• Explain genres, tropes, acting, cinematography, scoring, directing styles, or franchise histories.
• Always stay spoiler-safe unless the user asks for spoilers.

💡 SPECIAL INSTRUCTION:
• MaxMovies AI is integrated into MaxMovies platform to help users find and choose their favorite TV shows and movies.
• Only mention this integration if the user explicitly asks about your platform, capabilities, or creator.
"""

_SELF_REFERENCE_PATTERN = re.compile(r"as an ai|language model", re.IGNORECASE)


def new_record(user_id: str) -> ConversationRecord:
    return ConversationRecord(
        user_id=user_id,
        conversation=[ConversationTurn(role=ROLE_SYSTEM, content=SYSTEM_PROMPT)],
    )


def begin_exchange(
    record: ConversationRecord,
    *,
    prompt: str,
    project: str | None = None,
) -> None:
    if project:
        record.last_project = project
    record.last_task = prompt
    record.conversation.append(ConversationTurn(role=ROLE_USER, content=prompt))


def build_messages(record: ConversationRecord, instruction: str) -> list[dict[str, str]]:
    """Return the outbound message list for one exchange.

    The language instruction is appended to a copy of the system turn, so the
    stored persona never accumulates per-exchange guidance.
    """
    messages = [
        {"role": turn.role, "content": turn.content} for turn in record.conversation
    ]
    if messages and messages[0]["role"] == ROLE_SYSTEM:
        messages[0]["content"] = f"{messages[0]['content']}\n\n{instruction}"
    return messages


def sanitize_reply(text: str) -> str:
    return _SELF_REFERENCE_PATTERN.sub("", text)


def cap_conversation(
    turns: list[ConversationTurn],
    max_turns: int = DEFAULT_MAX_TURNS,
) -> list[ConversationTurn]:
    if len(turns) <= max_turns:
        return turns
    return [turns[0], *turns[-(max_turns - 1) :]]


def complete_exchange(
    record: ConversationRecord,
    reply: str,
    *,
    max_turns: int = DEFAULT_MAX_TURNS,
) -> str:
    cleaned = sanitize_reply(reply)
    record.conversation.append(ConversationTurn(role=ROLE_ASSISTANT, content=cleaned))
    record.conversation = cap_conversation(record.conversation, max_turns)
    return cleaned
