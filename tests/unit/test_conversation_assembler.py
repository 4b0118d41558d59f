from maxmovies.app.conversation.service import (
    SYSTEM_PROMPT,
    begin_exchange,
    build_messages,
    cap_conversation,
    complete_exchange,
    new_record,
    sanitize_reply,
)
from maxmovies.app.memory.contracts import ConversationTurn


def test_new_record_is_seeded_with_single_system_turn() -> None:
    record = new_record("alice")

    assert record.user_id == "alice"
    assert record.last_project is None
    assert record.last_task is None
    assert len(record.conversation) == 1
    assert record.conversation[0].role == "system"
    assert "MaxMovies AI" in record.conversation[0].content


def test_begin_exchange_updates_metadata_and_appends_user_turn() -> None:
    record = new_record("alice")

    begin_exchange(record, prompt="Recommend a heist film", project="weekend")

    assert record.last_project == "weekend"
    assert record.last_task == "Recommend a heist film"
    assert record.conversation[-1] == ConversationTurn(
        role="user", content="Recommend a heist film"
    )


def test_begin_exchange_keeps_previous_project_when_none_given() -> None:
    record = new_record("alice")
    record.last_project = "watchlist"

    begin_exchange(record, prompt="Anything new?", project=None)

    assert record.last_project == "watchlist"


def test_build_messages_appends_instruction_to_working_copy_only() -> None:
    record = new_record("alice")
    begin_exchange(record, prompt="hi", project=None)

    first = build_messages(record, "Respond in English.")
    second = build_messages(record, "Respond in Swahili.")

    assert first[0]["content"] == f"{SYSTEM_PROMPT}\n\nRespond in English."
    assert second[0]["content"] == f"{SYSTEM_PROMPT}\n\nRespond in Swahili."
    assert record.conversation[0].content == SYSTEM_PROMPT
    assert first[1] == {"role": "user", "content": "hi"}


def test_sanitize_reply_strips_self_references_case_insensitively() -> None:
    cleaned = sanitize_reply("As an AI Language Model, I think Heat is great.")

    assert "as an ai" not in cleaned.lower()
    assert "language model" not in cleaned.lower()
    assert cleaned.endswith("I think Heat is great.")


def test_sanitize_reply_leaves_clean_text_unchanged() -> None:
    text = "Watch Arrival, then Sicario."

    assert sanitize_reply(text) == text


def test_cap_conversation_keeps_system_turn_and_latest_turns() -> None:
    turns = [ConversationTurn(role="system", content="persona")] + [
        ConversationTurn(role="user", content=str(index)) for index in range(25)
    ]

    capped = cap_conversation(turns, 20)

    assert len(capped) == 20
    assert capped[0] == turns[0]
    assert [turn.content for turn in capped[1:]] == [str(i) for i in range(6, 25)]
    assert cap_conversation(capped, 20) == capped


def test_complete_exchange_appends_sanitized_assistant_turn() -> None:
    record = new_record("alice")
    begin_exchange(record, prompt="hi", project=None)

    cleaned = complete_exchange(record, "As an AI, hello!")

    assert cleaned == ", hello!"
    assert record.conversation[-1] == ConversationTurn(role="assistant", content=", hello!")
    assert len(record.conversation) == 3
