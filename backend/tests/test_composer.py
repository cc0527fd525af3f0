"""
Tests for prompt composition: message order, optional blocks, history window, images.
"""
from foodlog.extraction.structured import PAYLOAD_MARKER
from foodlog.llm.composer import ChatTurn, PromptComposer
from foodlog.llm.prompts import (
    DEFAULT_IMAGE_PROMPT,
    MEAL_TYPE_OVERRIDE,
    PERSONA_PROMPT,
    task_instruction,
)
from foodlog.models.entries import LogRequest, RequestKind, SearchContext


def _system_texts(messages):
    return [m["content"] for m in messages if m["role"] == "system"]


def test_minimal_prompt_order():
    composer = PromptComposer(history_window=4, user_weight_kg=70)
    messages = composer.compose(LogRequest(text="2 eggs"))

    assert messages[0] == {"role": "system", "content": PERSONA_PROMPT}
    assert messages[1]["role"] == "system"
    assert "2 eggs = 140 calories" in messages[1]["content"]
    assert PAYLOAD_MARKER in messages[1]["content"]
    assert messages[-1] == {"role": "user", "content": "2 eggs"}
    assert len(messages) == 3


def test_payload_directive_can_be_disabled():
    composer = PromptComposer(user_weight_kg=70, request_structured_payload=False)
    messages = composer.compose(LogRequest(text="2 eggs"))
    assert PAYLOAD_MARKER not in messages[1]["content"]


def test_search_block_only_when_context_present():
    composer = PromptComposer(user_weight_kg=70)
    empty = composer.compose(LogRequest(text="banana"), search=SearchContext())
    assert len(_system_texts(empty)) == 2

    ctx = SearchContext(context="[REAL URL: https://x.test]\nBanana 105 cal", domains=["x.test"])
    grounded = composer.compose(LogRequest(text="banana"), search=ctx)
    systems = _system_texts(grounded)
    assert len(systems) == 3
    assert systems[2].startswith("NUTRITION DATA FROM WEB SEARCH:")
    assert "Banana 105 cal" in systems[2]


def test_meal_type_override_follows_search_block():
    composer = PromptComposer(user_weight_kg=70)
    ctx = SearchContext(context="Sandwich 400 cal", domains=["x.test"])
    messages = composer.compose(LogRequest(text="chicken sandwich"), search=ctx, needs_meal_type=True)
    systems = _system_texts(messages)
    assert systems[-1] == MEAL_TYPE_OVERRIDE
    assert systems[2].startswith("NUTRITION DATA")


def test_exercise_instruction_uses_body_weight():
    composer = PromptComposer(user_weight_kg=82.5)
    messages = composer.compose(LogRequest(text="30 min run"), kind=RequestKind.EXERCISE)
    assert "82.5 kg" in messages[1]["content"]
    assert "calories burned" in messages[1]["content"]


def test_weight_instruction():
    assert "Weight logged:" in task_instruction(RequestKind.WEIGHT, 70)


def test_history_window_keeps_latest_turns_in_order():
    composer = PromptComposer(history_window=4, user_weight_kg=70)
    history = [ChatTurn("user" if i % 2 == 0 else "assistant", f"turn {i}") for i in range(6)]
    messages = composer.compose(LogRequest(text="now"), history=history)

    replayed = [m["content"] for m in messages if m["role"] in ("user", "assistant")][:-1]
    assert replayed == ["turn 2", "turn 3", "turn 4", "turn 5"]


def test_history_window_zero_sends_no_history():
    composer = PromptComposer(history_window=0, user_weight_kg=70)
    messages = composer.compose(LogRequest(text="now"), history=[ChatTurn("user", "earlier")])
    assert [m["content"] for m in messages if m["role"] == "user"] == ["now"]


def test_image_turn_builds_content_parts():
    composer = PromptComposer(user_weight_kg=70)
    messages = composer.compose(LogRequest(text="", image=b"\xff\xd8\xff"))

    parts = messages[-1]["content"]
    assert isinstance(parts, list)
    assert parts[0] == {"type": "text", "text": DEFAULT_IMAGE_PROMPT}
    assert parts[1]["type"] == "image_url"
    assert parts[1]["image_url"]["url"].startswith("data:image/jpeg;base64,")
