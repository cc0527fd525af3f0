"""
Tests for the response sanitizer: URL unwrapping, banned confirmation phrasing, idempotence.
"""
import re

import pytest

from foodlog.sanitizer import CONFIRM_PHRASE, sanitize

# Standalone Y / yes left anywhere in a sanitized answer
_LEFTOVER_Y = re.compile(r"(?<![\w'])(?:y|yes)(?![\w'])", re.IGNORECASE)

BANNED_VARIANTS = [
    "Reply Y to confirm.",
    "Reply 'Y' to confirm or 'N' to cancel.",
    "Please reply with Y to log it.",
    "Reply with the letter Y to confirm.",
    'Reply "yes" to save this food.',
    "Respond with Y to confirm.",
    "Type Y to confirm.",
    "Send Y to log this meal.",
    "Say yes to log this food.",
    "Press Y to confirm.",
    "Confirm by replying Y.",
    "Shall I log it? (Y/N)",
    "Reply Y/N.",
    "(Y/N)",
    "Y to confirm, N to cancel.",
]


@pytest.mark.parametrize("variant", BANNED_VARIANTS)
def test_banned_variant_is_replaced(variant):
    out = sanitize(f"2 eggs = 140 calories. {variant}")
    assert out.startswith("2 eggs = 140 calories.")
    assert CONFIRM_PHRASE in out
    assert not _LEFTOVER_Y.search(out)


def test_exact_replacement():
    text = "Big Mac = 563 calories\nReply Y to confirm."
    assert sanitize(text) == f"Big Mac = 563 calories\n{CONFIRM_PHRASE}"


def test_repeated_instructions_collapse_to_one_phrase():
    out = sanitize("Rice = 200 calories. Reply Y to confirm. Type Y to confirm.")
    assert out == f"Rice = 200 calories. {CONFIRM_PHRASE}"


def test_real_url_wrapper_is_unwrapped():
    text = "Source: [REAL URL: https://www.mcdonalds.com.au/big-mac]"
    assert sanitize(text) == "Source: https://www.mcdonalds.com.au/big-mac"


def test_ordinary_words_survive():
    text = "I logged yesterday's yoghurt. Say hello to your coach."
    assert sanitize(text) == text


def test_existing_confirm_phrase_is_untouched():
    text = f"2 eggs = 140 calories\n{CONFIRM_PHRASE}"
    assert sanitize(text) == text


def test_empty_input():
    assert sanitize("") == ""
    assert sanitize(None) == ""


@pytest.mark.parametrize("text", BANNED_VARIANTS + [
    "",
    "yes",
    "Y to confirm",
    "[REAL URL: [nested]]",
    "[REAL URL: https://a.test] [REAL URL: https://b.test] Reply Y to confirm. Reply Y to confirm.",
    "Which meal is this for - breakfast, lunch, dinner, or snack?",
])
def test_idempotent(text):
    once = sanitize(text)
    assert sanitize(once) == once


@pytest.mark.parametrize("text", [
    "I'd say yes - a medium banana has about 105 calories.",
    "Reply yes if you like it and I'll suggest a recipe.",
    "Press Y on the keypad.",
    "Type Y when you're ready.",
    "Text yes to your friend.",
    "Say yes to adding more vegetables.",
])
def test_yes_without_confirm_purpose_is_left_alone(text):
    assert sanitize(text) == text


def test_prose_answer_does_not_become_loggable():
    from foodlog.conversation.state_machine import AnswerKind, classify_answer
    out = sanitize("I'd say yes - a medium banana has about 105 calories.")
    assert CONFIRM_PHRASE not in out
    assert classify_answer(out) == AnswerKind.OTHER
