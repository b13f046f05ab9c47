"""Tests for prompt message normalization."""

import copy

from mcp import types

from llm_brain.transform import transform_messages


def test_wraps_text_into_content_part():
    messages = [
        types.PromptMessage(role="user", content=types.TextContent(type="text", text="Hello")),
        types.PromptMessage(role="assistant", content=types.TextContent(type="text", text="Hi!")),
    ]

    result = transform_messages(messages)

    assert result == [
        {"role": "user", "content": [{"type": "text", "text": "Hello"}]},
        {"role": "assistant", "content": [{"type": "text", "text": "Hi!"}]},
    ]


def test_preserves_order_and_roles_for_dicts():
    messages = [
        {"role": "user", "content": {"type": "text", "text": str(i)}} for i in range(5)
    ]

    result = transform_messages(messages)

    assert [m["content"][0]["text"] for m in result] == ["0", "1", "2", "3", "4"]
    assert all(m["role"] == "user" for m in result)


def test_content_without_text_passes_through_with_none():
    image = types.PromptMessage(
        role="user",
        content=types.ImageContent(type="image", data="aGk=", mimeType="image/png"),
    )

    result = transform_messages([image])

    assert result == [{"role": "user", "content": [{"type": "image", "text": None}]}]


def test_pure_and_repeatable():
    messages = [{"role": "user", "content": {"type": "text", "text": "Hello"}}]
    snapshot = copy.deepcopy(messages)

    first = transform_messages(messages)
    second = transform_messages(messages)

    assert first == second
    assert first is not second
    assert messages == snapshot


def test_empty_input():
    assert transform_messages([]) == []
