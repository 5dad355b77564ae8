"""Tests for the simple agent loop using a fake streaming client"""
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

from simple_agent import AgentThread, main, run_agent, should_quit


def text_block(text):
    return SimpleNamespace(type="text", text=text)


def tool_block(tool_id, name, tool_input):
    return SimpleNamespace(type="tool_use", id=tool_id, name=name, input=tool_input)


def message(stop_reason, *content):
    return SimpleNamespace(stop_reason=stop_reason, content=list(content))


class FakeStream:
    """Mimics the context manager returned by client.messages.stream"""

    def __init__(self, response):
        self.response = response

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        return False

    def __iter__(self):
        for block in self.response.content:
            if block.type == "text":
                yield SimpleNamespace(
                    type="content_block_delta",
                    delta=SimpleNamespace(text=block.text)
                )

    def get_final_message(self):
        return self.response


def fake_client(*responses):
    client = MagicMock()
    client.messages.stream.side_effect = [FakeStream(r) for r in responses]
    return client


def test_plain_reply(capsys):
    """Test a reply without tools ends the turn"""
    client = fake_client(message("end_turn", text_block("Hello!")))
    thread = AgentThread()

    reply = run_agent("Hi", thread, client=client)

    assert reply == "Hello!"
    assert len(thread) == 2
    assert thread.messages[0] == {"role": "user", "content": "Hi"}
    assert "Hello!" in capsys.readouterr().out


def test_tool_round_trip(capsys):
    """Test tool_use blocks are executed and fed back as tool results"""
    client = fake_client(
        message("tool_use", tool_block("tu_1", "get_weather", {"location": "Seattle"})),
        message("end_turn", text_block("It is rainy in Seattle.")),
    )
    thread = AgentThread()

    reply = run_agent("What's the weather like in Seattle?", thread, client=client)

    assert reply == "It is rainy in Seattle."
    assert client.messages.stream.call_count == 2

    tool_results = thread.messages[2]
    assert tool_results["role"] == "user"
    assert tool_results["content"] == [{
        "type": "tool_result",
        "tool_use_id": "tu_1",
        "content": "Weather in Seattle: Rainy, 12°C (53°F)"
    }]

    out = capsys.readouterr().out
    assert "get_weather" in out


def test_parallel_tool_calls():
    """Test several tool_use blocks in one response are all answered"""
    client = fake_client(
        message(
            "tool_use",
            text_block("Checking both cities."),
            tool_block("tu_1", "get_weather", {"location": "London"}),
            tool_block("tu_2", "get_weather", {"location": "Paris"}),
        ),
        message("end_turn", text_block("London is cloudy, Paris is sunny.")),
    )
    thread = AgentThread()

    run_agent("Compare the weather in London and Paris", thread, client=client)

    results = thread.messages[2]["content"]
    assert [r["tool_use_id"] for r in results] == ["tu_1", "tu_2"]
    assert "Cloudy" in results[0]["content"]
    assert "Sunny" in results[1]["content"]


def test_malformed_tool_call_reported_as_error():
    """Test a missing argument becomes an error result instead of raising"""
    client = fake_client(
        message("tool_use", tool_block("tu_1", "get_current_time", {})),
        message("end_turn", text_block("Which timezone?")),
    )
    thread = AgentThread()

    reply = run_agent("What time is it?", thread, client=client)

    result = thread.messages[2]["content"][0]
    assert result["is_error"] is True
    assert "get_current_time" in result["content"]
    assert reply == "Which timezone?"


@pytest.mark.parametrize("tool_name, tool_input", [
    ("get_weather", {"location": 42}),
    ("get_weather", {"location": None}),
    ("get_weather", {"location": ["Seattle"]}),
    ("get_current_time", {"timezone": None}),
    ("get_current_time", {"timezone": 9}),
    ("get_current_time", "JST"),
])
def test_wrong_typed_arguments_keep_thread_valid(tool_name, tool_input):
    """Test non-string arguments become error results and the next turn still runs"""
    client = fake_client(
        message("tool_use", tool_block("tu_1", tool_name, tool_input)),
        message("end_turn", text_block("Please give me a name.")),
        message("end_turn", text_block("Next answer.")),
    )
    thread = AgentThread()

    reply = run_agent("Bad call", thread, client=client)

    result = thread.messages[2]["content"][0]
    assert result["is_error"] is True
    assert result["tool_use_id"] == "tu_1"
    assert tool_name in result["content"]
    assert reply == "Please give me a name."

    # every tool_use is answered, so a second turn on the thread is well formed
    assert run_agent("Next", thread, client=client) == "Next answer."
    assert [m["role"] for m in thread.messages] == [
        "user", "assistant", "user", "assistant", "user", "assistant",
    ]


def test_unknown_tool_name():
    client = fake_client(
        message("tool_use", tool_block("tu_1", "calculator", {"a": 1})),
        message("end_turn", text_block("Sorry.")),
    )
    thread = AgentThread()

    run_agent("Add numbers", thread, client=client)

    assert thread.messages[2]["content"][0]["content"] == "Tool not found: calculator"


def test_thread_is_shared_across_turns():
    """Test the second turn sends the history of the first"""
    client = fake_client(
        message("end_turn", text_block("First.")),
        message("end_turn", text_block("Second.")),
    )
    thread = AgentThread()

    run_agent("One", thread, client=client)
    run_agent("Two", thread, client=client)

    assert len(thread) == 4
    assert [m["role"] for m in thread.messages] == ["user", "assistant", "user", "assistant"]
    sent = client.messages.stream.call_args.kwargs
    assert sent["messages"] is thread.messages
    assert sent["tools"]


def test_max_iterations(capsys):
    """Test the loop stops when the model keeps requesting tools"""
    responses = [
        message("tool_use", tool_block(f"tu_{i}", "get_weather", {"location": "Tokyo"}))
        for i in range(3)
    ]
    client = fake_client(*responses)

    run_agent("Loop", AgentThread(), client=client, max_iterations=3)

    assert client.messages.stream.call_count == 3
    assert "Max iterations (3)" in capsys.readouterr().out


def test_should_quit():
    assert should_quit("quit")
    assert should_quit("QUIT")
    assert should_quit("   ")
    assert should_quit("")
    assert should_quit(None)
    assert not should_quit("What time is it in Tokyo?")


def test_main_runs_demo_then_interactive(monkeypatch, capsys):
    """Test demo queries run before interactive input and quit stops the loop"""
    calls = []

    def fake_run_agent(user_message, thread):
        calls.append((user_message, thread))
        return "ok"

    monkeypatch.setattr("simple_agent.run_agent", fake_run_agent)
    inputs = iter(["What time is it in PST?", "quit", "never read"])

    main(read_input=lambda prompt: next(inputs))

    assert [c[0] for c in calls] == [
        "What's the weather like in Seattle?",
        "What time is it in Tokyo?",
        "Compare the weather in London and Paris",
        "What time is it in PST?",
    ]
    assert len({id(c[1]) for c in calls}) == 1
    out = capsys.readouterr().out
    assert "=== Simple Agent with Tools Demo ===" in out
    assert "--- Interactive Mode ---" in out


def test_main_stops_on_eof(monkeypatch):
    monkeypatch.setattr("simple_agent.run_agent", lambda user_message, thread: "ok")

    def raise_eof(prompt):
        raise EOFError

    main(read_input=raise_eof)
