"""Tests for messages, conversations, config and output models."""

import pytest
from agents import Usage

from agent_loop.errors import ConfigurationError, ConversationError
from agent_loop.models.config import AgentConfig, CompletionSettings
from agent_loop.models.messages import (
    ChunkKind,
    CompletionResponse,
    Conversation,
    Message,
    Role,
    StreamChunk,
    ToolError,
    ToolInvocationRequest,
    ToolResult,
)
from agent_loop.models.outputs import AgentRun, AgentState, ChatResponse, usage_to_dict


# -- Message -------------------------------------------------------------------


class TestMessage:
    def test_factories(self):
        assert Message.system("s").role is Role.SYSTEM
        assert Message.user("u").role is Role.USER
        assert Message.assistant("a").role is Role.ASSISTANT
        tool = Message.tool("out", "call-1", name="add")
        assert tool.role is Role.TOOL
        assert tool.tool_call_id == "call-1"

    def test_role_coerced_from_string(self):
        assert Message("user", "hi").role is Role.USER

    def test_tool_message_requires_call_id(self):
        with pytest.raises(ConversationError, match="tool_call_id"):
            Message(Role.TOOL, "out")

    def test_only_assistant_carries_tool_calls(self):
        call = ToolInvocationRequest("c1", "add", {"a": 1, "b": 2})
        with pytest.raises(ConversationError, match="Only assistant"):
            Message(Role.USER, "hi", tool_calls=(call,))

    def test_to_dict_and_back(self):
        call = ToolInvocationRequest("c1", "add", {"a": 1, "b": 2})
        msg = Message.assistant("", [call])
        d = msg.to_dict()
        assert d == {
            "role": "assistant",
            "content": "",
            "tool_calls": [{"id": "c1", "tool_name": "add", "arguments": {"a": 1, "b": 2}}],
        }
        assert Message.from_dict(d) == msg

    def test_from_dict_none_content(self):
        assert Message.from_dict({"role": "assistant", "content": None}).content == ""


# -- Conversation --------------------------------------------------------------


class TestConversation:
    def test_append_returns_new_conversation(self):
        original = Conversation([Message.user("hi")])
        extended = original.append(Message.assistant("hello"))
        assert len(original) == 1
        assert len(extended) == 2
        assert extended.last.content == "hello"

    def test_accepts_dicts(self):
        conv = Conversation([{"role": "user", "content": "hi"}])
        assert conv[0] == Message.user("hi")

    def test_system_must_be_first(self):
        with pytest.raises(ConversationError, match="must be unique and first"):
            Conversation([Message.user("hi"), Message.system("late")])

    def test_duplicate_system_rejected(self):
        with pytest.raises(ConversationError):
            Conversation([Message.system("a"), Message.system("b")])

    def test_system_message_property(self):
        conv = Conversation([Message.system("be nice"), Message.user("hi")])
        assert conv.system_message.content == "be nice"
        assert Conversation([Message.user("hi")]).system_message is None

    def test_tool_message_needs_prior_request(self):
        with pytest.raises(ConversationError, match="unknown tool_call_id"):
            Conversation([Message.user("hi"), Message.tool("3", "c1")])

    def test_tool_message_after_request(self):
        call = ToolInvocationRequest("c1", "add", {"a": 1, "b": 2})
        conv = Conversation([
            Message.user("add"),
            Message.assistant("", [call]),
            Message.tool("3", "c1"),
        ])
        assert len(conv) == 3

    def test_coerce_keeps_instance(self):
        conv = Conversation()
        assert Conversation.coerce(conv) is conv

    def test_equality_and_hash(self):
        a = Conversation([Message.user("hi")])
        b = Conversation([{"role": "user", "content": "hi"}])
        assert a == b
        assert hash(a) == hash(b)

    def test_to_list_dict(self):
        conv = Conversation([Message.user("hi"), Message.assistant("hello")])
        assert conv.to_list_dict() == [
            {"role": "user", "content": "hi"},
            {"role": "assistant", "content": "hello"},
        ]


# -- Tool outcomes and provider values ----------------------------------------


class TestToolOutcomes:
    def test_result_string_output(self):
        msg = ToolResult("echo", "hello", "c1").to_message()
        assert msg.content == "hello"
        assert msg.tool_call_id == "c1"
        assert msg.name == "echo"

    def test_result_json_encodes_structured_output(self):
        msg = ToolResult("add", {"sum": 3}, "c1").to_message()
        assert msg.content == '{"sum": 3}'

    def test_error_message(self):
        error = ToolError("fail", "boom", "c1")
        assert error.is_error is True
        assert error.to_message().content == "Error: boom"
        assert ToolResult("x", 1, "c").is_error is False


class TestCompletionResponse:
    def test_final_when_no_tool_calls(self):
        assert CompletionResponse(text="done").is_final

    def test_tool_calls_not_final(self):
        call = ToolInvocationRequest("c1", "add", {})
        response = CompletionResponse(tool_calls=[call])
        assert not response.is_final
        assert response.tool_calls == (call,)
        assert response.to_message().tool_calls == (call,)


class TestStreamChunk:
    def test_text_is_not_terminal(self):
        assert not StreamChunk.of_text("hi").is_terminal

    def test_terminal_kinds(self):
        assert StreamChunk.done().kind is ChunkKind.DONE
        assert StreamChunk.done().is_terminal
        assert StreamChunk.of_tool_calls([]).is_terminal


# -- Config --------------------------------------------------------------------


class TestAgentConfig:
    def test_defaults(self):
        c = AgentConfig()
        assert c.temperature == 0.7
        assert c.max_rounds == 5
        assert c.tools == ()

    def test_tools_deduplicated_in_order(self):
        c = AgentConfig(tools=["b", "a", "b"])
        assert c.tools == ("b", "a")

    @pytest.mark.parametrize("temperature", [-0.1, 2.1, "hot", True])
    def test_invalid_temperature(self, temperature):
        with pytest.raises(ConfigurationError, match="temperature"):
            AgentConfig(temperature=temperature)

    @pytest.mark.parametrize("max_rounds", [0, True])
    def test_invalid_max_rounds(self, max_rounds):
        with pytest.raises(ConfigurationError, match="max_rounds"):
            AgentConfig(max_rounds=max_rounds)

    @pytest.mark.parametrize("max_tokens", [0, -5, True, 1.5])
    def test_invalid_max_tokens(self, max_tokens):
        with pytest.raises(ConfigurationError, match="max_tokens"):
            AgentConfig(max_tokens=max_tokens)

    def test_tool_retries_rejects_bool(self):
        with pytest.raises(ConfigurationError, match="tool_retries"):
            AgentConfig(tool_retries=True)

    def test_tools_rejects_bare_string(self):
        with pytest.raises(ConfigurationError, match="sequence of names"):
            AgentConfig(tools="calculator")

    def test_replace_revalidates(self):
        c = AgentConfig(name="a")
        assert c.replace(name="b").name == "b"
        with pytest.raises(ConfigurationError):
            c.replace(temperature=5)

    def test_configuration_error_is_value_error(self):
        with pytest.raises(ValueError):
            AgentConfig(name="")

    def test_completion_settings_from_config(self):
        c = AgentConfig(temperature=0.2, max_tokens=100)
        s = CompletionSettings.from_config(c)
        assert s.temperature == 0.2
        assert s.max_tokens == 100
        assert s.tools == ()


# -- Outputs -------------------------------------------------------------------


class TestOutputs:
    def test_usage_to_dict(self, sample_usage):
        d = usage_to_dict(sample_usage)
        assert d["requests"] == 1
        assert d["input_tokens"] == 100
        assert d["output_tokens"] == 50
        assert d["total_tokens"] == 150
        assert "cached_tokens" in d["input_tokens_details"]

    def test_agent_run_to_dict(self, sample_usage):
        run = AgentRun(
            answer="42",
            conversation=Conversation([Message.user("q"), Message.assistant("42")]),
            rounds=1,
            tools_called=["add"],
            usage=sample_usage,
        )
        d = run.to_dict()
        assert d["answer"] == "42"
        assert d["state"] == AgentState.DONE.value
        assert d["tools_called"] == ["add"]

    def test_chat_response_success(self):
        r = ChatResponse(success=True, response="hi", session_id="s1")
        assert r.to_dict() == {"success": True, "response": "hi", "session_id": "s1"}

    def test_chat_response_error(self):
        r = ChatResponse(success=False, error="boom", error_type="ProviderError")
        d = r.to_dict()
        assert d["error"] == "boom"
        assert d["error_type"] == "ProviderError"
        assert "usage" not in d

    def test_empty_usage_defaults(self):
        assert usage_to_dict(Usage())["total_tokens"] == 0
