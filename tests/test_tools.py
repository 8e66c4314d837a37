"""Tests for the built-in calculator and HTTP request tools."""

import math

import httpx
import pytest
import respx

from agent_loop.core import Agent
from agent_loop.models.config import AgentConfig
from agent_loop.models.messages import ToolError, ToolInvocationRequest
from agent_loop.registry.tool_registry import ToolRegistry
from agent_loop.tools import CalculatorError, CalculatorTool, HttpRequestTool, HttpToolError, evaluate
from agent_loop.tools.calculator import CalculatorParams
from agent_loop.tools.http import HttpRequestParams

from conftest import ScriptedProvider, answer, tool_calls


# -- Calculator ----------------------------------------------------------------


class TestEvaluate:
    @pytest.mark.parametrize(
        "expression, expected",
        [
            ("2 + 3 * 4", 14.0),
            ("(2 + 3) * 4", 20.0),
            ("-5 + +2", -3.0),
            ("7 // 2", 3.0),
            ("7 % 4", 3.0),
            ("2 ** 10", 1024.0),
            ("10 / 4", 2.5),
            ("sqrt(16) + abs(-2)", 6.0),
            ("floor(2.7) + ceil(2.1)", 5.0),
            ("round(2.567, 2)", 2.57),
        ],
    )
    def test_arithmetic(self, expression, expected):
        assert evaluate(expression) == pytest.approx(expected)

    def test_constants(self):
        assert evaluate("2 * pi") == pytest.approx(2 * math.pi)
        assert evaluate("log(e)") == pytest.approx(1.0)

    def test_returns_float(self):
        assert isinstance(evaluate("1 + 1"), float)

    @pytest.mark.parametrize(
        "expression, message",
        [
            ("", "empty expression"),
            ("2 +", "invalid syntax"),
            ("1 / 0", "division by zero"),
            ("sqrt(-1)", "math domain error"),
            ("__import__('os')", "unsupported function"),
            ("x + 1", "unknown name 'x'"),
            ("'a' * 3", "unsupported literal"),
            ("[1, 2]", "unsupported expression"),
            ("2 ** 100000", "too large"),
            ("(9 ** 9999) ** 9999", "result is too large"),
            ("(2 ** 3000) ** 5", "result is too large"),
        ],
    )
    def test_invalid(self, expression, message):
        with pytest.raises(CalculatorError, match=message):
            evaluate(expression)

    def test_error_prefix(self):
        with pytest.raises(CalculatorError, match="^Calculation error: "):
            evaluate("1 / 0")


class TestCalculatorTool:
    def test_definition(self):
        definition = CalculatorTool().definition()
        assert definition.name == "calculator"
        assert definition.parameter_schema["required"] == ["expression"]

    async def test_call(self):
        assert await CalculatorTool().call(CalculatorParams(expression="6 * 7")) == 42.0

    async def test_error_reaches_model_as_tool_error(self):
        registry = ToolRegistry([CalculatorTool()])
        outcome = await registry.invoke(
            ToolInvocationRequest("c1", "calculator", {"expression": "1 / 0"})
        )
        assert isinstance(outcome, ToolError)
        assert outcome.to_message().content == "Error: Calculation error: division by zero"

    async def test_agent_uses_calculator(self):
        provider = ScriptedProvider([
            tool_calls(("c1", "calculator", {"expression": "12 * 7"})),
            answer("12 * 7 = 84"),
        ])
        agent = Agent(provider, AgentConfig(tools=("calculator",)), ToolRegistry([CalculatorTool()]))

        run = await agent.run([{"role": "user", "content": "What is 12 * 7?"}])
        assert run.answer == "12 * 7 = 84"
        assert provider.calls[1].last.content == "84.0"


# -- HTTP request --------------------------------------------------------------


class TestHttpRequestTool:
    def test_definition(self):
        schema = HttpRequestTool().definition().parameter_schema
        assert schema["required"] == ["url"]
        assert schema["properties"]["method"]["default"] == "GET"

    @respx.mock
    async def test_get_by_default(self):
        route = respx.get("https://example.com/data").mock(
            return_value=httpx.Response(200, text="hello")
        )
        result = await HttpRequestTool().call(HttpRequestParams(url="https://example.com/data"))
        assert result == "hello"
        assert route.called

    @respx.mock
    async def test_empty_method_means_get(self):
        respx.get("https://example.com/").mock(return_value=httpx.Response(200, text="ok"))
        tool = HttpRequestTool()
        assert await tool.call(HttpRequestParams(url="https://example.com/", method="")) == "ok"

    @respx.mock
    async def test_method_case_insensitive(self):
        route = respx.post("https://example.com/items").mock(
            return_value=httpx.Response(201, text="created")
        )
        params = HttpRequestParams(url="https://example.com/items", method="post")
        assert await HttpRequestTool().call(params) == "created"
        assert route.calls[0].request.method == "POST"

    @respx.mock
    async def test_error_status_returns_body(self):
        respx.get("https://example.com/missing").mock(
            return_value=httpx.Response(404, text="not found")
        )
        params = HttpRequestParams(url="https://example.com/missing")
        assert await HttpRequestTool().call(params) == "not found"

    async def test_invalid_method(self):
        with pytest.raises(HttpToolError, match="Invalid method 'FETCH'"):
            await HttpRequestTool().call(HttpRequestParams(url="https://example.com", method="FETCH"))

    @respx.mock
    async def test_transport_error(self):
        respx.get("https://down.example.com/").mock(side_effect=httpx.ConnectError("refused"))
        with pytest.raises(HttpToolError, match="^HTTP error: refused"):
            await HttpRequestTool().call(HttpRequestParams(url="https://down.example.com/"))

    @respx.mock
    async def test_truncates_long_bodies(self):
        respx.get("https://example.com/big").mock(return_value=httpx.Response(200, text="x" * 50))
        tool = HttpRequestTool(max_chars=10)
        result = await tool.call(HttpRequestParams(url="https://example.com/big"))
        assert result.startswith("x" * 10)
        assert "[truncated 40 chars]" in result

    @respx.mock
    async def test_uses_injected_client(self):
        respx.get("https://example.com/shared").mock(return_value=httpx.Response(200, text="shared"))
        async with httpx.AsyncClient() as client:
            tool = HttpRequestTool(client=client)
            assert await tool.call(HttpRequestParams(url="https://example.com/shared")) == "shared"
