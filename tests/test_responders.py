"""Responder 및 금융 도구 테스트"""

from unittest.mock import Mock

import pytest

from intent_router.core.cancellation import CancellationToken
from intent_router.core.errors import AgentInvocationError, ProviderNotConfiguredError
from intent_router.services.orchestration.finance_tools import (
    build_tool_context,
    calc_fees,
    fx_get_rate,
    infer_fx_intent,
)
from intent_router.services.orchestration.models import DomainConfig, Label, Request
from intent_router.services.orchestration.responders import (
    CodeResponder,
    FinanceResponder,
    GeneralResponder,
    SearchResult,
)


class TestFinanceTools:
    """환율/수수료 도구 테스트"""

    @pytest.mark.parametrize(
        "base, quote, rate",
        [("USD", "ILS", 3.6), ("EUR", "ILS", 3.85), ("usd", "eur", 0.93), ("GBP", "JPY", 3.6)],
    )
    def test_fx_get_rate(self, base, quote, rate):
        result = fx_get_rate(base, quote)

        assert result["ok"] is True
        assert result["rate"] == rate

    def test_calc_fees_minimum_applies(self):
        result = calc_fees(1000, percent=0.3, min_fee=5)

        assert result["perc_fee"] == 3.0
        assert result["total"] == 5

    def test_calc_fees_percentage_applies(self):
        result = calc_fees(20000, percent=0.25, min_fee=2)

        assert result["total"] == 50.0

    def test_infer_pair_from_codes(self):
        guess = infer_fx_intent("Convert 1,500 EUR to USD with a 2% spread")

        assert (guess.base, guess.quote) == ("EUR", "USD")
        assert guess.amount == 1500
        assert guess.percent == 2

    def test_infer_pair_from_words(self):
        guess = infer_fx_intent("how many shekels for a dollar")

        assert {guess.base, guess.quote} == {"ILS", "USD"}

    def test_infer_defaults(self):
        guess = infer_fx_intent("what is a currency")

        assert (guess.base, guess.quote) == ("USD", "ILS")
        assert guess.amount is None

    def test_ignores_non_currency_words(self):
        """세 글자 일반 단어는 통화로 보지 않음"""
        guess = infer_fx_intent("HOW much EUR for THE ILS")

        assert (guess.base, guess.quote) == ("EUR", "ILS")

    def test_tool_context_for_fx_and_fees(self):
        context = build_tool_context("USD to EUR exchange and the fees?")

        assert "FX Example USD->EUR: 0.93 (source: tool)" in context
        assert "Fees Example (amount=1000, pct=0.3%, min=5): total=5" in context

    def test_tool_context_empty_when_irrelevant(self):
        assert build_tool_context("Explain compound interest") == ""


class TestResponders:
    """Responder 테스트"""

    @pytest.fixture
    def mock_llm_service(self):
        """Mock LLM 서비스"""
        service = Mock()
        service.generate = Mock(return_value=Mock(content="  model answer \n"))
        service.stream_generate = Mock(return_value=iter(["a", "b"]))
        return service

    @pytest.fixture
    def mock_agent_service(self):
        """Mock 에이전트 서비스"""
        service = Mock()
        service.invoke = Mock(return_value="agent answer")
        service.invoke_stream = Mock(return_value=iter(["x", "y"]))
        return service

    @pytest.fixture
    def agent_config(self):
        return DomainConfig(
            model_id="model", agent_id="agent", agent_alias_id="alias", temperature=0.3, max_tokens=900
        )

    def test_display_names(self, mock_llm_service):
        config = DomainConfig(model_id="m")

        assert CodeResponder(config, mock_llm_service).display_name == "Code Agent"
        assert FinanceResponder(config, mock_llm_service).display_name == "Finance Agent"
        assert GeneralResponder(config, mock_llm_service).display_name == "General Agent"

    def test_code_responder_requests_plain_text(self, mock_llm_service):
        responder = CodeResponder(DomainConfig(model_id="code-model", max_tokens=1400), mock_llm_service)

        assert list(responder.stream_generate(Request(text="fix it"))) == ["a", "b"]
        kwargs = mock_llm_service.stream_generate.call_args.kwargs
        assert kwargs["plain_text"] is True
        assert kwargs["model"] == "code-model"
        assert kwargs["max_tokens"] == 1400
        assert responder.structured_fragments is False

    def test_generate_trims_answer(self, mock_llm_service):
        responder = GeneralResponder(DomainConfig(model_id="m"), mock_llm_service)

        assert responder.generate(Request(text="hi")) == "model answer"

    def test_agent_first(self, agent_config, mock_llm_service, mock_agent_service):
        responder = GeneralResponder(agent_config, mock_llm_service, mock_agent_service)

        assert responder.generate(Request(text="hi")) == "agent answer"
        mock_llm_service.generate.assert_not_called()

    def test_session_region_reaches_agent(self, agent_config, mock_llm_service, mock_agent_service):
        responder = CodeResponder(agent_config, mock_llm_service, mock_agent_service, region="us-east-1")

        responder.generate(Request(text="hi", session_region="eu-central-1"))

        assert mock_agent_service.invoke.call_args.kwargs["region"] == "eu-central-1"

    def test_agent_failure_uses_model_with_same_parameters(self, agent_config, mock_llm_service, mock_agent_service):
        mock_agent_service.invoke.side_effect = AgentInvocationError("denied")
        responder = FinanceResponder(agent_config, mock_llm_service, mock_agent_service)

        assert responder.generate(Request(text="USD to ILS?")) == "model answer"
        mock_llm_service.generate.assert_called_once()
        kwargs = mock_llm_service.generate.call_args.kwargs
        assert kwargs == {"model": "model", "temperature": 0.3, "max_tokens": 900}

    def test_finance_agent_gets_raw_text(self, agent_config, mock_llm_service, mock_agent_service):
        responder = FinanceResponder(agent_config, mock_llm_service, mock_agent_service)

        responder.generate(Request(text="USD to ILS?"))

        assert mock_agent_service.invoke.call_args.args[2] == "USD to ILS?"

    def test_finance_model_prompt(self, mock_llm_service):
        responder = FinanceResponder(DomainConfig(model_id="m"), mock_llm_service)

        responder.generate(Request(text="convert 100 USD to ILS"))

        messages = mock_llm_service.generate.call_args.args[0]
        prompt = messages[1].content
        assert prompt.startswith("User request:\n```\nconvert 100 USD to ILS\n```")
        assert "Available tool context:\nFX Example USD->ILS: 3.6" in prompt
        assert "not investment advice" in prompt
        assert "educational financial assistant" in messages[0].content

    def test_general_sources_hook(self, mock_llm_service):
        search = Mock(return_value=[SearchResult(title="Docs", url="https://example.com")])
        responder = GeneralResponder(DomainConfig(model_id="m"), mock_llm_service, search=search)

        responder.generate(Request(text="what is SSE"))

        prompt = mock_llm_service.generate.call_args.args[0][1].content
        assert prompt == "what is SSE\n\nSources:\n- Docs | https://example.com"
        search.assert_called_once_with("what is SSE", 3)

    def test_stream_falls_back_before_first_fragment(self, agent_config, mock_llm_service, mock_agent_service):
        def failing_stream(*args, **kwargs):
            raise AgentInvocationError("no access")
            yield  # pragma: no cover

        mock_agent_service.invoke_stream = Mock(side_effect=failing_stream)
        responder = GeneralResponder(agent_config, mock_llm_service, mock_agent_service)

        assert list(responder.stream_generate(Request(text="hi"))) == ["a", "b"]
        mock_llm_service.stream_generate.assert_called_once()

    def test_missing_model_id_raises(self, mock_llm_service):
        responder = GeneralResponder(DomainConfig(model_id=None), mock_llm_service)

        with pytest.raises(ProviderNotConfiguredError):
            responder.generate(Request(text="hi"))

    def test_stream_stops_after_cancel(self, mock_llm_service):
        token = CancellationToken()
        responder = CodeResponder(DomainConfig(model_id="m"), mock_llm_service)

        stream = responder.stream_generate(Request(text="hi", cancel_token=token))
        assert next(stream) == "a"
        token.cancel()

        assert list(stream) == []

    def test_labels(self, mock_llm_service):
        config = DomainConfig(model_id="m")

        assert CodeResponder(config, mock_llm_service).label == Label.CODE
        assert FinanceResponder(config, mock_llm_service).label == Label.FINANCE
