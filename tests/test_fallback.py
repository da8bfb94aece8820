"""에이전트 우선 / 모델 폴백 헬퍼 테스트"""

from unittest.mock import Mock

import pytest

from intent_router.core.cancellation import CancellationToken
from intent_router.core.errors import AgentInvocationError, ModelInvocationError
from intent_router.services.orchestration.fallback import call_with_fallback, stream_with_fallback


class TestCallWithFallback:
    """call_with_fallback 테스트"""

    def test_agent_success_skips_model(self):
        model_call = Mock(return_value="model")

        assert call_with_fallback(lambda: "agent", model_call) == "agent"
        model_call.assert_not_called()

    def test_no_agent_uses_model(self):
        assert call_with_fallback(None, lambda: "model") == "model"

    def test_agent_failure_invokes_model_once(self):
        agent_call = Mock(side_effect=AgentInvocationError("denied", code="AccessDeniedException"))
        model_call = Mock(return_value="model")

        assert call_with_fallback(agent_call, model_call) == "model"
        model_call.assert_called_once_with()

    def test_model_failure_propagates(self):
        agent_call = Mock(side_effect=AgentInvocationError("down"))
        model_call = Mock(side_effect=ModelInvocationError("also down"))

        with pytest.raises(ModelInvocationError):
            call_with_fallback(agent_call, model_call)


class TestStreamWithFallback:
    """stream_with_fallback 테스트"""

    def test_agent_stream_success(self):
        model_stream = Mock(return_value=iter(["model"]))

        pieces = list(stream_with_fallback(lambda: iter(["a", "b"]), model_stream))

        assert pieces == ["a", "b"]
        model_stream.assert_not_called()

    def test_failure_before_first_fragment_falls_back(self):
        def agent_stream():
            raise AgentInvocationError("no access")
            yield  # pragma: no cover

        model_stream = Mock(return_value=iter(["m1", "m2"]))

        assert list(stream_with_fallback(agent_stream, model_stream)) == ["m1", "m2"]
        model_stream.assert_called_once_with()

    def test_failure_after_first_fragment_propagates(self):
        """부분 에이전트 응답 뒤에 모델 응답을 잇지 않음"""

        def agent_stream():
            yield "partial"
            raise AgentInvocationError("connection reset")

        model_stream = Mock(return_value=iter(["model"]))
        stream = stream_with_fallback(agent_stream, model_stream)

        assert next(stream) == "partial"
        with pytest.raises(AgentInvocationError):
            next(stream)
        model_stream.assert_not_called()

    def test_cancelled_agent_does_not_fall_back(self):
        token = CancellationToken()

        def agent_stream():
            token.cancel()
            raise AgentInvocationError("aborted")
            yield  # pragma: no cover

        model_stream = Mock(return_value=iter(["model"]))

        assert list(stream_with_fallback(agent_stream, model_stream, cancel_token=token)) == []
        model_stream.assert_not_called()
