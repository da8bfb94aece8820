"""에이전트 우선 / 모델 폴백 헬퍼

분류기와 세 Responder가 같은 결정 체인을 공유합니다.
에이전트 경로가 없거나 실패하면 모델 경로를 정확히 한 번 호출합니다.
"""

import logging
from typing import Callable, Iterator, TypeVar

from intent_router.core.cancellation import CancellationToken

from .models import FallbackDecision, ServedBy

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _log_decision(decision: FallbackDecision, context: str) -> None:
    if decision.fell_back:
        logger.warning(
            "[%s] agent failed, served by model: %s", context, decision.agent_error
        )
    else:
        logger.info("[%s] served by %s", context, decision.served_by.value)


def call_with_fallback(
    agent_call: Callable[[], T] | None,
    model_call: Callable[[], T],
    context: str = "call",
) -> T:
    """단건 호출: 에이전트 우선, 실패 시 모델

    Args:
        agent_call: 에이전트 호출 함수 (미구성이면 None)
        model_call: 모델 호출 함수
        context: 로그 식별용 이름

    Returns:
        에이전트 또는 모델의 결과

    Raises:
        ProviderError: 모델 경로까지 실패한 경우 (모델 오류가 그대로 전파)
    """
    agent_error = None
    if agent_call is not None:
        try:
            result = agent_call()
        except Exception as e:
            agent_error = str(e)
        else:
            _log_decision(FallbackDecision(served_by=ServedBy.AGENT), context)
            return result

    result = model_call()
    _log_decision(FallbackDecision(served_by=ServedBy.MODEL, agent_error=agent_error), context)
    return result


def stream_with_fallback(
    agent_stream: Callable[[], Iterator[str]] | None,
    model_stream: Callable[[], Iterator[str]],
    cancel_token: CancellationToken | None = None,
    context: str = "stream",
) -> Iterator[str]:
    """스트리밍 호출: 에이전트 우선, 첫 조각 이전 실패 시에만 모델

    에이전트가 조각을 하나라도 내보낸 뒤의 실패는 그대로 전파됩니다.
    취소되면 모델 경로로 넘어가지 않습니다.

    Args:
        agent_stream: 에이전트 스트림 생성 함수 (미구성이면 None)
        model_stream: 모델 스트림 생성 함수
        cancel_token: 취소 토큰
        context: 로그 식별용 이름

    Yields:
        원시 응답 조각
    """
    agent_error = None
    if agent_stream is not None:
        produced = False
        try:
            for fragment in agent_stream():
                produced = True
                yield fragment
        except Exception as e:
            if produced:
                raise
            agent_error = str(e)
        else:
            _log_decision(FallbackDecision(served_by=ServedBy.AGENT), context)
            return

    if cancel_token is not None and cancel_token.is_cancelled:
        return

    _log_decision(FallbackDecision(served_by=ServedBy.MODEL, agent_error=agent_error), context)
    yield from model_stream()
