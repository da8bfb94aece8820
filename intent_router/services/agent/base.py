"""관리형 에이전트 서비스 기본 인터페이스"""

from abc import ABC, abstractmethod
from typing import Iterator

from intent_router.core.cancellation import CancellationToken


class BaseAgentService(ABC):
    """에이전트 서비스 기본 추상 클래스

    에이전트는 식별자(agent id + alias id)로만 호출되는 블랙박스입니다.
    실패 시 제공자 오류 코드를 담은 AgentInvocationError를 발생시킵니다.
    """

    @abstractmethod
    def invoke_stream(
        self,
        agent_id: str,
        alias_id: str,
        input_text: str,
        region: str | None = None,
        cancel_token: CancellationToken | None = None,
    ) -> Iterator[str]:
        """에이전트 호출 (스트리밍)

        Args:
            agent_id: 에이전트 ID
            alias_id: 에이전트 alias ID
            input_text: 입력 텍스트
            region: 호출 리전 (None이면 서비스 기본값)
            cancel_token: 취소 토큰

        Yields:
            디코딩된 텍스트 조각
        """
        pass

    def invoke(
        self,
        agent_id: str,
        alias_id: str,
        input_text: str,
        region: str | None = None,
        cancel_token: CancellationToken | None = None,
    ) -> str:
        """에이전트 호출 (전체 응답을 버퍼링)

        Returns:
            에이전트 응답 전체 텍스트
        """
        return "".join(
            self.invoke_stream(agent_id, alias_id, input_text, region=region, cancel_token=cancel_token)
        )
