"""Capability Provider 어댑터

도메인 설정(DomainConfig)을 기준으로 관리형 에이전트 또는 직접 모델에
도달하는 단일 클라이언트입니다. 제공자 고유 형식은 정규화하지 않습니다.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterator

from intent_router.core.cancellation import CancellationToken
from intent_router.core.errors import ProviderNotConfiguredError
from intent_router.services.llm.base import Message, is_cancelled

from .fallback import call_with_fallback, stream_with_fallback
from .models import DomainConfig

if TYPE_CHECKING:
    from intent_router.services.agent.base import BaseAgentService
    from intent_router.services.llm.base import BaseLLMService


@dataclass(frozen=True)
class PromptOptions:
    """한 번의 제공자 호출 파라미터

    agent_input이 없으면 에이전트에도 user_prompt를 그대로 보냅니다.
    region이 없으면 어댑터의 기본 리전을 씁니다.
    """

    system_prompt: str
    user_prompt: str
    temperature: float = 0.2
    max_tokens: int = 1024
    cancel_token: CancellationToken | None = None
    plain_text: bool = False
    agent_input: str | None = None
    region: str | None = None


class CapabilityProvider:
    """에이전트 우선 / 모델 폴백 제공자 어댑터"""

    def __init__(
        self,
        config: DomainConfig,
        llm_service: "BaseLLMService",
        agent_service: "BaseAgentService | None" = None,
        region: str | None = None,
        name: str = "provider",
    ):
        """
        Args:
            config: 도메인 설정 (모델 ID, 에이전트 id/alias)
            llm_service: 직접 모델 서비스
            agent_service: 에이전트 서비스 (없으면 모델 경로만 사용)
            region: 호출 리전
            name: 로그 식별용 이름
        """
        self.config = config
        self.llm_service = llm_service
        self.agent_service = agent_service
        self.region = region
        self.name = name

    @property
    def uses_agent(self) -> bool:
        return self.agent_service is not None and self.config.agent_configured

    def call(self, options: PromptOptions) -> str:
        """단건 호출

        Returns:
            응답 텍스트 전체

        Raises:
            ProviderError: 모델 경로까지 실패한 경우
        """
        agent_call = None
        if self.uses_agent:
            agent_call = lambda: self.agent_service.invoke(
                self.config.agent_id,
                self.config.agent_alias_id,
                options.agent_input or options.user_prompt,
                region=options.region or self.region,
                cancel_token=options.cancel_token,
            )

        def model_call() -> str:
            response = self.llm_service.generate(
                self._messages(options), **self._model_kwargs(options)
            )
            return response.content

        return call_with_fallback(agent_call, model_call, context=self.name)

    def stream(self, options: PromptOptions) -> Iterator[str]:
        """스트리밍 호출

        취소 토큰은 업스트림 조각을 당기기 전과 방출 직전에 확인합니다.

        Yields:
            제공자 고유 형식의 원시 조각
        """
        agent_stream = None
        if self.uses_agent:
            agent_stream = lambda: self.agent_service.invoke_stream(
                self.config.agent_id,
                self.config.agent_alias_id,
                options.agent_input or options.user_prompt,
                region=options.region or self.region,
                cancel_token=options.cancel_token,
            )

        def model_stream() -> Iterator[str]:
            return self.llm_service.stream_generate(
                self._messages(options),
                cancel_token=options.cancel_token,
                plain_text=options.plain_text,
                **self._model_kwargs(options),
            )

        token = options.cancel_token
        fragments = stream_with_fallback(
            agent_stream, model_stream, cancel_token=token, context=self.name
        )
        try:
            while not is_cancelled(token):
                fragment = next(fragments, None)
                if fragment is None or is_cancelled(token):
                    return
                yield fragment
        finally:
            fragments.close()

    def _model_kwargs(self, options: PromptOptions) -> dict:
        if not self.config.model_id:
            raise ProviderNotConfiguredError(f"no model id resolved for {self.name}")
        return {
            "model": self.config.model_id,
            "temperature": options.temperature,
            "max_tokens": options.max_tokens,
        }

    def _messages(self, options: PromptOptions) -> list[Message]:
        return [
            Message(role="system", content=options.system_prompt),
            Message(role="user", content=options.user_prompt),
        ]
