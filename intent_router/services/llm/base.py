"""LLM 서비스 기본 인터페이스 (직접 모델 호출 경계)"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Iterator

from intent_router.core.cancellation import CancellationToken


@dataclass
class Message:
    """채팅 메시지"""

    role: str  # "system" | "user" | "assistant"
    content: str


@dataclass
class LLMResponse:
    """LLM 응답 데이터 클래스"""

    content: str
    model: str | None = None
    usage: dict | None = None
    metadata: dict | None = None


def split_system(messages: list[Message]) -> tuple[str | None, list[Message]]:
    """system 메시지를 분리 (여러 개면 줄바꿈으로 합침)

    Returns:
        (system 텍스트 또는 None, 나머지 메시지)
    """
    system_parts = [msg.content for msg in messages if msg.role == "system"]
    rest = [msg for msg in messages if msg.role != "system"]
    return ("\n\n".join(system_parts) if system_parts else None), rest


def is_cancelled(cancel_token: CancellationToken | None) -> bool:
    return cancel_token is not None and cancel_token.is_cancelled


class BaseLLMService(ABC):
    """LLM 서비스 기본 추상 클래스

    스트리밍은 제공자 고유 형식의 조각을 그대로 방출합니다.
    (예: Anthropic의 content_block_delta JSON, OpenAI 계열의 choices JSON)
    조각 정규화는 라우터가 담당합니다. plain_text=True면 텍스트 델타만 방출합니다.
    """

    @abstractmethod
    def generate(self, messages: list[Message], **kwargs) -> LLMResponse:
        """메시지를 기반으로 응답 생성 (동기, 논-스트리밍)

        Args:
            messages: 대화 메시지 리스트
            **kwargs: 추가 파라미터 (model, temperature, max_tokens 등)

        Returns:
            LLMResponse 객체

        Raises:
            ModelInvocationError: 제공자 호출 실패
        """
        pass

    def stream_generate(self, messages: list[Message], **kwargs) -> Iterator[str]:
        """메시지를 기반으로 응답 생성 (스트리밍)

        Args:
            messages: 대화 메시지 리스트
            **kwargs: 추가 파라미터 (cancel_token, plain_text 포함)

        Yields:
            원시 응답 조각
        """
        # 기본 구현: 스트리밍 미지원 시 전체 응답을 한 번에 yield
        kwargs.pop("plain_text", None)
        cancel_token = kwargs.pop("cancel_token", None)
        response = self.generate(messages, **kwargs)
        if not is_cancelled(cancel_token):
            yield response.content
