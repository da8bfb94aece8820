"""Anthropic API LLM 구현"""

from typing import Iterator

from anthropic import Anthropic, AnthropicError

from intent_router.core.errors import ModelInvocationError

from .base import BaseLLMService, LLMResponse, Message, is_cancelled, split_system


class AnthropicLLM(BaseLLMService):
    """Anthropic API를 사용한 LLM 서비스"""

    def __init__(self, api_key: str | None = None, model: str | None = None, client=None):
        """Anthropic 클라이언트 초기화

        Args:
            api_key: Anthropic API 키 (None이면 ANTHROPIC_API_KEY 환경변수 사용)
            model: 기본 모델명 (호출 시 model 인자로 덮어씀)
            client: 테스트용 주입 클라이언트
        """
        self.api_key = api_key
        self.model = model or "claude-3-5-sonnet-20241022"
        self.client = client or Anthropic(api_key=self.api_key)

    def _request(self, messages: list[Message], kwargs: dict) -> dict:
        # system 메시지 분리
        system_message, conversation = split_system(messages)
        request = {
            "model": kwargs.get("model") or self.model,
            "max_tokens": kwargs.get("max_tokens") or 4096,
            "messages": [{"role": msg.role, "content": msg.content} for msg in conversation],
        }
        if system_message:
            request["system"] = system_message
        if kwargs.get("temperature") is not None:
            request["temperature"] = kwargs["temperature"]
        return request

    def generate(self, messages: list[Message], **kwargs) -> LLMResponse:
        """메시지를 기반으로 응답 생성

        Args:
            messages: 대화 메시지 리스트
            **kwargs: 추가 파라미터 (model, temperature, max_tokens)

        Returns:
            LLMResponse 객체
        """
        try:
            response = self.client.messages.create(**self._request(messages, kwargs))
        except AnthropicError as e:
            raise ModelInvocationError(str(e), code=type(e).__name__) from e

        # 응답 변환
        return LLMResponse(
            content="".join(
                getattr(block, "text", "") for block in response.content
            ),
            model=response.model,
            usage={
                "input_tokens": response.usage.input_tokens,
                "output_tokens": response.usage.output_tokens,
            },
            metadata={"provider": "anthropic", "stop_reason": response.stop_reason},
        )

    def stream_generate(self, messages: list[Message], **kwargs) -> Iterator[str]:
        """메시지를 기반으로 응답 생성 (스트리밍)

        기본은 스트림 이벤트를 JSON 그대로 방출합니다
        (content_block_delta, message_start 등).

        Args:
            messages: 대화 메시지 리스트
            **kwargs: model, temperature, max_tokens, cancel_token, plain_text

        Yields:
            응답 조각
        """
        cancel_token = kwargs.get("cancel_token")
        try:
            stream = self.client.messages.create(stream=True, **self._request(messages, kwargs))
            try:
                for event in stream:
                    if is_cancelled(cancel_token):
                        break
                    if not kwargs.get("plain_text"):
                        yield event.model_dump_json(exclude_none=True)
                    elif event.type == "content_block_delta":
                        text = getattr(event.delta, "text", None)
                        if text:
                            yield text
            finally:
                close = getattr(stream, "close", None)
                if close is not None:
                    close()
        except AnthropicError as e:
            raise ModelInvocationError(str(e), code=type(e).__name__) from e
