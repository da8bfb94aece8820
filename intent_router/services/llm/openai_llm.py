"""OpenAI API LLM 구현"""

from typing import Iterator

from openai import OpenAI, OpenAIError

from intent_router.core.errors import ModelInvocationError

from .base import BaseLLMService, LLMResponse, Message, is_cancelled


class OpenAILLM(BaseLLMService):
    """OpenAI API를 사용한 LLM 서비스"""

    def __init__(self, api_key: str | None = None, model: str | None = None, client=None):
        """OpenAI 클라이언트 초기화

        Args:
            api_key: OpenAI API 키 (None이면 OPENAI_API_KEY 환경변수 사용)
            model: 기본 모델명 (호출 시 model 인자로 덮어씀)
            client: 테스트용 주입 클라이언트
        """
        self.api_key = api_key
        self.model = model or "gpt-4o-mini"
        self.client = client or OpenAI(api_key=self.api_key)

    def generate(self, messages: list[Message], **kwargs) -> LLMResponse:
        """메시지를 기반으로 응답 생성 (동기, 논-스트리밍)

        Args:
            messages: 대화 메시지 리스트
            **kwargs: 추가 파라미터 (model, temperature, max_tokens)

        Returns:
            LLMResponse 객체
        """
        # Message 객체를 OpenAI 형식으로 변환
        openai_messages = [{"role": msg.role, "content": msg.content} for msg in messages]

        try:
            response = self.client.chat.completions.create(
                model=kwargs.get("model") or self.model,
                messages=openai_messages,
                **self._sampling(kwargs),
            )
        except OpenAIError as e:
            raise ModelInvocationError(str(e), code=type(e).__name__) from e

        usage = None
        if response.usage is not None:
            usage = {
                "prompt_tokens": response.usage.prompt_tokens,
                "completion_tokens": response.usage.completion_tokens,
                "total_tokens": response.usage.total_tokens,
            }
        return LLMResponse(
            content=response.choices[0].message.content or "",
            model=response.model,
            usage=usage,
            metadata={"provider": "openai"},
        )

    def stream_generate(self, messages: list[Message], **kwargs) -> Iterator[str]:
        """메시지를 기반으로 응답 생성 (스트리밍)

        기본은 chat.completions 청크를 JSON 그대로 방출합니다
        ({"choices": [{"delta": {"content": ...}}]}).

        Args:
            messages: 대화 메시지 리스트
            **kwargs: model, temperature, max_tokens, cancel_token, plain_text

        Yields:
            응답 조각
        """
        cancel_token = kwargs.get("cancel_token")
        openai_messages = [{"role": msg.role, "content": msg.content} for msg in messages]

        try:
            stream = self.client.chat.completions.create(
                model=kwargs.get("model") or self.model,
                messages=openai_messages,
                stream=True,
                **self._sampling(kwargs),
            )
            try:
                for chunk in stream:
                    if is_cancelled(cancel_token):
                        break
                    if not kwargs.get("plain_text"):
                        yield chunk.model_dump_json(exclude_none=True)
                    elif chunk.choices and chunk.choices[0].delta.content:
                        yield chunk.choices[0].delta.content
            finally:
                close = getattr(stream, "close", None)
                if close is not None:
                    close()
        except OpenAIError as e:
            raise ModelInvocationError(str(e), code=type(e).__name__) from e

    @staticmethod
    def _sampling(kwargs: dict) -> dict:
        # temperature 등 추가 파라미터 전달
        params = {}
        for key in ["temperature", "max_tokens"]:
            if kwargs.get(key) is not None:
                params[key] = kwargs[key]
        return params
