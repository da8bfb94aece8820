"""AWS Bedrock 런타임 LLM 구현"""

import json
import logging
import re
from typing import Iterator

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError, NoCredentialsError

from intent_router.core.errors import ModelInvocationError

from .base import BaseLLMService, LLMResponse, Message, is_cancelled, split_system

logger = logging.getLogger(__name__)

DEFAULT_ANTHROPIC_VERSION = "bedrock-2023-05-31"

_ACCESS_DENIED_HINT = (
    "Access denied when calling the model. Your AWS account or IAM principal is not "
    "subscribed or authorized to use this Marketplace model. Subscribe to the model in "
    "AWS Marketplace (or have an admin grant aws-marketplace:Subscribe), then retry."
)
_CREDENTIALS_HINT = (
    "Missing or invalid AWS credentials. Set AWS_ACCESS_KEY_ID and AWS_SECRET_ACCESS_KEY, "
    "or configure a valid AWS_PROFILE in ~/.aws/credentials and ~/.aws/config."
)
_INVALID_MODEL = re.compile(r"provided model identifier is invalid", re.IGNORECASE)


def _error_code(exc: ClientError) -> str:
    return exc.response.get("Error", {}).get("Code", "ClientError")


def _error_message(exc: ClientError) -> str:
    return exc.response.get("Error", {}).get("Message", str(exc))


def build_invoke_payload(
    model_id: str,
    system_prompt: str | None,
    messages: list[Message],
    temperature: float,
    max_tokens: int,
    anthropic_version: str = DEFAULT_ANTHROPIC_VERSION,
) -> str:
    """InvokeModel용 제공자별 요청 본문 생성

    Args:
        model_id: Bedrock 모델 ID (접두사로 제공자 판별)
        system_prompt: 시스템 프롬프트
        messages: system을 제외한 대화 메시지
        temperature: 샘플링 온도
        max_tokens: 최대 출력 토큰

    Returns:
        JSON 문자열
    """
    if re.match(r"^anthropic\.", model_id or "", re.IGNORECASE):
        payload = {
            "anthropic_version": anthropic_version,
            "max_tokens": max_tokens,
            "temperature": temperature,
            "messages": [
                {"role": msg.role, "content": [{"type": "text", "text": msg.content}]}
                for msg in messages
            ],
        }
        if system_prompt:
            payload["system"] = system_prompt
        return json.dumps(payload)

    # Mistral 및 OpenAI 호환 형식: system을 첫 메시지로
    chat = []
    if system_prompt:
        chat.append({"role": "system", "content": system_prompt})
    chat.extend({"role": msg.role, "content": msg.content} for msg in messages)
    return json.dumps({"messages": chat, "temperature": temperature, "max_tokens": max_tokens})


def parse_invoke_body(raw: str) -> str:
    """InvokeModel 응답 본문에서 텍스트 추출 (알 수 없는 형식이면 원문)"""
    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError:
        return raw

    if not isinstance(parsed, dict):
        return raw
    message = (parsed.get("output") or {}).get("message") or {}
    if message.get("content"):
        return "".join(part.get("text", "") for part in message["content"])
    if isinstance(parsed.get("content"), list):
        return "".join(part.get("text", "") for part in parsed["content"])
    if parsed.get("choices"):
        first = parsed["choices"][0] or {}
        return (first.get("message") or {}).get("content") or first.get("text") or ""
    if parsed.get("outputs"):
        return "".join(out.get("text", "") for out in parsed["outputs"])
    return raw


class BedrockLLM(BaseLLMService):
    """AWS Bedrock Runtime을 사용한 LLM 서비스"""

    def __init__(
        self,
        region: str = "us-east-1",
        model: str | None = None,
        profile: str | None = None,
        max_attempts: int = 3,
        anthropic_version: str = DEFAULT_ANTHROPIC_VERSION,
        client=None,
    ):
        """Bedrock 클라이언트 초기화

        Args:
            region: AWS 리전
            model: 기본 모델 ID (호출 시 model 인자로 덮어씀)
            profile: AWS 프로파일 (None이면 기본 자격 증명 체인)
            max_attempts: boto3 재시도 횟수
            anthropic_version: Anthropic 페이로드 버전
            client: 테스트용 주입 클라이언트
        """
        self.region = region
        self.model = model
        self.anthropic_version = anthropic_version
        if client is None:
            session = boto3.Session(profile_name=profile, region_name=region)
            client = session.client(
                "bedrock-runtime",
                config=Config(
                    connect_timeout=3,
                    read_timeout=30,
                    retries={"max_attempts": max_attempts},
                ),
            )
        self.client = client

    def generate(self, messages: list[Message], **kwargs) -> LLMResponse:
        """Converse API로 응답 생성, 미지원 모델은 InvokeModel로 재시도

        Args:
            messages: 대화 메시지 리스트
            **kwargs: model, temperature, max_tokens

        Returns:
            LLMResponse 객체
        """
        model_id = kwargs.get("model") or self.model
        temperature = kwargs.get("temperature", 0.2)
        max_tokens = kwargs.get("max_tokens", 1024)
        system_prompt, conversation = split_system(messages)

        try:
            response = self.client.converse(
                modelId=model_id,
                messages=[
                    {"role": msg.role, "content": [{"text": msg.content}]} for msg in conversation
                ],
                system=[{"text": system_prompt}] if system_prompt else [],
                inferenceConfig={"maxTokens": max_tokens, "temperature": temperature},
            )
        except NoCredentialsError as e:
            raise ModelInvocationError(_CREDENTIALS_HINT, code="NoCredentials") from e
        except ClientError as e:
            self._raise_if_unrecoverable(e, model_id)
            logger.info(f"Converse 실패({_error_code(e)}), InvokeModel로 재시도: {model_id}")
            return self._invoke_model(model_id, system_prompt, conversation, temperature, max_tokens)
        except BotoCoreError as e:
            raise ModelInvocationError(str(e), code=type(e).__name__) from e

        parts = ((response.get("output") or {}).get("message") or {}).get("content") or []
        return LLMResponse(
            content="".join(part.get("text", "") for part in parts),
            model=model_id,
            usage=response.get("usage"),
            metadata={"provider": "bedrock", "stop_reason": response.get("stopReason")},
        )

    def stream_generate(self, messages: list[Message], **kwargs) -> Iterator[str]:
        """응답 생성 (스트리밍)

        기본은 InvokeModelWithResponseStream의 제공자 고유 JSON 조각을 그대로 방출합니다.
        plain_text=True면 ConverseStream의 텍스트 델타만 방출합니다.

        Args:
            messages: 대화 메시지 리스트
            **kwargs: model, temperature, max_tokens, cancel_token, plain_text

        Yields:
            응답 조각
        """
        model_id = kwargs.get("model") or self.model
        temperature = kwargs.get("temperature", 0.2)
        max_tokens = kwargs.get("max_tokens", 1024)
        cancel_token = kwargs.get("cancel_token")
        system_prompt, conversation = split_system(messages)

        try:
            if kwargs.get("plain_text"):
                response = self.client.converse_stream(
                    modelId=model_id,
                    messages=[
                        {"role": msg.role, "content": [{"text": msg.content}]}
                        for msg in conversation
                    ],
                    system=[{"text": system_prompt}] if system_prompt else [],
                    inferenceConfig={"maxTokens": max_tokens, "temperature": temperature},
                )
                events = response["stream"]
            else:
                response = self.client.invoke_model_with_response_stream(
                    modelId=model_id,
                    body=build_invoke_payload(
                        model_id,
                        system_prompt,
                        conversation,
                        temperature,
                        max_tokens,
                        self.anthropic_version,
                    ),
                    contentType="application/json",
                    accept="application/json",
                )
                events = response["body"]

            iterator = iter(events)
            try:
                while not is_cancelled(cancel_token):
                    event = next(iterator, None)
                    if event is None:
                        break
                    piece = self._event_text(event)
                    if piece and not is_cancelled(cancel_token):
                        yield piece
            finally:
                close = getattr(events, "close", None)
                if close is not None:
                    close()
        except NoCredentialsError as e:
            raise ModelInvocationError(_CREDENTIALS_HINT, code="NoCredentials") from e
        except ClientError as e:
            self._raise_if_unrecoverable(e, model_id)
            raise ModelInvocationError(_error_message(e), code=_error_code(e)) from e
        except BotoCoreError as e:
            raise ModelInvocationError(str(e), code=type(e).__name__) from e

    @staticmethod
    def _event_text(event: dict) -> str:
        """스트림 이벤트 하나를 문자열 조각으로 변환"""
        if "chunk" in event:
            return event["chunk"].get("bytes", b"").decode("utf-8")
        delta = (event.get("contentBlockDelta") or {}).get("delta") or {}
        return delta.get("text", "")

    def _invoke_model(
        self,
        model_id: str,
        system_prompt: str | None,
        conversation: list[Message],
        temperature: float,
        max_tokens: int,
    ) -> LLMResponse:
        """Converse를 지원하지 않는 모델용 InvokeModel 호출"""
        body = build_invoke_payload(
            model_id, system_prompt, conversation, temperature, max_tokens, self.anthropic_version
        )
        try:
            response = self.client.invoke_model(
                modelId=model_id,
                body=body,
                contentType="application/json",
                accept="application/json",
            )
            raw = response["body"].read().decode("utf-8")
        except ClientError as e:
            self._raise_if_unrecoverable(e, model_id)
            raise ModelInvocationError(_error_message(e), code=_error_code(e)) from e
        except BotoCoreError as e:
            raise ModelInvocationError(str(e), code=type(e).__name__) from e

        return LLMResponse(
            content=parse_invoke_body(raw),
            model=model_id,
            metadata={"provider": "bedrock", "api": "invoke_model"},
        )

    def _raise_if_unrecoverable(self, exc: ClientError, model_id: str) -> None:
        """권한/모델 ID 오류는 이해하기 쉬운 메시지로 즉시 실패"""
        code = _error_code(exc)
        message = _error_message(exc)
        if code == "AccessDeniedException" or "aws-marketplace:Subscribe" in message:
            raise ModelInvocationError(_ACCESS_DENIED_HINT, code=code) from exc
        if code == "ValidationException" and _INVALID_MODEL.search(message):
            raise ModelInvocationError(
                f"Invalid model identifier: {model_id}. Verify the BEDROCK_MODEL_* environment "
                f"variables and that the model is available in region {self.region}.",
                code=code,
            ) from exc
