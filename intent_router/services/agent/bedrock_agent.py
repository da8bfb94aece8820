"""AWS Bedrock Agents 런타임 구현"""

import logging
import uuid
from threading import Lock
from typing import Iterator

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from intent_router.core.cancellation import CancellationToken
from intent_router.core.errors import AgentInvocationError

from .base import BaseAgentService

logger = logging.getLogger(__name__)

# completion 스트림에 섞여 오는 오류 이벤트 키
_ERROR_EVENTS = (
    "accessDeniedException",
    "badGatewayException",
    "conflictException",
    "dependencyFailedException",
    "internalServerException",
    "modelNotReadyException",
    "resourceNotFoundException",
    "serviceQuotaExceededException",
    "throttlingException",
    "validationException",
)


class BedrockAgentService(BaseAgentService):
    """bedrock-agent-runtime InvokeAgent를 사용하는 에이전트 서비스"""

    def __init__(
        self,
        region: str = "us-east-1",
        profile: str | None = None,
        max_attempts: int = 3,
        stream_final_response: bool = False,
        client=None,
    ):
        """
        Args:
            region: 기본 리전
            profile: AWS 프로파일 (None이면 기본 자격 증명 체인)
            max_attempts: boto3 재시도 횟수
            stream_final_response: 최종 응답을 조각 단위로 받을지 여부
                (bedrock:InvokeModelWithResponseStream 권한 필요)
            client: 테스트용 주입 클라이언트 (기본 리전에만 사용,
                다른 리전은 세션에서 새로 생성)
        """
        self.region = region
        self.stream_final_response = stream_final_response
        self._profile = profile
        self._session = None
        self._config = Config(
            connect_timeout=3,
            read_timeout=60,
            retries={"max_attempts": max_attempts},
        )
        self._clients = {region: client} if client is not None else {}
        self._lock = Lock()

    def _client(self, region: str):
        """리전별 클라이언트 (boto3 클라이언트는 스레드 간 공유 가능)"""
        with self._lock:
            if region not in self._clients:
                if self._session is None:
                    self._session = boto3.Session(profile_name=self._profile)
                self._clients[region] = self._session.client(
                    "bedrock-agent-runtime", region_name=region, config=self._config
                )
            return self._clients[region]

    def invoke_stream(
        self,
        agent_id: str,
        alias_id: str,
        input_text: str,
        region: str | None = None,
        cancel_token: CancellationToken | None = None,
    ) -> Iterator[str]:
        region = region or self.region
        request = {
            "agentId": agent_id,
            "agentAliasId": alias_id,
            "sessionId": f"session-{uuid.uuid4()}",
            "inputText": input_text,
        }
        if self.stream_final_response:
            request["streamingConfigurations"] = {"streamFinalResponse": True}

        try:
            response = self._client(region).invoke_agent(**request)
            completion = response.get("completion")
            if completion is None:
                raise AgentInvocationError("agent response has no completion stream", code="EmptyResponse")

            produced = False
            iterator = iter(completion)
            while not (cancel_token is not None and cancel_token.is_cancelled):
                event = next(iterator, None)
                if event is None:
                    break
                for key in _ERROR_EVENTS:
                    if key in event:
                        detail = event[key].get("message", key) if isinstance(event[key], dict) else key
                        raise AgentInvocationError(detail, code=key[0].upper() + key[1:])
                chunk = event.get("chunk")
                if not chunk:
                    continue
                text = chunk.get("bytes", b"").decode("utf-8")
                if text:
                    produced = True
                    yield text

            if not produced and not (cancel_token is not None and cancel_token.is_cancelled):
                raise AgentInvocationError("agent returned an empty response", code="EmptyResponse")
        except ClientError as e:
            error = e.response.get("Error", {})
            raise AgentInvocationError(
                error.get("Message", str(e)), code=error.get("Code", "ClientError")
            ) from e
        except BotoCoreError as e:
            raise AgentInvocationError(str(e), code=type(e).__name__) from e
