"""Bedrock 파운데이션 모델 목록 (제어 플레인)

런타임(bedrock-runtime)과 별도인 bedrock 클라이언트로 사용 가능한 모델을
조회합니다. 설정한 모델 ID가 실제로 있는지 확인할 때 씁니다.
"""

import logging
from threading import Lock

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from intent_router.core.errors import ModelInvocationError

logger = logging.getLogger(__name__)

# modelSummaries 중 클라이언트에 돌려주는 필드
MODEL_SUMMARY_FIELDS = (
    "modelId",
    "providerName",
    "inputModalities",
    "outputModalities",
    "inferenceTypes",
    "customizationsSupported",
    "responseStreamingSupported",
)


def summarize_model(summary: dict) -> dict:
    """modelSummaries 항목 하나를 응답 형식으로 축약"""
    model = {field: summary.get(field) for field in MODEL_SUMMARY_FIELDS}
    # API 필드명은 inferenceTypesSupported
    model["inferenceTypes"] = summary.get("inferenceTypesSupported", model["inferenceTypes"])
    return model


class BedrockModelRegistry:
    """ListFoundationModels 기반 모델 레지스트리"""

    def __init__(
        self,
        region: str = "us-east-1",
        profile: str | None = None,
        max_attempts: int = 3,
        client=None,
    ):
        """
        Args:
            region: 조회 리전
            profile: AWS 프로파일 (None이면 기본 자격 증명 체인)
            max_attempts: boto3 재시도 횟수
            client: 테스트용 주입 클라이언트 (없으면 첫 조회 때 생성)
        """
        self.region = region
        self._profile = profile
        self._max_attempts = max_attempts
        self._client = client
        self._lock = Lock()

    @property
    def client(self):
        with self._lock:
            if self._client is None:
                session = boto3.Session(profile_name=self._profile, region_name=self.region)
                self._client = session.client(
                    "bedrock",
                    config=Config(
                        connect_timeout=3,
                        read_timeout=30,
                        retries={"max_attempts": self._max_attempts},
                    ),
                )
            return self._client

    def list_available_models(self) -> dict:
        """사용 가능한 파운데이션 모델 목록

        Returns:
            {"region", "count", "models"} 딕셔너리

        Raises:
            ModelInvocationError: 조회 실패 (권한, 자격 증명 등)
        """
        try:
            response = self.client.list_foundation_models()
        except ClientError as e:
            error = e.response.get("Error", {})
            raise ModelInvocationError(
                error.get("Message", str(e)), code=error.get("Code", "ClientError")
            ) from e
        except BotoCoreError as e:
            raise ModelInvocationError(str(e), code=type(e).__name__) from e

        models = [summarize_model(summary) for summary in response.get("modelSummaries") or []]
        logger.info("Listed %d Bedrock models in %s", len(models), self.region)
        return {"region": self.region, "count": len(models), "models": models}

    def find_model(self, model_id: str) -> dict:
        """모델 ID 하나를 목록에서 찾기

        Returns:
            {"found", "model", "region"} 딕셔너리 (없으면 model은 None)
        """
        listing = self.list_available_models()
        match = next((m for m in listing["models"] if m["modelId"] == model_id), None)
        return {"found": match is not None, "model": match, "region": listing["region"]}
