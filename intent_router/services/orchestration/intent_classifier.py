"""의도 분류기 (IntentClassifier)

사용자 요청을 code / finance / general 중 하나로 분류합니다.
에이전트가 구성되어 있으면 먼저 시도하고, 실패하거나 응답이 유효하지 않으면
직접 모델(temperature 0, 짧은 토큰 예산)로 분류합니다.
어떤 경우에도 호출자에게 오류를 돌려주지 않습니다.
"""

import json
import logging
import math
from typing import TYPE_CHECKING

from intent_router.core.cancellation import CancellationToken
from intent_router.services.llm.base import Message

from .fallback import call_with_fallback
from .models import (
    DEFAULT_CLASSIFICATION,
    ClassificationResult,
    ClassificationSource,
    ClassifierConfig,
    Label,
)

if TYPE_CHECKING:
    from intent_router.services.agent.base import BaseAgentService
    from intent_router.services.llm.base import BaseLLMService

logger = logging.getLogger(__name__)


# 의도 분류용 시스템 프롬프트 (JSON만 출력)
INTENT_CLASSIFICATION_PROMPT = """You are a strict intent classifier.
Return a single JSON object with keys: label, confidence.
The label MUST be one of "code", "finance", "general". Confidence in [0,1].
Return ONLY JSON."""

_VALID_LABELS = {label.value: label for label in Label}


def extract_json_object(text: str) -> str | None:
    """텍스트에서 첫 번째 균형 잡힌 {...} 부분 문자열을 추출

    JSON 문자열 안의 중괄호와 이스케이프는 깊이 계산에서 제외합니다.

    Args:
        text: 모델/에이전트 응답 텍스트

    Returns:
        JSON 객체 문자열, 닫히지 않았거나 없으면 None
    """
    start = text.find("{")
    if start == -1:
        return None

    depth = 0
    in_string = False
    escaped = False
    for i in range(start, len(text)):
        ch = text[i]
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
        elif ch == '"':
            in_string = True
        elif ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return text[start : i + 1]
    return None


def _clamp_confidence(value) -> float:
    try:
        confidence = float(value)
    except (TypeError, ValueError):
        return 0.5
    if math.isnan(confidence):
        return 0.5
    return max(0.0, min(1.0, confidence))


def parse_classification(raw: str, source: ClassificationSource) -> ClassificationResult:
    """분류 응답을 ClassificationResult로 파싱

    Args:
        raw: 응답 텍스트
        source: 응답을 만든 경로 (agent | model)

    Returns:
        ClassificationResult 객체

    Raises:
        ValueError: JSON 객체가 없거나 라벨이 유효하지 않은 경우
    """
    candidate = extract_json_object(raw or "")
    if candidate is None:
        raise ValueError(f"no JSON object in classifier output: {raw[:80]!r}")

    data = json.loads(candidate)  # JSONDecodeError는 ValueError의 하위 클래스
    if not isinstance(data, dict):
        raise ValueError("classifier output is not a JSON object")

    label_str = str(data.get("label", "")).strip().lower()
    if label_str not in _VALID_LABELS:
        raise ValueError(f"invalid label: {label_str!r}")

    return ClassificationResult(
        label=_VALID_LABELS[label_str],
        confidence=_clamp_confidence(data.get("confidence")),
        source=source,
        raw_response=raw,
    )


class IntentClassifier:
    """에이전트 우선 / 모델 폴백 의도 분류기"""

    def __init__(
        self,
        config: ClassifierConfig,
        llm_service: "BaseLLMService",
        agent_service: "BaseAgentService | None" = None,
        region: str | None = None,
    ):
        """
        Args:
            config: 분류기 설정
            llm_service: 직접 모델 서비스
            agent_service: 에이전트 서비스 (선택)
            region: 기본 호출 리전
        """
        self.config = config
        self.llm_service = llm_service
        self.agent_service = agent_service
        self.region = region

    def classify(
        self,
        text: str,
        cancel_token: CancellationToken | None = None,
        region: str | None = None,
    ) -> ClassificationResult:
        """사용자 입력의 의도를 분류

        Args:
            text: 사용자 입력 텍스트
            cancel_token: 취소 토큰 (최선 노력으로만 확인)
            region: 요청별 리전 (없으면 기본값)

        Returns:
            ClassificationResult 객체 (실패 시 general/0.5/default)
        """
        if cancel_token is not None and cancel_token.is_cancelled:
            return DEFAULT_CLASSIFICATION

        region = region or self.region

        agent_call = None
        if self.agent_service is not None and self.config.agent_configured:
            agent_call = lambda: parse_classification(
                self.agent_service.invoke(
                    self.config.agent_id,
                    self.config.agent_alias_id,
                    text,
                    region=region,
                    cancel_token=cancel_token,
                ),
                ClassificationSource.AGENT,
            )

        def model_call() -> ClassificationResult:
            if not self.config.model_id:
                raise ValueError("no classifier model id configured")
            response = self.llm_service.generate(
                messages=[
                    Message(role="system", content=INTENT_CLASSIFICATION_PROMPT),
                    Message(role="user", content=text),
                ],
                model=self.config.model_id,
                temperature=self.config.temperature,
                max_tokens=self.config.max_tokens,
            )
            return parse_classification(response.content, ClassificationSource.MODEL)

        try:
            result = call_with_fallback(agent_call, model_call, context="classify")
        except Exception as e:
            # 분류 실패는 호출자에게 드러내지 않음
            logger.warning("Defaulting to 'general' intent: %s", e)
            return DEFAULT_CLASSIFICATION

        logger.info(
            "Classified intent=%s (%.2f, %s) for text=%r",
            result.label.value,
            result.confidence,
            result.source.value,
            text[:30],
        )
        return result
