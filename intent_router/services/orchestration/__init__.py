"""오케스트레이션 레이어

의도분류 → 라우팅 → 응답생성 → 스트림 정규화 파이프라인을 관리합니다.

구성:
- IntentClassifier: 에이전트 우선 / 모델 폴백 의도 분류 (실패 시 general)
- CapabilityProvider: 에이전트 또는 직접 모델에 도달하는 어댑터
- CodeResponder / FinanceResponder / GeneralResponder: 도메인 응답기
- StreamNormalizer: 제공자별 원시 조각 → 텍스트 델타
- Router: 분류 결과로 응답기를 고르고 균일 이벤트 스트림 생성
"""

from .models import (
    ClassificationResult,
    ClassificationSource,
    ClassifierConfig,
    DeltaEvent,
    DomainConfig,
    DoneEvent,
    ErrorEvent,
    FallbackDecision,
    IntentEvent,
    Label,
    Request,
    RoutedAnswer,
    RoutingConfig,
    UniformEvent,
)
from .fallback import call_with_fallback, stream_with_fallback
from .provider import CapabilityProvider, PromptOptions
from .intent_classifier import IntentClassifier
from .responders import CodeResponder, FinanceResponder, GeneralResponder, SearchResult
from .normalizer import StreamNormalizer, extract_delta
from .router import Router

__all__ = [
    "ClassificationResult",
    "ClassificationSource",
    "ClassifierConfig",
    "DeltaEvent",
    "DomainConfig",
    "DoneEvent",
    "ErrorEvent",
    "FallbackDecision",
    "IntentEvent",
    "Label",
    "Request",
    "RoutedAnswer",
    "RoutingConfig",
    "UniformEvent",
    "call_with_fallback",
    "stream_with_fallback",
    "CapabilityProvider",
    "PromptOptions",
    "IntentClassifier",
    "CodeResponder",
    "FinanceResponder",
    "GeneralResponder",
    "SearchResult",
    "StreamNormalizer",
    "extract_delta",
    "Router",
]
