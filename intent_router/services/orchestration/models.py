"""오케스트레이션 데이터 모델"""

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import ClassVar, Mapping, Union

from intent_router.core.cancellation import CancellationToken


class Label(Enum):
    """의도 라벨 (응답기 선택 키)"""

    CODE = "code"  # 코드 작성/디버깅
    FINANCE = "finance"  # 금융/환율/수수료 교육용 설명
    GENERAL = "general"  # 그 외 일반 질문


class ClassificationSource(Enum):
    """분류 결과를 만든 경로"""

    AGENT = "agent"
    MODEL = "model"
    DEFAULT = "default"


class ServedBy(Enum):
    """응답을 실제로 제공한 제공자"""

    AGENT = "agent"
    MODEL = "model"


@dataclass(frozen=True)
class Request:
    """라우팅 요청 (한 번의 라우팅 호출 동안 불변)"""

    text: str
    session_region: str | None = None
    cancel_token: CancellationToken = field(default_factory=CancellationToken)


@dataclass(frozen=True)
class ClassificationResult:
    """의도 분류 결과"""

    label: Label
    confidence: float = 0.5  # 0.0 ~ 1.0
    source: ClassificationSource = ClassificationSource.DEFAULT
    raw_response: str | None = field(default=None, compare=False)  # 디버깅용

    @property
    def is_default(self) -> bool:
        return self.source == ClassificationSource.DEFAULT


DEFAULT_CLASSIFICATION = ClassificationResult(
    label=Label.GENERAL,
    confidence=0.5,
    source=ClassificationSource.DEFAULT,
)


@dataclass(frozen=True)
class FallbackDecision:
    """에이전트/모델 중 어느 쪽이 응답했는지 (로깅 전용)"""

    served_by: ServedBy
    agent_error: str | None = None

    @property
    def fell_back(self) -> bool:
        return self.served_by == ServedBy.MODEL and self.agent_error is not None


@dataclass(frozen=True)
class RoutedAnswer:
    """논-스트리밍 라우팅 결과"""

    label: Label
    display_name: str
    answer: str


# ------------------------------------------------------------
# 스트리밍 이벤트: Intent → Delta* → (Error | Done)
# ------------------------------------------------------------
@dataclass(frozen=True)
class IntentEvent:
    label: Label
    display_name: str

    kind: ClassVar[str] = "intent"
    is_terminal: ClassVar[bool] = False


@dataclass(frozen=True)
class DeltaEvent:
    text: str

    kind: ClassVar[str] = "delta"
    is_terminal: ClassVar[bool] = False


@dataclass(frozen=True)
class ErrorEvent:
    message: str

    kind: ClassVar[str] = "error"
    is_terminal: ClassVar[bool] = True


@dataclass(frozen=True)
class DoneEvent:
    kind: ClassVar[str] = "done"
    is_terminal: ClassVar[bool] = True


UniformEvent = Union[IntentEvent, DeltaEvent, ErrorEvent, DoneEvent]


# ------------------------------------------------------------
# 읽기 전용 설정 (요청 간에 공유되는 유일한 상태)
# ------------------------------------------------------------
@dataclass(frozen=True)
class DomainConfig:
    """도메인 응답기 설정"""

    model_id: str | None
    agent_id: str | None = None
    agent_alias_id: str | None = None
    temperature: float = 0.2
    max_tokens: int = 1024

    @property
    def agent_configured(self) -> bool:
        """id와 alias가 모두 있을 때만 에이전트 경로 사용"""
        return bool(self.agent_id and self.agent_alias_id)


@dataclass(frozen=True)
class ClassifierConfig(DomainConfig):
    """의도 분류기 설정 (결정적 출력, 짧은 토큰 예산)"""

    temperature: float = 0.0
    max_tokens: int = 80


@dataclass(frozen=True)
class RoutingConfig:
    """라우터/분류기/어댑터에 전달되는 불변 설정"""

    region: str
    classifier: ClassifierConfig
    domains: Mapping[Label, DomainConfig]

    def __post_init__(self):
        object.__setattr__(self, "domains", MappingProxyType(dict(self.domains)))

    def domain(self, label: Label) -> DomainConfig:
        """라벨에 해당하는 도메인 설정 (없으면 모델 ID 없는 빈 설정)"""
        return self.domains.get(label) or DomainConfig(model_id=None)
