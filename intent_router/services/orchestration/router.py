"""라우터/오케스트레이터 (Router)

의도 분류 결과로 Responder를 고르고, 원시 조각을 균일한 이벤트 스트림
(Intent → Delta* → Error | Done)으로 바꿉니다. 취소 전파도 담당합니다.
"""

import logging
from typing import TYPE_CHECKING, Callable, Iterator

from .intent_classifier import IntentClassifier
from .models import (
    ClassificationResult,
    DeltaEvent,
    DoneEvent,
    ErrorEvent,
    IntentEvent,
    Label,
    Request,
    RoutedAnswer,
    RoutingConfig,
    UniformEvent,
)
from .normalizer import StreamNormalizer
from .responders import (
    BaseResponder,
    CodeResponder,
    FinanceResponder,
    GeneralResponder,
    SearchResult,
    no_web_search,
)

if TYPE_CHECKING:
    from intent_router.services.agent.base import BaseAgentService
    from intent_router.services.llm.base import BaseLLMService

logger = logging.getLogger(__name__)


class Router:
    """오케스트레이션 라우터

    의도분류 → 라우팅 → 응답생성 파이프라인을 관리합니다.
    요청 간에 공유하는 것은 읽기 전용 설정뿐입니다.
    """

    def __init__(
        self,
        config: RoutingConfig,
        llm_service: "BaseLLMService",
        agent_service: "BaseAgentService | None" = None,
        search: Callable[[str, int], list[SearchResult]] = no_web_search,
    ):
        """
        Args:
            config: 불변 라우팅 설정
            llm_service: 직접 모델 서비스
            agent_service: 에이전트 서비스 (없으면 모델 경로만 사용)
            search: 일반 응답기의 검색 훅
        """
        self.config = config

        # 각 컴포넌트 초기화
        self.intent_classifier = IntentClassifier(
            config.classifier, llm_service, agent_service=agent_service, region=config.region
        )
        self.responders: dict[Label, BaseResponder] = {
            Label.CODE: CodeResponder(
                config.domain(Label.CODE), llm_service, agent_service, region=config.region
            ),
            Label.FINANCE: FinanceResponder(
                config.domain(Label.FINANCE), llm_service, agent_service, region=config.region
            ),
            Label.GENERAL: GeneralResponder(
                config.domain(Label.GENERAL),
                llm_service,
                agent_service,
                region=config.region,
                search=search,
            ),
        }

    def classify(self, request: Request) -> ClassificationResult:
        """요청의 의도를 분류 (실패하지 않음)"""
        return self.intent_classifier.classify(
            request.text, cancel_token=request.cancel_token, region=request.session_region
        )

    def select(self, classification: ClassificationResult) -> BaseResponder:
        """분류 결과에 맞는 Responder"""
        responder = self.responders[classification.label]
        logger.info(
            "Routing to %s (source=%s, confidence=%.2f)",
            responder.display_name,
            classification.source.value,
            classification.confidence,
        )
        return responder

    def route_once(self, request: Request) -> RoutedAnswer:
        """전체 파이프라인 실행 (논-스트리밍)

        Args:
            request: 라우팅 요청

        Returns:
            RoutedAnswer 객체

        Raises:
            ProviderError: 선택된 Responder의 에이전트/모델이 모두 실패한 경우
        """
        responder = self.select(self.classify(request))
        answer = responder.generate(request)
        return RoutedAnswer(
            label=responder.label,
            display_name=responder.display_name,
            answer=answer,
        )

    def route_stream(self, request: Request) -> Iterator[UniformEvent]:
        """전체 파이프라인 실행 (스트리밍)

        이벤트 순서: Intent 한 번 → Delta 0회 이상 → Error 또는 Done 한 번.
        취소되면 더 이상 조각을 당기지 않고 종료 이벤트 없이 끝납니다.

        Args:
            request: 라우팅 요청

        Yields:
            UniformEvent
        """
        token = request.cancel_token

        # 1. Classifying
        classification = self.classify(request)
        if token.is_cancelled:
            return
        responder = self.select(classification)
        yield IntentEvent(label=responder.label, display_name=responder.display_name)

        # 2. Streaming
        normalizer = StreamNormalizer() if responder.structured_fragments else None
        fragments = responder.stream_generate(request)
        try:
            for fragment in fragments:
                if token.is_cancelled:
                    return
                deltas = normalizer.feed(fragment) if normalizer else [fragment]
                for text in deltas:
                    if token.is_cancelled:
                        return
                    if text:
                        yield DeltaEvent(text=text)
                if token.is_cancelled:
                    return
        except Exception as e:
            logger.error("Stream failed for %s: %s", responder.display_name, e)
            yield ErrorEvent(message=str(e))
            return
        finally:
            fragments.close()

        if token.is_cancelled:
            return

        # 3. Done (잔여 버퍼는 마지막 Delta로)
        if normalizer:
            residual = normalizer.flush()
            if residual:
                yield DeltaEvent(text=residual)
        yield DoneEvent()
