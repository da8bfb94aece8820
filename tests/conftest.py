"""테스트 픽스처 및 설정"""

import json
from dataclasses import replace
from unittest.mock import Mock

import pytest

from intent_router.services.llm.base import LLMResponse
from intent_router.services.llm.dummy_llm import DummyLLM
from intent_router.services.agent.dummy_agent import DummyAgentService
from intent_router.services.orchestration.models import (
    ClassifierConfig,
    DomainConfig,
    Label,
    RoutingConfig,
)


@pytest.fixture
def dummy_llm_service():
    """더미 LLM 서비스 픽스처"""
    return DummyLLM()


@pytest.fixture
def dummy_agent_service():
    """더미 에이전트 서비스 픽스처"""
    return DummyAgentService()


@pytest.fixture
def routing_config():
    """에이전트 없이 모델 경로만 쓰는 라우팅 설정"""
    return RoutingConfig(
        region="us-east-1",
        classifier=ClassifierConfig(model_id="classify-model"),
        domains={
            Label.CODE: DomainConfig(model_id="code-model", temperature=0.2, max_tokens=1400),
            Label.FINANCE: DomainConfig(model_id="finance-model", temperature=0.3, max_tokens=900),
            Label.GENERAL: DomainConfig(model_id="general-model", temperature=0.2, max_tokens=700),
        },
    )


@pytest.fixture
def agent_routing_config(routing_config):
    """모든 도메인에 에이전트 id/alias가 구성된 라우팅 설정"""
    return RoutingConfig(
        region=routing_config.region,
        classifier=replace(
            routing_config.classifier, agent_id="classify-agent", agent_alias_id="classify-alias"
        ),
        domains={
            label: replace(config, agent_id=f"{label.value}-agent", agent_alias_id=f"{label.value}-alias")
            for label, config in routing_config.domains.items()
        },
    )


@pytest.fixture
def make_llm_service():
    """Mock LLM 서비스 팩토리

    분류기 프롬프트에는 지정한 라벨의 JSON을, 그 외에는 content를 돌려주고
    stream_generate는 fragments를 차례로 방출합니다.
    """

    def _make(label="general", confidence=0.9, content="answer", fragments=()):
        service = Mock()

        def generate(messages, **kwargs):
            if "intent classifier" in messages[0].content:
                return LLMResponse(content=json.dumps({"label": label, "confidence": confidence}))
            return LLMResponse(content=content, model=kwargs.get("model"))

        service.generate = Mock(side_effect=generate)
        service.stream_generate = Mock(side_effect=lambda messages, **kwargs: iter(list(fragments)))
        return service

    return _make
