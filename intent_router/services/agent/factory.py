"""에이전트 서비스 팩토리"""

from typing import TYPE_CHECKING

from .base import BaseAgentService
from .dummy_agent import DummyAgentService

if TYPE_CHECKING:
    from intent_router.settings import Settings


def get_agent_service(settings: "Settings") -> BaseAgentService | None:
    """설정에 따라 에이전트 서비스 반환

    Returns:
        BaseAgentService 인스턴스, agent_provider가 none이면 None
    """
    if settings.agent_provider == "bedrock":
        from .bedrock_agent import BedrockAgentService

        return BedrockAgentService(
            region=settings.aws_region,
            profile=settings.aws_profile,
            max_attempts=settings.aws_max_attempts,
        )
    elif settings.agent_provider == "dummy":
        return DummyAgentService()
    elif settings.agent_provider == "none":
        return None
    else:
        raise ValueError(f"지원하지 않는 에이전트 제공자: {settings.agent_provider}")
