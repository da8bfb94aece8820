"""LLM 서비스 팩토리"""

from typing import TYPE_CHECKING

from .base import BaseLLMService
from .dummy_llm import DummyLLM

if TYPE_CHECKING:
    from intent_router.settings import Settings


def get_llm_service(settings: "Settings") -> BaseLLMService:
    """설정에 따라 적절한 LLM 서비스 반환

    Args:
        settings: 애플리케이션 설정

    Returns:
        BaseLLMService 인스턴스
    """
    if settings.llm_provider == "bedrock":
        from .bedrock_llm import DEFAULT_ANTHROPIC_VERSION, BedrockLLM

        return BedrockLLM(
            region=settings.aws_region,
            profile=settings.aws_profile,
            max_attempts=settings.aws_max_attempts,
            anthropic_version=settings.bedrock_anthropic_version or DEFAULT_ANTHROPIC_VERSION,
        )
    elif settings.llm_provider == "openai":
        from .openai_llm import OpenAILLM

        return OpenAILLM(api_key=settings.openai_api_key)
    elif settings.llm_provider == "anthropic":
        from .anthropic_llm import AnthropicLLM

        return AnthropicLLM(api_key=settings.anthropic_api_key)
    elif settings.llm_provider == "dummy":
        return DummyLLM()
    else:
        raise ValueError(f"지원하지 않는 LLM 제공자: {settings.llm_provider}")
