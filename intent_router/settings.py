"""애플리케이션 설정 관리"""

import re
from typing import Literal

from dotenv import load_dotenv
from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from intent_router.services.orchestration.models import (
    ClassifierConfig,
    DomainConfig,
    Label,
    RoutingConfig,
)

# .env 파일 로드
load_dotenv()

DEFAULT_SONNET = "anthropic.claude-3-5-sonnet-20241022-v2:0"
DEFAULT_MISTRAL = "mistral.mistral-large-2407"

# 복사/붙여넣기로 섞여 들어오는 제로폭 문자와 감싸는 따옴표
_ZERO_WIDTH = re.compile("[\\u200b-\\u200d\\ufeff]")
_WRAPPING = re.compile(r"^['\"\s]+|['\"\s]+$")


def clean_env_value(value: str) -> str:
    """환경변수 문자열에서 제로폭 문자와 앞뒤 따옴표/공백을 제거"""
    return _WRAPPING.sub("", _ZERO_WIDTH.sub("", value)).strip()


class Settings(BaseSettings):
    """애플리케이션 설정"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # 제공자 선택
    llm_provider: Literal["bedrock", "openai", "anthropic", "dummy"] = Field(
        default="bedrock", description="직접 모델 제공자 (bedrock | openai | anthropic | dummy)"
    )
    agent_provider: Literal["bedrock", "dummy", "none"] = Field(
        default="bedrock", description="에이전트 제공자 (bedrock | dummy | none)"
    )
    openai_api_key: str | None = Field(default=None, description="OpenAI API 키")
    anthropic_api_key: str | None = Field(default=None, description="Anthropic API 키")

    # AWS
    aws_region: str = Field(
        default="us-east-1",
        validation_alias=AliasChoices("aws_region", "aws_default_region"),
        description="Bedrock 리전",
    )
    aws_profile: str | None = Field(default=None, description="AWS 프로파일 (선택)")
    aws_max_attempts: int = Field(default=3, description="boto3 재시도 횟수")
    bedrock_anthropic_version: str | None = Field(
        default=None, description="Bedrock Anthropic 페이로드 버전 (기본 bedrock-2023-05-31)"
    )

    # 모델 ID
    model_classify: str = Field(
        default=DEFAULT_SONNET,
        validation_alias=AliasChoices("bedrock_model_classify", "model_classify"),
    )
    model_general: str = Field(
        default=DEFAULT_SONNET,
        validation_alias=AliasChoices("bedrock_model_general", "model_general"),
    )
    model_code: str = Field(
        default=DEFAULT_MISTRAL,
        validation_alias=AliasChoices("bedrock_model_code", "model_code"),
    )
    model_finance: str = Field(
        default=DEFAULT_SONNET,
        validation_alias=AliasChoices("bedrock_model_finance", "model_finance"),
    )

    # 에이전트 ID (선택) - id와 alias가 모두 있어야 에이전트 경로 사용
    classify_agent_id: str | None = Field(
        default=None, validation_alias=AliasChoices("bedrock_classify_agent_id", "classify_agent_id")
    )
    classify_agent_alias_id: str | None = Field(
        default=None,
        validation_alias=AliasChoices(
            "bedrock_classify_alias_id", "bedrock_classify_agent_alias_id", "classify_agent_alias_id"
        ),
    )
    code_agent_id: str | None = Field(
        default=None, validation_alias=AliasChoices("bedrock_code_agent_id", "code_agent_id")
    )
    code_agent_alias_id: str | None = Field(
        default=None,
        validation_alias=AliasChoices("bedrock_code_agent_alias_id", "code_agent_alias_id"),
    )
    finance_agent_id: str | None = Field(
        default=None, validation_alias=AliasChoices("bedrock_finance_agent_id", "finance_agent_id")
    )
    finance_agent_alias_id: str | None = Field(
        default=None,
        validation_alias=AliasChoices("bedrock_finance_agent_alias_id", "finance_agent_alias_id"),
    )
    general_agent_id: str | None = Field(
        default=None,
        validation_alias=AliasChoices(
            "bedrock_general_agent_id", "bedrock_generic_agent_id", "general_agent_id"
        ),
    )
    general_agent_alias_id: str | None = Field(
        default=None,
        validation_alias=AliasChoices(
            "bedrock_general_agent_alias_id",
            "bedrock_generic_agent_alias_id",
            "general_agent_alias_id",
        ),
    )

    # 도메인별 생성 파라미터
    code_temp: float = Field(default=0.2)
    code_max_tokens: int = Field(default=1400)
    fin_temp: float = Field(default=0.3)
    fin_max_tokens: int = Field(default=900)
    gen_temp: float = Field(default=0.2)
    gen_max_tokens: int = Field(default=700)
    classify_max_tokens: int = Field(default=80)

    # 앱 설정
    port: int = Field(default=8000, description="HTTP 포트")
    host: str = Field(default="127.0.0.1", description="HTTP 호스트")
    frontend_origin: str = Field(default="http://localhost:3000", description="CORS 허용 오리진")
    log_level: str = Field(default="INFO", description="로그 레벨")

    @field_validator("*", mode="before")
    @classmethod
    def _strip_env_noise(cls, value):
        if isinstance(value, str):
            return clean_env_value(value)
        return value

    @field_validator(
        "openai_api_key",
        "anthropic_api_key",
        "aws_profile",
        "bedrock_anthropic_version",
        "classify_agent_id",
        "classify_agent_alias_id",
        "code_agent_id",
        "code_agent_alias_id",
        "finance_agent_id",
        "finance_agent_alias_id",
        "general_agent_id",
        "general_agent_alias_id",
    )
    @classmethod
    def _empty_as_unset(cls, value: str | None) -> str | None:
        # 빈 문자열은 "설정 안 됨"으로 취급
        return value or None

    def to_routing_config(self) -> RoutingConfig:
        """환경 기반 설정을 불변 RoutingConfig로 변환

        Returns:
            요청 처리 전 구간에 전달되는 RoutingConfig
        """
        return RoutingConfig(
            region=self.aws_region,
            classifier=ClassifierConfig(
                model_id=self.model_classify,
                agent_id=self.classify_agent_id,
                agent_alias_id=self.classify_agent_alias_id,
                max_tokens=self.classify_max_tokens,
            ),
            domains={
                Label.CODE: DomainConfig(
                    model_id=self.model_code,
                    agent_id=self.code_agent_id,
                    agent_alias_id=self.code_agent_alias_id,
                    temperature=self.code_temp,
                    max_tokens=self.code_max_tokens,
                ),
                Label.FINANCE: DomainConfig(
                    model_id=self.model_finance,
                    agent_id=self.finance_agent_id,
                    agent_alias_id=self.finance_agent_alias_id,
                    temperature=self.fin_temp,
                    max_tokens=self.fin_max_tokens,
                ),
                Label.GENERAL: DomainConfig(
                    model_id=self.model_general,
                    agent_id=self.general_agent_id,
                    agent_alias_id=self.general_agent_alias_id,
                    temperature=self.gen_temp,
                    max_tokens=self.gen_max_tokens,
                ),
            },
        )


def get_settings() -> Settings:
    """현재 환경변수로 Settings를 새로 로드"""
    return Settings()


def validate_settings(settings: Settings) -> dict[str, str]:
    """설정 유효성 검사 및 경고 메시지 반환"""
    warnings = {}

    # LLM 설정 검증
    if settings.llm_provider == "openai":
        if not settings.openai_api_key:
            warnings["llm"] = "OpenAI API 사용을 위해서는 OPENAI_API_KEY가 필요합니다."
    elif settings.llm_provider == "anthropic":
        if not settings.anthropic_api_key:
            warnings["llm"] = (
                "Anthropic API 사용을 위해서는 ANTHROPIC_API_KEY가 필요합니다."
            )

    # 에이전트 id/alias 짝 검증
    pairs = {
        "classify": (settings.classify_agent_id, settings.classify_agent_alias_id),
        "code": (settings.code_agent_id, settings.code_agent_alias_id),
        "finance": (settings.finance_agent_id, settings.finance_agent_alias_id),
        "general": (settings.general_agent_id, settings.general_agent_alias_id),
    }
    for name, (agent_id, alias_id) in pairs.items():
        if bool(agent_id) != bool(alias_id):
            warnings[f"agent.{name}"] = (
                f"{name} 에이전트는 id와 alias id가 모두 있어야 사용됩니다. "
                "모델 경로로만 응답합니다."
            )

    return warnings
