"""제공자 호출 오류 계층"""


class ProviderError(Exception):
    """에이전트/모델 제공자 호출 실패

    Attributes:
        code: 제공자 오류 코드 (예: AccessDeniedException)
    """

    default_code = "ProviderError"

    def __init__(self, message: str, code: str | None = None):
        self.code = code or self.default_code
        super().__init__(f"{self.code}: {message}")


class AgentInvocationError(ProviderError):
    """관리형 에이전트 호출 실패 (모델 경로로 폴백 대상)"""

    default_code = "AgentInvocationError"


class ModelInvocationError(ProviderError):
    """직접 모델 호출 실패 (더 이상 폴백 없음)"""

    default_code = "ModelInvocationError"


class ProviderNotConfiguredError(ProviderError):
    """도메인에 사용할 모델 ID/제공자가 없음"""

    default_code = "ProviderNotConfigured"
