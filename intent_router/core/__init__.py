"""공통 코어: 취소 토큰과 제공자 오류"""

from .cancellation import CancellationToken
from .errors import (
    AgentInvocationError,
    ModelInvocationError,
    ProviderError,
    ProviderNotConfiguredError,
)

__all__ = [
    "CancellationToken",
    "ProviderError",
    "AgentInvocationError",
    "ModelInvocationError",
    "ProviderNotConfiguredError",
]
