"""더미 에이전트 구현 (테스트/오프라인용)"""

import re
from typing import Iterator

from intent_router.core.cancellation import CancellationToken
from intent_router.core.errors import AgentInvocationError

from .base import BaseAgentService


class DummyAgentService(BaseAgentService):
    """고정 응답을 조각 단위로 돌려주는 에이전트

    fail=True면 호출 즉시 AgentInvocationError를 발생시켜
    모델 폴백 경로를 오프라인에서 확인할 수 있습니다.
    """

    def __init__(self, fail: bool = False):
        self.fail = fail

    def invoke_stream(
        self,
        agent_id: str,
        alias_id: str,
        input_text: str,
        region: str | None = None,
        cancel_token: CancellationToken | None = None,
    ) -> Iterator[str]:
        if self.fail:
            raise AgentInvocationError("dummy agent configured to fail", code="DummyFailure")

        content = f"[Dummy agent {agent_id}/{alias_id}]\n\n{input_text[:100]}"
        for piece in re.findall(r"\S+\s*|\s+", content):
            if cancel_token is not None and cancel_token.is_cancelled:
                return
            yield piece
