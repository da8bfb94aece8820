"""더미 LLM 구현 (테스트/오프라인용)"""

import json
import re
import time
from typing import Iterator

from .base import BaseLLMService, LLMResponse, Message, is_cancelled, split_system

# 분류 요청 감지용 (분류기 시스템 프롬프트의 고정 문구)
_CLASSIFIER_MARKER = "intent classifier"

_CODE_KEYWORDS = ["code", "python", "javascript", "function", "bug", "error", "compile", "regex", "sql"]
_FINANCE_KEYWORDS = ["usd", "eur", "ils", "exchange", "currency", "fee", "invest", "stock", "loan", "tax"]


def _keyword_label(text: str) -> tuple[str, float]:
    lowered = text.lower()
    if any(re.search(rf"\b{kw}\b", lowered) for kw in _CODE_KEYWORDS):
        return "code", 0.8
    if any(re.search(rf"\b{kw}\b", lowered) for kw in _FINANCE_KEYWORDS):
        return "finance", 0.8
    return "general", 0.6


class DummyLLM(BaseLLMService):
    """테스트용 더미 LLM 서비스"""

    def __init__(self, delay: float = 0.0):
        """
        Args:
            delay: 응답 시뮬레이션 지연 (초)
        """
        self.delay = delay

    def generate(self, messages: list[Message], **kwargs) -> LLMResponse:
        """더미 응답 생성

        분류기 프롬프트면 키워드 기반 JSON을, 아니면 고정 안내문을 돌려줍니다.

        Args:
            messages: 대화 메시지 리스트
            **kwargs: 추가 파라미터 (model만 사용)

        Returns:
            LLMResponse 객체
        """
        system_prompt, conversation = split_system(messages)

        # 마지막 사용자 메시지 추출
        user_message = ""
        for msg in reversed(conversation):
            if msg.role == "user":
                user_message = msg.content
                break

        if system_prompt and _CLASSIFIER_MARKER in system_prompt.lower():
            label, confidence = _keyword_label(user_message)
            response_text = json.dumps({"label": label, "confidence": confidence})
        else:
            response_text = (
                "[Dummy response mode - no real model was called]\n\n"
                f"Question: {user_message[:100]}"
            )

        # 응답 시뮬레이션을 위한 약간의 지연
        if self.delay:
            time.sleep(self.delay)

        return LLMResponse(
            content=response_text,
            model=kwargs.get("model") or "dummy-model",
            usage={"prompt_tokens": 100, "completion_tokens": 150, "total_tokens": 250},
            metadata={"provider": "dummy"},
        )

    def stream_generate(self, messages: list[Message], **kwargs) -> Iterator[str]:
        """단어 단위로 나눈 더미 스트리밍

        기본은 Anthropic 형식의 content_block_delta JSON을 방출합니다.
        """
        cancel_token = kwargs.get("cancel_token")
        content = self.generate(messages, model=kwargs.get("model")).content
        for piece in re.findall(r"\S+\s*|\s+", content):
            if is_cancelled(cancel_token):
                return
            if kwargs.get("plain_text"):
                yield piece
            else:
                yield json.dumps({"type": "content_block_delta", "delta": {"type": "text_delta", "text": piece}})
