"""Frame Encoder (Server-Sent Events)

균일 이벤트를 클라이언트 와이어 프로토콜로 직렬화합니다.
- Intent → {"intent": label, "agentName": name}
- Delta  → {"delta": text}
- Error  → {"error": message}
- Done   → {"done": true}
"""

import json
import re
from typing import Iterable, Iterator

from intent_router.core.cancellation import CancellationToken
from intent_router.services.orchestration.models import (
    DeltaEvent,
    DoneEvent,
    ErrorEvent,
    IntentEvent,
    UniformEvent,
)

RETRY_FRAME = "retry: 5000\n\n"

_ZERO_WIDTH = re.compile("[\\u200b-\\u200d\\ufeff]")
# \t, \n, \r 을 제외한 제어 문자
_CONTROL = re.compile("[\\x00-\\x08\\x0b\\x0c\\x0e-\\x1f]")
_TABS = re.compile(r"\t+")


def clean_delta(text: str) -> str:
    """스트림 델타 정리 (공백/줄바꿈은 그대로 유지, trim 금지)"""
    return _CONTROL.sub("", _ZERO_WIDTH.sub("", str(text)))


def clean_block(text: str) -> str:
    """논-스트리밍 응답 정리 (탭은 공백 하나로, 줄바꿈 유지)"""
    return _CONTROL.sub("", _TABS.sub(" ", str(text)))


def event_payload(event: UniformEvent) -> dict:
    """이벤트 → 와이어 페이로드"""
    if isinstance(event, IntentEvent):
        return {"intent": event.label.value, "agentName": event.display_name}
    if isinstance(event, DeltaEvent):
        return {"delta": event.text}
    if isinstance(event, ErrorEvent):
        return {"error": event.message or "stream error"}
    if isinstance(event, DoneEvent):
        return {"done": True}
    raise TypeError(f"unknown event type: {type(event).__name__}")


def encode_frame(payload: dict) -> str:
    """SSE data 프레임 하나"""
    return f"data: {json.dumps(payload, ensure_ascii=False)}\n\n"


def sse_frames(
    events: Iterable[UniformEvent],
    cancel_token: CancellationToken | None = None,
) -> Iterator[str]:
    """이벤트 스트림 → SSE 프레임 스트림

    첫 프레임은 재연결 간격(retry)입니다. 정리 후 빈 델타는 건너뜁니다.
    종료 이벤트 없이 끝나면 done 프레임을 덧붙이되, 취소로 끝난 경우는 제외합니다.

    Args:
        events: 라우터가 만든 이벤트
        cancel_token: 요청 취소 토큰

    Yields:
        SSE 프레임 문자열
    """
    yield RETRY_FRAME

    terminated = False
    for event in events:
        if isinstance(event, DeltaEvent):
            text = clean_delta(event.text)
            if text == "":
                continue
            yield encode_frame({"delta": text})
            continue

        yield encode_frame(event_payload(event))
        if event.is_terminal:
            terminated = True
            break

    if not terminated and not (cancel_token is not None and cancel_token.is_cancelled):
        yield encode_frame({"done": True})
