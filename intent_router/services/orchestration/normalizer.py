"""스트림 정규화

제공자마다 다른 원시 조각 형식(Anthropic content_block_delta, OpenAI/Mistral
choices, 단순 delta/text 객체, 평문)을 텍스트 델타로 바꿉니다.
조각이 JSON 값의 중간에서 잘려 와도 버퍼에 모았다가 완성되면 해석합니다.
"""

import json
from typing import Any, Callable

# 텍스트가 없는 제공자 수명주기 이벤트
LIFECYCLE_EVENT_TYPES = frozenset(
    {
        "message_start",
        "content_block_start",
        "content_block_stop",
        "message_delta",
        "message_stop",
        "ping",
    }
)


def _as_text(value: Any) -> str:
    return value if isinstance(value, str) else ""


def _content_block_text(obj: dict) -> str:
    delta = obj.get("delta")
    return _as_text(delta.get("text")) if isinstance(delta, dict) else ""


def _choices_text(obj: dict) -> str:
    choices = obj.get("choices")
    if not isinstance(choices, list) or not choices or not isinstance(choices[0], dict):
        return ""
    first = choices[0]
    for key in ("delta", "message"):
        part = first.get(key)
        if isinstance(part, dict) and isinstance(part.get("content"), str):
            return part["content"]
    return ""


# (판별, 추출) 순서표: 처음 일치하는 항목만 사용
SCHEMA_TABLE: list[tuple[Callable[[dict], bool], Callable[[dict], str]]] = [
    (lambda obj: obj.get("type") == "content_block_delta", _content_block_text),
    (lambda obj: "choices" in obj, _choices_text),
    (lambda obj: isinstance(obj.get("delta"), str), lambda obj: obj["delta"]),
    (lambda obj: isinstance(obj.get("text"), str), lambda obj: obj["text"]),
    (lambda obj: obj.get("type") in LIFECYCLE_EVENT_TYPES, lambda obj: ""),
]


def extract_delta(value: Any) -> str | None:
    """디코딩된 JSON 값에서 텍스트 델타 추출

    객체는 표에서 처음 일치하는 항목을 씁니다. 배열은 모든 원소가 표에
    일치하는 객체일 때만 원소별 결과를 이어 붙입니다.

    Args:
        value: json으로 디코딩된 값

    Returns:
        델타 텍스트, 표에 맞지 않는 값이면 None (호출자가 원문을 그대로 사용)
    """
    if isinstance(value, dict):
        for predicate, extractor in SCHEMA_TABLE:
            if predicate(value):
                return extractor(value)
        return None
    if isinstance(value, list) and value:
        parts = [extract_delta(item) if isinstance(item, dict) else None for item in value]
        if all(part is not None for part in parts):
            return "".join(parts)
    return None


def is_json_candidate(fragment: str) -> bool:
    """빈 버퍼 상태에서 조각을 JSON 후보로 볼지 여부"""
    return fragment.lstrip().startswith(("{", "["))


class StreamNormalizer:
    """원시 조각 → 텍스트 델타 변환기 (요청 하나에만 사용)

    - 버퍼가 비어 있을 때 '{' 또는 '['로 시작하지 않는 조각은 그대로 델타
    - 버퍼가 차 있으면 모든 조각을 버퍼에 이어 붙임
    - 버퍼 앞에서부터 완성된 JSON 값을 가능한 만큼 디코딩
    - 미완성이면 다음 조각을 기다림 (flush로 잔여분 회수)
    """

    def __init__(self):
        self._buffer = ""
        self._decoder = json.JSONDecoder()

    @property
    def buffer(self) -> str:
        return self._buffer

    def feed(self, fragment: str) -> list[str]:
        """조각 하나를 처리

        Args:
            fragment: 원시 조각

        Returns:
            방출할 델타 목록 (빈 문자열 제외)
        """
        if not fragment:
            return []
        if not self._buffer and not is_json_candidate(fragment):
            return [fragment]

        self._buffer += fragment
        return self._drain()

    def flush(self) -> str:
        """스트림 종료 시 남은 버퍼를 그대로 반환하고 비움"""
        residual, self._buffer = self._buffer, ""
        return residual

    def _drain(self) -> list[str]:
        deltas = []
        while self._buffer:
            stripped = self._buffer.lstrip()
            if not stripped:
                # 디코딩된 값 사이의 구분 공백
                self._buffer = ""
                break
            if not is_json_candidate(stripped):
                # 완성된 값 뒤에 남은 평문
                deltas.append(self._buffer)
                self._buffer = ""
                break
            try:
                value, end = self._decoder.raw_decode(stripped)
            except json.JSONDecodeError:
                # 미완성: 앞 공백까지 원문 그대로 보관
                break
            consumed = len(self._buffer) - len(stripped) + end
            raw, self._buffer = self._buffer[:consumed], self._buffer[consumed:]
            text = extract_delta(value)
            if text is None:
                # 표에 없는 값은 원문 그대로 ("[1] See ..." 같은 평문 포함)
                text = raw
            if text:
                deltas.append(text)
        return deltas
