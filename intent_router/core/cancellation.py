"""협력적 취소 토큰

요청 경계(HTTP 연결 종료 등)에서 신호를 보내면 분류기와 스트리밍 응답기가
다음 업스트림 호출/방출 직전에 이를 확인하고 멈춥니다.
"""

from threading import Event


class CancellationToken:
    """참조로 전달되는 단일 취소 신호"""

    def __init__(self) -> None:
        self._event = Event()

    def cancel(self) -> None:
        """취소 신호 (여러 번 호출해도 무해)"""
        self._event.set()

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()

    def __repr__(self) -> str:
        return f"CancellationToken(cancelled={self.is_cancelled})"
