"""intent-router: 의도 분류 기반 에이전트/모델 라우팅과 스트리밍 정규화"""

__version__ = "0.1.0"
