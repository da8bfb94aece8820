"""도메인 응답기 (Responder)

세 응답기는 외부 계약이 같고 도메인 지시문만 다릅니다.
- CodeResponder: 코드 작성/디버깅 (조각을 그대로 전달)
- FinanceResponder: 교육용 금융 설명 (모델 경로에 도구 컨텍스트 포함)
- GeneralResponder: 일반 질문 (검색 훅의 출처 목록을 프롬프트에 추가)
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Iterator

from .finance_tools import build_tool_context
from .models import DomainConfig, Label, Request
from .provider import CapabilityProvider, PromptOptions

if TYPE_CHECKING:
    from intent_router.services.agent.base import BaseAgentService
    from intent_router.services.llm.base import BaseLLMService


CODE_SYSTEM_PROMPT = """You are a senior software engineer and code assistant.
Be direct, correct, and pragmatic. Prefer minimal, working examples.

When the user asks for code or debugging, respond with the following sections:
1) Plan
2) Code
3) Tests
4) Notes

Rules:
- Keep explanations concise and focus on correctness and edge cases.
- Use language-idiomatic patterns and safe defaults.
- If you must assume something, label it clearly as an assumption.
- Never invent API responses or filesystem state; show placeholders instead.
- Keep snippets small but complete (imports, minimal setup) unless the user requests otherwise.
"""

FINANCE_SYSTEM_PROMPT = """You are an educational financial assistant. You provide explanations and educational scenarios only, not investment advice.

You MUST always respond in the following structure and with the exact headings:
1) Summary
2) Analysis (assumptions, risks, fees, and taxes)
3) Checklist
4) Example
5) Limitations

Rules:
- Be concise, factual, and risk-aware.
- Remain neutral and avoid personal recommendations.
- Never tell the user to buy, sell, or convert; use hypothetical examples instead.
- When the user asks about currencies or fees, use provided tool outputs for calculations; do not invent numbers.
- If data is missing, state assumptions clearly and label them as assumptions.
- End with a short "This is educational information, not investment advice." disclaimer.
"""

GENERAL_SYSTEM_PROMPT = """You are a precise, concise assistant.
- Be explicit about assumptions.
- Prefer short paragraphs and bullet points when helpful.
- If data is uncertain or missing, say so and suggest what would resolve it.
"""

FINANCE_DISCLAIMER_INSTRUCTION = (
    "Follow the required section headings exactly. Add a brief "
    "'This is educational information, not investment advice.' disclaimer at the end."
)


def normalize_answer(answer) -> str:
    """논-스트리밍 응답을 앞뒤 공백 없는 문자열로 정리"""
    if answer is None:
        return ""
    return str(answer).strip()


class BaseResponder:
    """응답기 공통 구현

    Attributes:
        label: 담당 의도 라벨
        display_name: 클라이언트에 보여줄 이름
        system_prompt: 도메인 지시문
        structured_fragments: False면 라우터가 조각을 버퍼링/파싱하지 않음
        plain_text: 모델 경로에 텍스트 델타 스트림을 요청
    """

    label: Label
    display_name: str
    system_prompt: str
    structured_fragments = True
    plain_text = False

    def __init__(
        self,
        config: DomainConfig,
        llm_service: "BaseLLMService",
        agent_service: "BaseAgentService | None" = None,
        region: str | None = None,
    ):
        """
        Args:
            config: 도메인 설정
            llm_service: 직접 모델 서비스
            agent_service: 에이전트 서비스 (선택)
            region: 기본 호출 리전
        """
        self.config = config
        self.provider = CapabilityProvider(
            config,
            llm_service,
            agent_service=agent_service,
            region=region,
            name=self.label.value,
        )

    def build_user_prompt(self, text: str) -> str:
        """모델 경로에 보낼 사용자 프롬프트"""
        return text

    def build_agent_input(self, text: str, user_prompt: str) -> str:
        """에이전트 경로에 보낼 입력 (기본: 원문)"""
        return text

    def _options(self, request: Request) -> PromptOptions:
        user_prompt = self.build_user_prompt(request.text)
        return PromptOptions(
            system_prompt=self.system_prompt,
            user_prompt=user_prompt,
            temperature=self.config.temperature,
            max_tokens=self.config.max_tokens,
            cancel_token=request.cancel_token,
            plain_text=self.plain_text,
            agent_input=self.build_agent_input(request.text, user_prompt),
            region=request.session_region,
        )

    def generate(self, request: Request) -> str:
        """응답 생성 (논-스트리밍)

        Raises:
            ProviderError: 에이전트와 모델 모두 실패한 경우
        """
        return normalize_answer(self.provider.call(self._options(request)))

    def stream_generate(self, request: Request) -> Iterator[str]:
        """응답 생성 (스트리밍)

        Yields:
            원시 응답 조각 (정규화는 라우터 담당)
        """
        yield from self.provider.stream(self._options(request))


class CodeResponder(BaseResponder):
    """코드 작성/디버깅 응답기

    코드 조각은 중괄호로 시작할 수 있어 JSON 후보로 취급하지 않습니다.
    """

    label = Label.CODE
    display_name = "Code Agent"
    system_prompt = CODE_SYSTEM_PROMPT
    structured_fragments = False
    plain_text = True


class FinanceResponder(BaseResponder):
    """교육용 금융 응답기"""

    label = Label.FINANCE
    display_name = "Finance Agent"
    system_prompt = FINANCE_SYSTEM_PROMPT

    def build_user_prompt(self, text: str) -> str:
        """사용자 요청을 펜스로 감싸고 도구 컨텍스트와 면책 지시를 덧붙임"""
        tool_context = build_tool_context(text)
        parts = ["User request:", "```", text, "```"]
        if tool_context:
            parts.append(f"\nAvailable tool context:\n{tool_context}")
        parts.append(f"\n{FINANCE_DISCLAIMER_INSTRUCTION}")
        return "\n".join(parts)


@dataclass(frozen=True)
class SearchResult:
    """검색 훅 결과 한 건"""

    title: str
    url: str


def no_web_search(query: str, max_results: int = 3) -> list[SearchResult]:
    """기본 검색 훅 (결과 없음)"""
    return []


class GeneralResponder(BaseResponder):
    """일반 질문 응답기"""

    label = Label.GENERAL
    display_name = "General Agent"
    system_prompt = GENERAL_SYSTEM_PROMPT

    def __init__(
        self,
        config: DomainConfig,
        llm_service: "BaseLLMService",
        agent_service: "BaseAgentService | None" = None,
        region: str | None = None,
        search: Callable[[str, int], list[SearchResult]] = no_web_search,
        max_sources: int = 3,
    ):
        super().__init__(config, llm_service, agent_service=agent_service, region=region)
        self.search = search
        self.max_sources = max_sources

    def build_user_prompt(self, text: str) -> str:
        sources = self.search(text, self.max_sources)
        if not sources:
            return text
        lines = "\n".join(f"- {source.title} | {source.url}" for source in sources)
        return f"{text}\n\nSources:\n{lines}"

    def build_agent_input(self, text: str, user_prompt: str) -> str:
        return user_prompt
