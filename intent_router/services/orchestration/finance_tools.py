"""금융 응답기용 도구 (환율/수수료 예시 계산)

모델 경로의 사용자 프롬프트에 "도구 컨텍스트"로 포함됩니다.
환율은 오프라인에서도 동작하는 고정 데모 테이블입니다.
"""

import json
import re
from dataclasses import dataclass
from datetime import datetime, timezone

# 데모 환율 (base+quote)
_DEMO_RATES = {"USDILS": 3.6, "EURILS": 3.85, "USDEUR": 0.93}
_DEFAULT_RATE = 3.6

_CURRENCY_CODES = {"USD", "EUR", "ILS", "GBP", "JPY", "CHF", "CAD", "AUD", "CNY", "NIS"}

# 흔한 통화 표현 → 통화 코드 (영어/히브리어)
_CURRENCY_WORDS = [
    ("שקלים", "ILS"),
    ("שקל", "ILS"),
    ("SHEKEL", "ILS"),
    ("NIS", "ILS"),
    ("דולר", "USD"),
    ("DOLLAR", "USD"),
    ("אירו", "EUR"),
    ("יורו", "EUR"),
    ("EURO", "EUR"),
    ("POUND", "GBP"),
]

_FX_HINTS = ("usd", "eur", "ils", "שקל", "דולר", "יורו", "exchange", "convert", "currency")
_FEE_HINTS = ("עמלות", "fee", "commission", "spread")

_CODE_PATTERN = re.compile(r"\b([A-Z]{3})\b")
_PERCENT_PATTERN = re.compile(r"(\d+(?:\.\d+)?)\s*%")
_AMOUNT_PATTERN = re.compile(r"(\d{1,3}(?:[,\s]\d{3})+|\d+(?:\.\d+)?)")


@dataclass(frozen=True)
class FxGuess:
    """요청 텍스트에서 추정한 환전 정보"""

    base: str = "USD"
    quote: str = "ILS"
    percent: float | None = None
    amount: float | None = None


def fx_get_rate(base: str = "USD", quote: str = "ILS") -> dict:
    """데모 환율 조회

    Returns:
        {"ok", "base", "quote", "rate", "ts"} 딕셔너리
    """
    key = f"{base}{quote}".upper()
    return {
        "ok": True,
        "base": base,
        "quote": quote,
        "rate": _DEMO_RATES.get(key, _DEFAULT_RATE),
        "ts": datetime.now(timezone.utc).isoformat(),
    }


def calc_fees(amount: float, percent: float = 0.25, min_fee: float = 2) -> dict:
    """비율 수수료 계산 (최소 수수료 적용, 소수 둘째 자리 반올림)"""
    perc_fee = amount * percent / 100
    total = max(perc_fee, min_fee)
    return {
        "amount": amount,
        "percent": percent,
        "min": min_fee,
        "perc_fee": round(perc_fee, 2),
        "total": round(total, 2),
    }


def infer_fx_intent(text: str) -> FxGuess:
    """텍스트에서 통화 쌍, 비율, 금액을 보수적으로 추정

    서로 다른 통화 코드 두 개를 앞에서부터 고르며, 찾지 못하면 USD→ILS를 씁니다.
    """
    upper = (text or "").upper()

    codes = [code for code in _CODE_PATTERN.findall(upper) if code in _CURRENCY_CODES]
    codes = ["ILS" if code == "NIS" else code for code in codes]
    for word, code in _CURRENCY_WORDS:
        if word in upper:
            codes.append(code)

    base = quote = None
    for code in codes:
        if base is None:
            base = code
        elif code != base:
            quote = code
            break

    percent_match = _PERCENT_PATTERN.search(upper)
    amount_match = _AMOUNT_PATTERN.search(upper)

    return FxGuess(
        base=base or "USD",
        quote=quote or "ILS",
        percent=float(percent_match.group(1)) if percent_match else None,
        amount=float(re.sub(r"[,\s]", "", amount_match.group(1))) if amount_match else None,
    )


def build_tool_context(text: str) -> str:
    """환율/수수료 언급이 있으면 도구 결과 요약을 만듦

    Returns:
        도구 컨텍스트 문자열 (관련 없으면 빈 문자열)
    """
    lowered = (text or "").lower()
    lines = []

    if any(hint in lowered for hint in _FX_HINTS):
        guess = infer_fx_intent(text)
        rate = fx_get_rate(guess.base, guess.quote)["rate"]
        lines.append(f"FX Example {guess.base}->{guess.quote}: {rate} (source: tool)")

    if any(hint in lowered for hint in _FEE_HINTS):
        fee_info = calc_fees(1000, percent=0.3, min_fee=5)
        lines.append(
            "Fees Example (amount=1000, pct=0.3%, min=5): "
            f"total={fee_info['total']}, breakdown={json.dumps(fee_info)}"
        )

    return "\n".join(lines)
