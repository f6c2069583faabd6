from agents import orchestrator
from models.state import Message, PortfolioItem, Source, TechnicalIndicators
from prompts.system_prompts import (
    BRIEFING_DIRECTIVE,
    DIVERSIFICATION_HEADING,
    DIVERSIFICATION_HINT,
    EMPTY_RESPONSE_TEXT,
    LLM_ERROR_TEXT,
    SYSTEM_INSTRUCTION,
)
from services.llm_service import LLMResult
from conftest import FakeLLM


def test_build_prompt():
    assert orchestrator.build_prompt("Hỏi") == "Hỏi"
    assert orchestrator.build_prompt("Hỏi", "Ngữ cảnh") == "Ngữ cảnh\n\n---\n\nYêu cầu của người dùng: Hỏi"


async def test_ask_returns_reply_with_sources():
    sources = [Source(title="CafeF", uri="https://cafef.vn/a"), Source(title="CafeF", uri="https://cafef.vn/a")]
    llm = FakeLLM([LLMResult(text="VN-Index tăng.", grounding_sources=sources)])

    reply = await orchestrator.ask([], "Thị trường hôm nay?", generate=llm)

    assert reply.role == "model"
    assert reply.text == "VN-Index tăng."
    assert len(reply.sources) == 2
    call = llm.calls[0]
    assert call["system_instruction"] == SYSTEM_INSTRUCTION
    assert call["enable_search_grounding"] is True


async def test_ask_absorbs_failures():
    reply = await orchestrator.ask([], "x", generate=FakeLLM(error=TimeoutError()))

    assert reply.role == "model"
    assert reply.text == LLM_ERROR_TEXT
    assert reply.sources == []


async def test_ask_empty_text_gets_placeholder():
    reply = await orchestrator.ask([], "x", generate=FakeLLM([""]))

    assert reply.text == EMPTY_RESPONSE_TEXT


async def test_history_window_is_bounded():
    history = [Message(role="user" if i % 2 else "model", text=str(i)) for i in range(15)]
    llm = FakeLLM()

    await orchestrator.ask(history, "x", generate=llm)

    assert [m.text for m in llm.calls[0]["history"]] == [str(i) for i in range(5, 15)]


async def test_history_window_skips_alert_notices():
    history = [Message(role="user", text="q"), Message(role="model", text="a")]
    history += [Message(role="system", text=f"alert {i}") for i in range(10)]
    llm = FakeLLM()

    await orchestrator.ask(history, "x", generate=llm)

    assert [m.text for m in llm.calls[0]["history"]] == ["q", "a"]


def test_resolve_research_symbol():
    assert orchestrator.resolve_research_symbol("phân tích tcb giúp tôi", "VN-INDEX") == "TCB"
    assert orchestrator.resolve_research_symbol("phân tích VNM", "HPG") == "HPG"


def test_research_context_block():
    ind = TechnicalIndicators(rsi=75, macd=0.4, signal=0.1, sma20=134000, sma50=130000, trend="UP")

    text = orchestrator.research_context("FPT", ind, 135000)

    assert "**FPT**" in text
    assert "**RSI (14):** 75 (Quá mua" in text
    assert "**MACD:** 0.40 | **Signal:** 0.10 (MACD cắt lên" in text
    assert "135,000" in text
    assert "**SMA (20):** 134000" in text


def test_research_context_without_price():
    ind = TechnicalIndicators(rsi=25, macd=-0.4, signal=0.1, sma20=1, sma50=1, trend="DOWN")

    text = orchestrator.research_context("XYZ", ind, None)

    assert "N/A" in text and "Quá bán" in text


async def test_diversification_review_prompt_and_heading():
    llm = FakeLLM(["Nên giảm tỷ trọng công nghệ."])
    items = [PortfolioItem(symbol="FPT", shares=10, avg_price=1, current_price=100, sector="Công nghệ")]

    reply = await orchestrator.diversification_review([], items, generate=llm)

    assert reply.text == DIVERSIFICATION_HEADING + "Nên giảm tỷ trọng công nghệ."
    prompt = llm.calls[0]["prompt"]
    assert "- Công nghệ: 100.0%" in prompt
    assert prompt.endswith(DIVERSIFICATION_HINT)


async def test_briefing_uses_directive():
    llm = FakeLLM()

    await orchestrator.briefing([], "Tổng kết phiên", generate=llm)

    assert llm.calls[0]["prompt"].startswith(BRIEFING_DIRECTIVE)
