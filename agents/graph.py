"""LangGraph state machine – research mode: researcher → analyst → responder."""

from __future__ import annotations

import logging
import random
from typing import Any, Optional, Sequence

from langchain_core.runnables import RunnableConfig
from langgraph.graph import StateGraph, START, END

from agents import orchestrator
from models.state import Message, ResearchState
from services import indicator_service

logger = logging.getLogger(__name__)


def _configurable(config: RunnableConfig) -> dict[str, Any]:
    return (config or {}).get("configurable", {})


# ─────────────────────────────────────────────────────────────────────────────
# NODE 1: Researcher — pick the symbol and compute indicators
# ─────────────────────────────────────────────────────────────────────────────


def researcher_node(state: ResearchState, config: RunnableConfig) -> dict[str, Any]:
    symbol = orchestrator.resolve_research_symbol(state["query"], state["active_symbol"])
    logger.info("🔍 Researcher: indicators for %s", symbol)

    indicators = indicator_service.generate_indicators(
        symbol,
        state["prices"].get(symbol),
        rng=_configurable(config).get("rng"),
    )
    return {"symbol": symbol, "indicators": indicators}


# ─────────────────────────────────────────────────────────────────────────────
# NODE 2: Analyst — indicator block + analysis instructions
# ─────────────────────────────────────────────────────────────────────────────


def analyst_node(state: ResearchState) -> dict[str, Any]:
    symbol = state["symbol"]
    context = orchestrator.research_context(symbol, state["indicators"], state["prices"].get(symbol))
    return {"context_prompt": context}


# ─────────────────────────────────────────────────────────────────────────────
# NODE 3: Responder — delegate to the LLM
# ─────────────────────────────────────────────────────────────────────────────


async def responder_node(state: ResearchState, config: RunnableConfig) -> dict[str, Any]:
    logger.info("🎯 Responder: asking Claude about %s", state["symbol"])
    reply = await orchestrator.ask(
        state["history"],
        state["query"],
        state["context_prompt"],
        generate=_configurable(config).get("generate"),
    )
    return {"reply": reply}


def build_graph():
    """Build and return the compiled research graph."""

    graph = StateGraph(ResearchState)

    graph.add_node("researcher", researcher_node)
    graph.add_node("analyst", analyst_node)
    graph.add_node("responder", responder_node)

    graph.add_edge(START, "researcher")
    graph.add_edge("researcher", "analyst")
    graph.add_edge("analyst", "responder")
    graph.add_edge("responder", END)

    return graph.compile()


# Pre-compiled graph singleton
_compiled_graph = None


def _get_graph():
    global _compiled_graph
    if _compiled_graph is None:
        _compiled_graph = build_graph()
    return _compiled_graph


async def run_research(
    query: str,
    active_symbol: str,
    prices: dict[str, float],
    history: Sequence[Message],
    *,
    generate: Optional[orchestrator.Generate] = None,
    rng: Optional[random.Random] = None,
) -> ResearchState:
    """Run the research pipeline; the result carries the symbol, indicators and reply."""
    initial_state: ResearchState = {
        "query": query,
        "active_symbol": active_symbol,
        "prices": dict(prices),
        "history": list(history),
        "symbol": active_symbol,
        "indicators": None,
        "context_prompt": "",
        "reply": None,
    }
    return await _get_graph().ainvoke(
        initial_state,
        config={"configurable": {"generate": generate, "rng": rng}},
    )
