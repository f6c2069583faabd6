"""LLM service – single text-generation primitive backed by Claude with web search."""

from __future__ import annotations

import logging
from typing import Any, Sequence

from langchain_anthropic import ChatAnthropic
from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage
from pydantic import BaseModel, Field

from config import get_settings
from models.state import Message, Source

logger = logging.getLogger(__name__)

WEB_SEARCH_TOOL = {"type": "web_search_20250305", "name": "web_search"}


class LLMError(RuntimeError):
    """Raised when the provider cannot produce a response."""


class LLMResult(BaseModel):
    text: str = ""
    grounding_sources: list[Source] = Field(default_factory=list)


def _get_llm(temperature: float) -> ChatAnthropic:
    """Return a configured Claude LLM instance."""
    settings = get_settings()
    if not settings.anthropic_api_key:
        raise LLMError("ANTHROPIC_API_KEY must be set in environment.")
    return ChatAnthropic(
        model=settings.anthropic_model,
        api_key=settings.anthropic_api_key,
        max_tokens=settings.llm_max_tokens,
        temperature=temperature,
    )


async def generate(
    prompt: str,
    system_instruction: str,
    *,
    enable_search_grounding: bool = True,
    temperature: float = 0.3,
    history: Sequence[Message] = (),
) -> LLMResult:
    """Send one prompt (plus optional prior turns) and return text and citations.

    Raises ``LLMError`` on any provider failure.
    """
    llm = _get_llm(temperature)
    runnable: Any = llm
    if enable_search_grounding:
        tool = {**WEB_SEARCH_TOOL, "max_uses": get_settings().web_search_max_uses}
        runnable = llm.bind_tools([tool])

    messages: list[BaseMessage] = []
    if system_instruction:
        messages.append(SystemMessage(content=system_instruction))
    messages.extend(_history_messages(history))
    messages.append(HumanMessage(content=prompt))

    try:
        response = await runnable.ainvoke(messages)
    except Exception as exc:
        raise LLMError(f"Claude request failed: {exc}") from exc

    text, sources = _parse_content(response.content)
    logger.info("🤖 Claude replied: %d chars, %d sources", len(text), len(sources))
    return LLMResult(text=text, grounding_sources=sources)


def _history_messages(history: Sequence[Message]) -> list[BaseMessage]:
    """Map user/model turns to chat messages; the first one sent must be a user turn."""
    turns: list[BaseMessage] = []
    for message in history:
        if message.role == "user":
            turns.append(HumanMessage(content=message.text))
        elif message.role == "model" and turns:
            turns.append(AIMessage(content=message.text))
    return turns


def _parse_content(content: str | list) -> tuple[str, list[Source]]:
    """Join text blocks and collect web citations from a Claude response."""
    if isinstance(content, str):
        return content.strip(), []

    parts: list[str] = []
    sources: list[Source] = []
    for block in content:
        if isinstance(block, str):
            parts.append(block)
            continue
        block_type = block.get("type")
        if block_type == "text":
            parts.append(block.get("text", ""))
            for citation in block.get("citations") or []:
                url = citation.get("url")
                if url:
                    sources.append(Source(title=citation.get("title") or "Nguồn tin", uri=url))
        elif block_type == "web_search_tool_result":
            results = block.get("content")
            if not isinstance(results, list):
                continue
            for result in results:
                if result.get("type") == "web_search_result" and result.get("url"):
                    sources.append(Source(title=result.get("title") or "Nguồn tin", uri=result["url"]))

    return "".join(parts).strip(), sources
