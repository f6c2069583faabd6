"""Application controller – sole owner of ``AppState``.

All mutations are pure transitions applied on the event loop between await
points, so alert evaluation always sees one consistent price snapshot. The only
suspension points are calls into the LLM collaborator.
"""

from __future__ import annotations

import asyncio
import logging
import random
from typing import Any, Coroutine, Optional

from agents import orchestrator, transitions
from agents.graph import run_research
from models.state import INDEX_SYMBOL, Alert, AppState, Message, SavedRecommendation, initial_state
from services import portfolio_service, price_service, telegram_service

logger = logging.getLogger(__name__)

EXTRA_PRICE_SYMBOLS: tuple[str, ...] = ("MWG", "TCB", "VPB", "VNM")


class AppController:
    def __init__(
        self,
        state: Optional[AppState] = None,
        *,
        generate: Optional[orchestrator.Generate] = None,
        rng: Optional[random.Random] = None,
    ):
        self.state = state or initial_state()
        self._generate = generate
        self._rng = rng or random.Random()
        self._refresh_task: Optional[asyncio.Task] = None
        self._background: set[asyncio.Task] = set()
        self._composing = 0

    # ── Internals ────────────────────────────────────────────────────────────

    def _commit(self, new_state: AppState) -> AppState:
        notifications = transitions.new_notifications(self.state, new_state)
        self.state = new_state
        if notifications and telegram_service.is_configured():
            self.spawn(telegram_service.notify_alerts(notifications))
        return new_state

    def spawn(self, coro: Coroutine[Any, Any, Any]) -> Optional[asyncio.Task]:
        """Run ``coro`` in the background, keeping a reference until it finishes."""
        try:
            task = asyncio.get_running_loop().create_task(coro)
        except RuntimeError:
            coro.close()
            logger.warning("No running event loop – background task dropped")
            return None
        self._background.add(task)
        task.add_done_callback(self._background.discard)
        return task

    async def drain(self) -> None:
        """Wait for background work (briefings, notifications) to settle."""
        while self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)

    async def _compose(self, coro: Coroutine[Any, Any, Message]) -> Message:
        # is_typing stays set until the last overlapping compose finishes
        self._composing += 1
        self._commit(transitions.set_typing(self.state, True))
        try:
            reply = await coro
        finally:
            self._composing -= 1
            self._commit(transitions.set_typing(self.state, self._composing > 0))
        self._commit(transitions.append_message(self.state, reply))
        return reply

    # ── Conversation ─────────────────────────────────────────────────────────

    async def send_user_message(self, text: str, research_mode: bool = False) -> Message:
        history = list(self.state.messages)
        self._commit(transitions.append_message(self.state, Message(role="user", text=text)))

        if not research_mode:
            return await self._compose(
                orchestrator.ask(history, text, generate=self._generate)
            )

        async def _research() -> Message:
            result = await run_research(
                text,
                self.state.active_symbol,
                self.state.prices,
                history,
                generate=self._generate,
                rng=self._rng,
            )
            self._commit(transitions.set_active_symbol(self.state, result["symbol"]))
            return result["reply"]

        return await self._compose(_research())

    async def analyze_portfolio(self) -> Message:
        return await self.send_user_message(
            portfolio_service.analysis_request(self.state.portfolio)
        )

    async def diversification_review(self) -> Message:
        return await self._compose(
            orchestrator.diversification_review(
                list(self.state.messages), self.state.portfolio, generate=self._generate
            )
        )

    async def run_briefing(self, prompt: str, title: str = "") -> Message:
        logger.info("📰 Running briefing: %s", title or prompt[:40])
        reply = await self._compose(
            orchestrator.briefing(list(self.state.messages), prompt, generate=self._generate)
        )
        if telegram_service.is_configured():
            await telegram_service.notify_briefing(title or "Bản tin thị trường", reply)
        return reply

    def set_active_symbol(self, symbol: str) -> str:
        self._commit(transitions.set_active_symbol(self.state, symbol))
        return self.state.active_symbol

    # ── Prices ───────────────────────────────────────────────────────────────

    def price_refresh_symbols(self) -> list[str]:
        return price_service.unique_symbols(
            [
                INDEX_SYMBOL,
                *(item.symbol for item in self.state.portfolio),
                self.state.active_symbol,
                *EXTRA_PRICE_SYMBOLS,
            ]
        )

    async def refresh_prices(self) -> dict[str, float]:
        """Fetch authoritative prices; overlapping calls share one in-flight fetch."""
        if self._refresh_task is not None and not self._refresh_task.done():
            logger.info("Price refresh already in flight – joining it")
            return await asyncio.shield(self._refresh_task)

        self._refresh_task = asyncio.get_running_loop().create_task(self._do_refresh())
        return await asyncio.shield(self._refresh_task)

    async def _do_refresh(self) -> dict[str, float]:
        self._commit(transitions.set_updating_prices(self.state, True))
        try:
            prices = await price_service.fetch_real_time_prices(
                self.price_refresh_symbols(), generate=self._generate
            )
            self._commit(transitions.apply_price_refresh(self.state, prices))
        finally:
            self._commit(transitions.set_updating_prices(self.state, False))
        return prices

    def simulate_tick(self) -> AppState:
        return self._commit(transitions.apply_simulated_tick(self.state, rng=self._rng))

    # ── Alerts ───────────────────────────────────────────────────────────────

    def add_alert(self, symbol: str, condition: str, threshold: float) -> Alert:
        alert = Alert(symbol=symbol.upper(), condition=condition, threshold=threshold)
        self._commit(transitions.evaluate_alerts(transitions.add_alert(self.state, alert)))
        return next(a for a in self.state.alerts if a.id == alert.id)

    def add_quick_alerts(self, symbol: str) -> list[Alert]:
        before = {a.id for a in self.state.alerts}
        self._commit(transitions.add_quick_alerts(self.state, symbol))
        return [a for a in self.state.alerts if a.id not in before]

    def delete_alert(self, alert_id: str) -> bool:
        if not any(a.id == alert_id for a in self.state.alerts):
            return False
        self._commit(transitions.delete_alert(self.state, alert_id))
        return True

    # ── Recommendations ──────────────────────────────────────────────────────

    def save_recommendation(self, message_id: str) -> SavedRecommendation:
        self._commit(transitions.save_recommendation(self.state, message_id))
        return self.state.recommendations[0]
