"""FastAPI application – REST surface for the VN-Index AI assistant."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Literal

from fastapi import Depends, FastAPI, HTTPException, Request
from pydantic import BaseModel, Field, field_validator

from agents.controller import AppController
from config import get_settings
from database.mark_store import get_mark_store
from models.state import Alert, AppState, Message, SavedRecommendation
from services import portfolio_service
from worker import BriefingSchedule, build_scheduler

logging.basicConfig(
    level=get_settings().log_level,
    format="%(asctime)s │ %(name)-25s │ %(levelname)-7s │ %(message)s",
)
logger = logging.getLogger(__name__)


# ── Lifespan ─────────────────────────────────────────────────────────────────

@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("🚀 VN-Index AI assistant starting up …")
    controller = AppController()
    app.state.controller = controller

    scheduler = build_scheduler(controller, BriefingSchedule(get_mark_store()))
    scheduler.start()
    if get_settings().anthropic_api_key:
        controller.spawn(controller.refresh_prices())
    else:
        logger.warning("ANTHROPIC_API_KEY not set – skipping initial price refresh")

    yield

    scheduler.shutdown(wait=False)
    logger.info("👋 VN-Index AI assistant shutting down …")


app = FastAPI(
    title="VN-Index AI Assistant",
    description=(
        "🇻🇳 **Trợ lý đầu tư chứng khoán VN-Index**\n\n"
        "Chat với AI (Claude + web search), phân tích kỹ thuật theo RSI/MACD/SMA, "
        "review đa dạng hóa danh mục và cảnh báo giá.\n\n"
        "### Tự động\n"
        "- Bản tin sáng 09:00 và tổng kết 17:00 (Asia/Ho_Chi_Minh)\n"
        "- Mô phỏng biến động giá mỗi 2 giây giữa các lần cập nhật giá thực"
    ),
    version="1.0.0",
    lifespan=lifespan,
    openapi_tags=[
        {"name": "Chat", "description": "Hội thoại với trợ lý"},
        {"name": "Portfolio", "description": "Danh mục & đa dạng hóa"},
        {"name": "Prices", "description": "Bảng giá"},
        {"name": "Alerts", "description": "Cảnh báo giá một lần"},
        {"name": "Recommendations", "description": "Lịch sử khuyến nghị"},
        {"name": "System", "description": "Health check & monitoring"},
    ],
    docs_url="/docs",
    redoc_url="/redoc",
)


def get_controller(request: Request) -> AppController:
    return request.app.state.controller


# ── Schemas ──────────────────────────────────────────────────────────────────

class _SymbolRequest(BaseModel):
    symbol: str = Field(..., min_length=1, max_length=10, examples=["FPT"], description="Mã cổ phiếu")

    @field_validator("symbol")
    @classmethod
    def _upper(cls, value: str) -> str:
        return value.strip().upper()


class ChatRequest(BaseModel):
    text: str = Field(..., min_length=1, description="Nội dung câu hỏi")
    research_mode: bool = Field(default=False, description="Bật chế độ nghiên cứu (RSI/MACD/SMA)")


class ResearchRequest(BaseModel):
    text: str = Field(..., min_length=1, examples=["Phân tích FPT theo mô hình nghiên cứu"])


class AlertCreateRequest(_SymbolRequest):
    condition: Literal["ABOVE", "BELOW"]
    threshold: float = Field(..., gt=0, description="Ngưỡng giá")


class QuickAlertRequest(_SymbolRequest):
    pass


class ActiveSymbolRequest(_SymbolRequest):
    pass


class RecommendationSaveRequest(BaseModel):
    message_id: str = Field(..., min_length=1)


# ── System ───────────────────────────────────────────────────────────────────

@app.get("/health", tags=["System"], summary="Health Check")
async def health():
    return {"status": "ok", "service": "vn-index-ai-assistant"}


@app.get("/state", response_model=AppState, tags=["System"], summary="Toàn bộ trạng thái")
async def get_state(controller: AppController = Depends(get_controller)):
    return controller.state


# ── Chat ─────────────────────────────────────────────────────────────────────

@app.get("/messages", response_model=list[Message], tags=["Chat"], summary="Lịch sử hội thoại")
async def list_messages(controller: AppController = Depends(get_controller)):
    return controller.state.messages


@app.post("/chat", response_model=Message, tags=["Chat"], summary="Gửi câu hỏi")
async def chat(req: ChatRequest, controller: AppController = Depends(get_controller)):
    if controller.state.is_typing:
        raise HTTPException(status_code=409, detail="Assistant is composing a reply")
    return await controller.send_user_message(req.text, research_mode=req.research_mode)


@app.post("/research", response_model=Message, tags=["Chat"], summary="Phân tích Research (LSTM)")
async def research(req: ResearchRequest, controller: AppController = Depends(get_controller)):
    if controller.state.is_typing:
        raise HTTPException(status_code=409, detail="Assistant is composing a reply")
    return await controller.send_user_message(req.text, research_mode=True)


# ── Portfolio ────────────────────────────────────────────────────────────────

@app.get("/portfolio", tags=["Portfolio"], summary="Danh mục & lãi/lỗ")
async def get_portfolio(controller: AppController = Depends(get_controller)):
    items = controller.state.portfolio
    return {
        "items": [
            {**item.model_dump(), "pl_percent": round(portfolio_service.item_pl_percent(item), 2)}
            for item in items
        ],
        "summary": portfolio_service.valuation(items),
        "sectors": portfolio_service.sector_allocation(items),
    }


@app.post("/portfolio/analyze", response_model=Message, tags=["Portfolio"], summary="Phân tích danh mục")
async def analyze_portfolio(controller: AppController = Depends(get_controller)):
    return await controller.analyze_portfolio()


@app.post("/portfolio/review", response_model=Message, tags=["Portfolio"], summary="Review đa dạng hóa")
async def review_portfolio(controller: AppController = Depends(get_controller)):
    return await controller.diversification_review()


# ── Prices ───────────────────────────────────────────────────────────────────

@app.get("/prices", tags=["Prices"], summary="Bảng giá hiện tại")
async def get_prices(controller: AppController = Depends(get_controller)):
    state = controller.state
    return {
        "prices": state.prices,
        "active_symbol": state.active_symbol,
        "is_updating": state.is_updating_prices,
        "last_updated": state.last_updated,
    }


@app.post("/prices/refresh", tags=["Prices"], summary="Cập nhật giá thực (Live)")
async def refresh_prices(controller: AppController = Depends(get_controller)):
    updated = await controller.refresh_prices()
    return {"updated": updated, "count": len(updated), "prices": controller.state.prices}


@app.post("/active-symbol", tags=["Prices"], summary="Đổi mã đang xem")
async def set_active_symbol(req: ActiveSymbolRequest, controller: AppController = Depends(get_controller)):
    return {"active_symbol": controller.set_active_symbol(req.symbol)}


# ── Alerts ───────────────────────────────────────────────────────────────────

@app.get("/alerts", response_model=list[Alert], tags=["Alerts"], summary="Danh sách cảnh báo")
async def list_alerts(controller: AppController = Depends(get_controller)):
    return controller.state.alerts


@app.post("/alerts", response_model=Alert, tags=["Alerts"], summary="Thêm cảnh báo")
async def create_alert(req: AlertCreateRequest, controller: AppController = Depends(get_controller)):
    return controller.add_alert(req.symbol, req.condition, req.threshold)


@app.post("/alerts/quick", response_model=list[Alert], tags=["Alerts"], summary="Cảnh báo biến động ±5%")
async def create_quick_alerts(req: QuickAlertRequest, controller: AppController = Depends(get_controller)):
    if not controller.state.prices.get(req.symbol):
        raise HTTPException(status_code=422, detail=f"No current price for {req.symbol}")
    return controller.add_quick_alerts(req.symbol)


@app.delete("/alerts/{alert_id}", tags=["Alerts"], summary="Xóa cảnh báo")
async def delete_alert(alert_id: str, controller: AppController = Depends(get_controller)):
    if not controller.delete_alert(alert_id):
        raise HTTPException(status_code=404, detail=f"No alert {alert_id}")
    return {"status": "deleted", "id": alert_id}


# ── Recommendations ──────────────────────────────────────────────────────────

@app.get("/recommendations", tags=["Recommendations"], summary="Lịch sử khuyến nghị")
async def list_recommendations(controller: AppController = Depends(get_controller)):
    prices = controller.state.prices
    return [
        {**rec.model_dump(), **portfolio_service.recommendation_performance(rec, prices)}
        for rec in controller.state.recommendations
    ]


@app.post("/recommendations", response_model=SavedRecommendation, tags=["Recommendations"],
          summary="Lưu khuyến nghị từ tin nhắn")
async def save_recommendation(req: RecommendationSaveRequest, controller: AppController = Depends(get_controller)):
    try:
        return controller.save_recommendation(req.message_id)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"No model message {req.message_id}")
