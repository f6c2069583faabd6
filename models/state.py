import itertools
import time
from datetime import datetime
from typing import TypedDict, List, Optional, Dict, Literal
from pydantic import BaseModel, Field

from prompts.system_prompts import WELCOME_MESSAGE

MessageRole = Literal["user", "model", "system"]
AlertCondition = Literal["ABOVE", "BELOW"]
RecommendationAction = Literal["BUY", "SELL", "HOLD", "WATCH"]
Trend = Literal["UP", "DOWN", "SIDEWAYS"]

INDEX_SYMBOL = "VN-INDEX"
DEFAULT_SECTOR = "Khác"

_id_seq = itertools.count()


def new_id() -> str:
    """Time-ordered identifier; the counter keeps ids unique within one nanosecond."""
    return f"{time.time_ns()}-{next(_id_seq)}"


# --- HỘI THOẠI ---
class Source(BaseModel):
    title: str = Field(default="", description="Tiêu đề nguồn tin")
    uri: str = Field(description="Đường dẫn nguồn tin")


class Message(BaseModel):
    id: str = Field(default_factory=new_id)
    role: MessageRole
    text: str
    timestamp: datetime = Field(default_factory=datetime.now)
    sources: List[Source] = Field(default_factory=list, description="Trích dẫn từ web search")

    model_config = {"frozen": True}


# --- DANH MỤC & GIÁ ---
class PortfolioItem(BaseModel):
    symbol: str = Field(description="Mã cổ phiếu (viết hoa)")
    shares: int = Field(ge=0, description="Số cổ phiếu nắm giữ")
    avg_price: float = Field(gt=0, description="Giá vốn bình quân (VND)")
    current_price: float = Field(description="Giá thị trường hiện tại (VND)")
    sector: Optional[str] = Field(default=None, description="Ngành")


class Alert(BaseModel):
    id: str = Field(default_factory=new_id)
    symbol: str
    condition: AlertCondition
    threshold: float
    active: bool = True


class SavedRecommendation(BaseModel):
    id: str = Field(default_factory=new_id)
    symbol: str
    action: RecommendationAction
    price_at_time: float = Field(description="Giá tại thời điểm lưu")
    date: str = Field(description="Thời điểm lưu (ISO 8601)")
    notes: str = Field(description="Trích đoạn khuyến nghị")

    model_config = {"frozen": True}


# --- PHÂN TÍCH KỸ THUẬT ---
class TechnicalIndicators(BaseModel):
    rsi: float = Field(description="RSI (14)")
    macd: float = Field(description="MACD")
    signal: float = Field(description="Đường tín hiệu MACD")
    sma20: float = Field(description="SMA 20 phiên")
    sma50: float = Field(description="SMA 50 phiên")
    trend: Trend = Field(description="Xu hướng: UP, DOWN, SIDEWAYS")


# --- TRẠNG THÁI ỨNG DỤNG ---
class AppState(BaseModel):
    """Everything the assistant holds in memory; replaced wholesale by each transition."""

    messages: List[Message] = Field(default_factory=list)
    prices: Dict[str, float] = Field(default_factory=dict)
    portfolio: List[PortfolioItem] = Field(default_factory=list)
    alerts: List[Alert] = Field(default_factory=list)
    recommendations: List[SavedRecommendation] = Field(default_factory=list)
    active_symbol: str = INDEX_SYMBOL
    is_typing: bool = False
    is_updating_prices: bool = False
    last_updated: Optional[datetime] = None


# --- LANGGRAPH STATE ---
class ResearchState(TypedDict):
    # Input
    query: str
    active_symbol: str
    prices: Dict[str, float]
    history: List[Message]

    # Researcher output
    symbol: str
    indicators: Optional[TechnicalIndicators]

    # Analyst output
    context_prompt: str

    # Kết quả cuối cùng
    reply: Optional[Message]


def initial_state() -> AppState:
    """Seed state shown on first launch."""
    return AppState(
        messages=[Message(id="welcome", role="model", text=WELCOME_MESSAGE)],
        prices={
            INDEX_SYMBOL: 1258.40,
            "FPT": 135000,
            "HPG": 29500,
            "VCB": 92000,
            "MWG": 45000,
        },
        portfolio=[
            PortfolioItem(symbol="FPT", shares=1000, avg_price=98000, current_price=135000, sector="Công nghệ"),
            PortfolioItem(symbol="HPG", shares=2000, avg_price=28000, current_price=29500, sector="Thép"),
            PortfolioItem(symbol="VCB", shares=500, avg_price=85000, current_price=92000, sector="Ngân hàng"),
        ],
    )
