"""
Food log chat FastAPI application.

Endpoints:
    GET  /                          Health check
    POST /chat/log                  One chat turn (search -> prompt -> engine -> sanitize -> state)
    POST /chat/log/confirm          UI confirm action for the pending entry
    POST /chat/log/cancel           UI cancel action for the pending entry
    GET  /entries/recent/{user_id}  Distinct recent food entries
"""
from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel
from typing import List, Optional
from datetime import date
import base64
import binascii
import logging
from dotenv import load_dotenv
from pathlib import Path

# Load env vars
load_dotenv(Path(__file__).parent / ".env")

# Logger
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

from foodlog.config import log_config
from foodlog.conversation import ConversationSession, SessionRegistry, TurnResult
from foodlog.events import LoggingEventSink
from foodlog.llm import ExtractionEngine, OpenAIChatClient
from foodlog.models import MealType
from foodlog.persistence import build_gateway
from foodlog.search import BraveSearchClient, SearchAugmentor

log_config()

# Initialize App
app = FastAPI(title="Food Log Chat API")

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# --- Shared clients (connection pools only; no per-user state) ---
events = LoggingEventSink()
search_client = BraveSearchClient()
llm_client = OpenAIChatClient()
gateway = build_gateway(events=events)


def _new_session(owner_id: str) -> ConversationSession:
    return ConversationSession(
        owner_id,
        augmentor=SearchAugmentor(search_client, events=events),
        engine=ExtractionEngine(llm_client, events=events),
        gateway=gateway,
        events=events,
    )


registry = SessionRegistry(_new_session)


@app.on_event("shutdown")
async def _drain_writes():
    await gateway.drain()


# --- Request/Response Models ---
class LogTurnRequest(BaseModel):
    user_id: str
    text: str = ""
    image_base64: Optional[str] = None
    meal_type: Optional[str] = None
    log_date: Optional[date] = None


class UserAction(BaseModel):
    user_id: str


class TurnResponse(BaseModel):
    display_text: str
    confidence_percent: Optional[int] = None
    state: str
    discarded: bool = False


class RecentEntry(BaseModel):
    name: str
    calories: int
    protein: Optional[float] = None
    carbs: Optional[float] = None
    fat: Optional[float] = None
    meal_type: Optional[str] = None
    confidence: float
    confidence_source: str
    timestamp: str


def _to_response(result: TurnResult) -> TurnResponse:
    return TurnResponse(
        display_text=result.display_text,
        confidence_percent=result.confidence_percent,
        state=result.state,
        discarded=result.discarded,
    )


def _parse_meal_type(value: Optional[str]) -> Optional[MealType]:
    if not value:
        return None
    try:
        return MealType(value.strip().lower())
    except ValueError:
        raise HTTPException(status_code=422, detail=f"unknown meal_type: {value}")


def _decode_image(value: Optional[str]) -> Optional[bytes]:
    if not value:
        return None
    # Accept data URIs as sent by browsers
    if value.startswith("data:") and "," in value:
        value = value.split(",", 1)[1]
    try:
        return base64.b64decode(value, validate=True)
    except (binascii.Error, ValueError):
        raise HTTPException(status_code=400, detail="image_base64 is not valid base64")


# --- Endpoints ---

@app.get("/")
def health_check():
    return {"status": "ok", "service": "Food Log Chat"}


@app.post("/chat/log", response_model=TurnResponse)
async def chat_log(body: LogTurnRequest):
    meal_type = _parse_meal_type(body.meal_type)
    image = _decode_image(body.image_base64)
    if not body.text.strip() and image is None and meal_type is None:
        raise HTTPException(status_code=400, detail="text, image_base64 or meal_type is required")
    logger.info("CHAT_LOG user_id=%s chars=%d image=%s", body.user_id, len(body.text), image is not None)
    try:
        session = registry.get(body.user_id)
        result = await session.handle_turn(body.text, image=image, meal_type=meal_type, log_date=body.log_date)
        return _to_response(result)
    except Exception as e:
        logger.error("Chat log failed: %s", e, exc_info=True)
        raise HTTPException(status_code=500, detail=str(e))


@app.post("/chat/log/confirm", response_model=TurnResponse)
async def chat_log_confirm(body: UserAction):
    try:
        result = await registry.get(body.user_id).confirm()
        return _to_response(result)
    except Exception as e:
        logger.error("Confirm failed: %s", e, exc_info=True)
        raise HTTPException(status_code=500, detail=str(e))


@app.post("/chat/log/cancel", response_model=TurnResponse)
async def chat_log_cancel(body: UserAction):
    try:
        result = await registry.get(body.user_id).cancel()
        return _to_response(result)
    except Exception as e:
        logger.error("Cancel failed: %s", e, exc_info=True)
        raise HTTPException(status_code=500, detail=str(e))


@app.get("/entries/recent/{user_id}", response_model=List[RecentEntry])
async def recent_entries(user_id: str):
    """Most recent food entries, one per name."""
    try:
        entries = await gateway.recent_entries(user_id)
    except Exception as e:
        logger.error("Recent entries failed: %s", e)
        raise HTTPException(status_code=500, detail=str(e))
    return [
        RecentEntry(
            name=e.name,
            calories=e.calories,
            protein=e.protein,
            carbs=e.carbs,
            fat=e.fat,
            meal_type=e.meal_type.value if e.meal_type else None,
            confidence=e.confidence,
            confidence_source=e.confidence_source.value,
            timestamp=e.timestamp,
        )
        for e in entries
    ]


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("app:app", host="0.0.0.0", port=8000, reload=True)
