from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends

from backend.auth import require_user
from backend.schemas import ChatRequest, ReportRequest, SummaryRequest
from backend.services import ai_service, transfer_service
from backend.services.gemini import TextGenerator, get_text_generator
from backend.settings import get_settings

router = APIRouter(prefix="/api/ai", dependencies=[Depends(require_user)])


async def _life_data(supplied):
    if supplied is not None:
        return supplied
    return await transfer_service.export_life_data()


@router.post("/summary")
async def summary(payload: SummaryRequest, generate: TextGenerator = Depends(get_text_generator)):
    settings = get_settings()
    life_data = await _life_data(payload.life_data)
    now = datetime.now(settings.timezone)
    text = await ai_service.daily_summary(generate, life_data, now, settings.timezone, settings.currency)
    return {"summary": text}


@router.post("/report")
async def report(payload: ReportRequest, generate: TextGenerator = Depends(get_text_generator)):
    settings = get_settings()
    today = datetime.now(settings.timezone).date()
    start, end = ai_service.resolve_report_range(
        payload.start_date, payload.end_date, payload.period, today, settings.timezone
    )
    life_data = await _life_data(payload.life_data)
    text = await ai_service.periodic_report(generate, life_data, start, end, settings.timezone, settings.currency)
    return {"report": text}


@router.post("/chat/init")
async def chat_init(payload: ChatRequest, generate: TextGenerator = Depends(get_text_generator)):
    settings = get_settings()
    life_data = await _life_data(payload.life_data)
    text = await ai_service.chat_init(generate, life_data, datetime.now(settings.timezone), settings.currency)
    return {"message": text}


@router.post("/chat/message")
async def chat_message(payload: ChatRequest, generate: TextGenerator = Depends(get_text_generator)):
    settings = get_settings()
    life_data = await _life_data(payload.life_data)
    history = [message.model_dump() for message in payload.history]
    text = await ai_service.chat_message(generate, history, life_data, datetime.now(settings.timezone), settings.currency)
    return {"message": text}
