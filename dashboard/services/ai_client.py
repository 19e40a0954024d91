"""Dashboard side of the AI endpoints. Failures degrade to friendly text."""

import logging

from dashboard.data import api_client
from dashboard.data.api_client import ApiError

logger = logging.getLogger(__name__)

SUMMARY_FALLBACK = "I'm having trouble reflecting on your day right now. Please try again later."
REPORT_FALLBACK = "I'm having trouble analyzing your data right now. Please try again later."
CHAT_INIT_FALLBACK = "Sorry, I'm having trouble connecting right now."
CHAT_MESSAGE_FALLBACK = "Sorry, I'm having trouble with that request. Please try again."


def _post(path, body, field, fallback, request=None):
    request = request or api_client.request
    try:
        result = request("POST", f"/api/ai{path}", json=body, timeout=90)
    except ApiError as exc:
        logger.warning("AI request %s failed: %s", path, exc)
        return fallback
    return (result or {}).get(field) or fallback


def daily_summary(life_data, request=None):
    return _post("/summary", {"lifeData": life_data}, "summary", SUMMARY_FALLBACK, request)


def periodic_report(life_data, start_date, end_date, request=None):
    body = {"lifeData": life_data, "startDate": start_date.isoformat(), "endDate": end_date.isoformat()}
    return _post("/report", body, "report", REPORT_FALLBACK, request)


def chat_opening(life_data, request=None):
    content = _post("/chat/init", {"lifeData": life_data}, "message", CHAT_INIT_FALLBACK, request)
    return {"role": "model", "content": content}


def chat_reply(history, life_data, request=None):
    body = {"history": history, "lifeData": life_data}
    content = _post("/chat/message", body, "message", CHAT_MESSAGE_FALLBACK, request)
    return {"role": "model", "content": content}
