import asyncio
import contextlib
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from assistant.api.v1.voice import router as voice_router
from assistant.core.config import settings
from assistant.infrastructure.calendar.http_calendar import HttpCalendarProvider
from assistant.wiring.dependencies import get_calendar_providers, get_conversation_store


class ContextFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        extras = []
        for key in ("conversation_id", "user_id", "provider", "step", "status", "reason"):
            value = getattr(record, key, None)
            if value not in (None, ""):
                extras.append(f"{key}={value}")
        base = super().format(record)
        if extras:
            return f"{base} | " + " ".join(extras)
        return base


handler = logging.StreamHandler()
handler.setFormatter(ContextFormatter("%(levelname)s:%(name)s:%(message)s"))

root = logging.getLogger()
root.setLevel(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))
root.handlers.clear()
root.addHandler(handler)


@asynccontextmanager
async def lifespan(app: FastAPI):
    sweeper = asyncio.create_task(get_conversation_store().run_sweeper(settings.SWEEP_INTERVAL_SECONDS))
    try:
        yield
    finally:
        sweeper.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await sweeper
        for provider in get_calendar_providers():
            if isinstance(provider, HttpCalendarProvider):
                await provider.aclose()


app = FastAPI(title="Voice Assistant Decision Core", version="1.0.0", lifespan=lifespan)

app.include_router(voice_router, prefix="/api/v1", tags=["voice"])


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}
