"""OMNI-AWARE - synthetic hazard perception service.

Main FastAPI application.  The perception engine's refresh loop runs as
a task on the server's event loop for the lifetime of the app.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from loguru import logger

from app.config import Settings, settings
from app.routers.engine import router as engine_router
from perception.advisory import AdvisoryClient, NullSpeaker, Speaker
from perception.simulation import PerceptionEngine


def _create_speaker(cfg: Settings):
    if not cfg.tts_enabled:
        return NullSpeaker()
    speaker = Speaker(piper_bin=cfg.piper_bin, voice_model=cfg.piper_voice)
    if not speaker.available:
        logger.warning("Piper TTS not found — advisories will be logged, not spoken")
    return speaker


def create_engine(cfg: Settings, speaker=None, transport=None) -> PerceptionEngine:
    """Build a PerceptionEngine and its advisory client from settings."""
    engine = PerceptionEngine.from_settings(cfg)
    api_key = cfg.xai_api_key.get_secret_value() if cfg.xai_api_key else None
    if api_key is None:
        logger.warning("XAI_API_KEY not set — advisories will use the local fallback")
    engine.advisory = AdvisoryClient(
        event_log=engine.context.event_log,
        speaker=speaker,
        api_key=api_key,
        api_url=cfg.xai_api_url,
        model=cfg.xai_model,
        max_tokens=cfg.advisory_max_tokens,
        timeout=cfg.advisory_timeout,
        hazard_threshold=cfg.advisory_hazard_threshold,
        transport=transport,
    )
    return engine


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    speaker = _create_speaker(settings)
    engine = create_engine(settings, speaker=speaker)
    app.state.engine = engine
    engine.run_forever()
    logger.info(
        f"Perception loop running at {settings.refresh_hz:g} Hz x {settings.substeps} substeps"
    )

    yield

    await engine.shutdown()
    speaker.shutdown()
    app.state.engine = None
    logger.info("Perception loop stopped")


app = FastAPI(
    title=settings.app_name,
    description="Synthetic hazard-perception loop with xAI tactical advisories",
    version="2.1.0",
    lifespan=lifespan,
)

app.include_router(engine_router)


@app.get("/health")
async def health():
    return {"status": "ok", "app": settings.app_name}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("app.main:app", host=settings.host, port=settings.port, reload=settings.debug)
