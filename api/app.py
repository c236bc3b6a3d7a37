"""
api/app.py — FastAPI app instance + session middleware + cleanup loop
"""

import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware

import config
from api.routes import router
import api.session as session
from proctored_cbt.services.drafts import JsonDraftStore, MemoryDraftStore
from proctored_cbt.services.persistence import HttpSubmissionClient, InMemorySubmissionStore

SESSION_COOKIE = "cbt_session"

logger = logging.getLogger(__name__)


def _make_submission_backend():
    if config.SUBMISSION_API_URL:
        logger.info(f"Submissions forwarded to {config.SUBMISSION_API_URL}")
        return HttpSubmissionClient(config.SUBMISSION_API_URL, timeout=config.SUBMISSION_TIMEOUT)
    return InMemorySubmissionStore(max_records=config.SUBMISSION_MAX_RECORDS)


def _make_draft_store():
    if not config.DRAFT_AUTOSAVE:
        return None
    try:
        return JsonDraftStore(config.DRAFT_DIR)
    except OSError as e:
        logger.warning(f"Draft directory unavailable ({e}), keeping drafts in memory")
        return MemoryDraftStore()


async def _cleanup_loop() -> None:
    # expired sessions are disposed on the event loop that owns their timers
    while True:
        await asyncio.sleep(config.CLEANUP_INTERVAL)
        removed = session.cleanup_expired()
        if removed:
            logger.info(f"Cleaned up {removed} expired session(s)")


@asynccontextmanager
async def lifespan(app: FastAPI):
    task = asyncio.create_task(_cleanup_loop())
    try:
        yield
    finally:
        task.cancel()
        disposed = session.clear_all()
        logger.info(f"Shutdown: disposed {disposed} session(s)")


def create_app() -> FastAPI:
    app = FastAPI(title="Proctored CBT", docs_url=None, redoc_url=None, lifespan=lifespan)
    app.state.submission_backend = _make_submission_backend()
    app.state.draft_store = _make_draft_store()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Session middleware: read the session id from the cookie, issue one if missing
    @app.middleware("http")
    async def session_middleware(request: Request, call_next):
        sid = request.cookies.get(SESSION_COOKIE)
        if not sid or session.get_session(sid) is None:
            sid = session.create_session()

        request.state.session_id = sid
        response: Response = await call_next(request)
        response.set_cookie(
            key=SESSION_COOKIE,
            value=sid,
            httponly=True,
            samesite="lax",
            max_age=config.SESSION_TTL,
        )
        return response

    app.include_router(router)

    @app.get("/healthz")
    async def healthz():
        return {"ok": True}

    return app
