from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from . import __version__
from .config import Settings, load_settings
from .db import SummaryStore
from .errors import install_error_handlers
from .logging import install_app_logging, setup_logging
from .routers import api_router
from .services.ai import GroqClient
from .services.mailer import Mailer
from .state import State

BACKEND_DIR = Path(__file__).resolve().parent.parent


def _load_env_file(env_path: Path) -> None:
    """Minimal .env loader: KEY=VALUE lines into os.environ if not set.
    - Ignores comments and blank lines
    - Strips surrounding quotes
    - Supports optional 'export ' prefix
    """
    if not env_path.exists():
        return
    try:
        text = env_path.read_text(encoding="utf-8")
    except OSError as e:
        logging.getLogger("app").warning(f"could not read {env_path}: {e}")
        return
    for raw in text.splitlines():
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        if line.lower().startswith("export "):
            line = line[7:].lstrip()
        if "=" not in line:
            continue
        k, v = line.split("=", 1)
        key = k.strip()
        val = v.strip().strip('"').strip("'")
        os.environ.setdefault(key, val)


def create_app(
    settings: Optional[Settings] = None,
    *,
    ai_client: Optional[GroqClient] = None,
    mailer: Optional[Mailer] = None,
) -> FastAPI:
    """Build the API application.

    Collaborators default to instances built from settings; tests pass their
    own. Serve with ``uvicorn --factory notes_summarizer.app:create_app``.
    """
    if settings is None:
        # Optional .env files (repo root and backend dir)
        _load_env_file(BACKEND_DIR.parent / ".env")
        _load_env_file(BACKEND_DIR / ".env")
        settings = load_settings()
    setup_logging()

    app = FastAPI(title="Meeting Notes Summarizer", version=__version__)

    db_path = Path(settings.db_path).expanduser()
    if not db_path.is_absolute():
        db_path = BACKEND_DIR / db_path
    store = SummaryStore(db_path)
    # Ensure schema exists before handling requests
    store.initialize()

    app.state.settings = settings
    app.state.state = State(
        settings=settings,
        store=store,
        ai=ai_client or GroqClient.from_settings(settings),
        mailer=mailer or Mailer.from_settings(settings),
    )

    log = logging.getLogger("app")
    if not settings.groq_api_key and ai_client is None:
        log.warning("GROQ_API_KEY is not set; summarize requests will fail until it is configured")
    if not app.state.state.mailer.configured:
        log.info("mail relay not configured; sharing by email is disabled")

    # CORS
    allow = [o.strip() for o in settings.cors_allow_origins.split(",") if o.strip()]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=allow or ["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    install_app_logging(app)
    install_error_handlers(app)

    app.include_router(api_router, prefix="/api")
    return app
