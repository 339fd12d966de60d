from __future__ import annotations

from dataclasses import dataclass

from fastapi import Request

from .config import Settings
from .db import SummaryStore
from .services.ai import GroqClient
from .services.mailer import Mailer


@dataclass
class State:
    """Process-wide collaborators shared by the request handlers.

    Built once in ``create_app`` and attached to FastAPI's app.state, so
    handlers (and tests) get explicit instances instead of module globals.
    """

    settings: Settings
    store: SummaryStore
    ai: GroqClient
    mailer: Mailer


def get_state(request: Request) -> State:  # FastAPI dependency helper
    return request.app.state.state
