from __future__ import annotations

from collections.abc import Generator
from typing import Optional

from fastapi import Request
from sqlalchemy.orm import Session

from core.db import get_session_factory
from core.services.wearables.sahha import SahhaClient


def get_db() -> Generator[Session, None, None]:
    session = get_session_factory()()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def get_sahha_client(request: Request) -> Optional[SahhaClient]:
    """The app-wide provider client, or None when Sahha is not configured."""
    return getattr(request.app.state, "sahha_client", None)
