from __future__ import annotations

from typing import NoReturn

from fastapi import Depends, HTTPException

from career_coach.core.errors import CoachError
from career_coach.core.security import get_store
from career_coach.core.store import CoachStore
from career_coach.services.coach_service import CoachService


def get_coach_service(store: CoachStore = Depends(get_store)) -> CoachService:
    return CoachService(store)


def raise_http_error(exc: CoachError) -> NoReturn:
    raise HTTPException(status_code=exc.status_code, detail=str(exc)) from exc
