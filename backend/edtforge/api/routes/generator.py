from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from edtforge.api.deps import get_db
from edtforge.core.config import get_settings
from edtforge.schemas.generator import GenerateRequest, GenerateResponse, GenerationStatsOut
from edtforge.schemas.session import ScheduledSessionOut
from edtforge.services.scheduling_engine import (
    GenerationResult,
    GenerationStats,
    SchedulingEngine,
    SchedulingOptions,
)
from edtforge.services.storage import load_roster, load_scheduling_inputs, persist_sessions, session_to_record

router = APIRouter()
logger = logging.getLogger(__name__)


def _stats_out(stats: GenerationStats) -> GenerationStatsOut:
    return GenerationStatsOut(total=stats.total, created=stats.created, failed=stats.failed, skipped=stats.skipped)


def _response(result: GenerationResult) -> GenerateResponse:
    return GenerateResponse(
        stats=_stats_out(result.stats),
        subjects={name: _stats_out(stats) for name, stats in result.subjects.items()},
        warnings=result.warnings,
        created_sessions=[
            ScheduledSessionOut.model_validate(session_to_record(session)) for session in result.created_sessions
        ],
        unassigned_instructors=result.unassigned_instructors,
        unassigned_rooms=result.unassigned_rooms,
        runtime_ms=result.runtime_ms,
    )


def _run_generation(db: Session, payload: GenerateRequest) -> GenerationResult:
    settings = get_settings()
    engine = SchedulingEngine(
        inputs=load_scheduling_inputs(db),
        roster=load_roster(db),
        options=SchedulingOptions(
            assign_instructors=payload.assign_instructors,
            assign_rooms=payload.assign_rooms,
            respect_preferences=payload.respect_preferences,
            avoid_conflicts=payload.avoid_conflicts,
        ),
        max_iterations_per_search=settings.max_iterations_per_search,
        max_run_iterations=settings.max_run_iterations,
        tolerance=settings.workload_tolerance_factor,
    )
    return engine.run(payload.subjects)


@router.post("/generate", response_model=GenerateResponse)
def generate(payload: GenerateRequest, db: Session = Depends(get_db)) -> GenerateResponse:
    result = _run_generation(db, payload)
    persist_sessions(db, result.created_sessions)
    db.commit()
    if result.stats.failed:
        logger.warning("Generation left %d session(s) unplaced", result.stats.failed)
    return _response(result)
