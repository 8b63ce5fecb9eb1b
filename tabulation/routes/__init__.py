"""
tabulation/routes/__init__.py
Route registration
"""
from fastapi import APIRouter
from tabulation.routes import events, segments, scores, rankings

router = APIRouter()

# Lifecycle
router.include_router(events.router)
router.include_router(segments.router)

# Scoring
router.include_router(scores.router)

# Reports
router.include_router(rankings.router)
