"""Central API router composition.

This module is responsible for mounting individual route modules on the main app
router and providing a single import point for `FastAPI.include_router(...)`.
"""

from fastapi import APIRouter

from .announcements import router as announcements_router
from .auth import router as auth_router
from .colleges import router as colleges_router
from .comparisons import router as comparisons_router
from .dashboard import router as dashboard_router
from .errors import router as errors_router
from .golf import router as golf_router
from .golf_courses import router as golf_courses_router
from .jobs import router as jobs_router
from .messages import router as messages_router
from .notifications import router as notifications_router
from .players import router as players_router
from .profile import router as profile_router
from .qualifiers import router as qualifiers_router
from .teams import router as teams_router
from .watchlist import router as watchlist_router

router = APIRouter(prefix="/api/v1")

router.include_router(auth_router)
router.include_router(profile_router)
router.include_router(players_router)
router.include_router(comparisons_router)
router.include_router(colleges_router)
router.include_router(watchlist_router)
router.include_router(messages_router)
router.include_router(notifications_router)
router.include_router(dashboard_router)
router.include_router(teams_router)
router.include_router(announcements_router)
router.include_router(golf_courses_router)
router.include_router(qualifiers_router)
router.include_router(golf_router)
router.include_router(jobs_router)
router.include_router(errors_router)
