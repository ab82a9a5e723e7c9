"""HTTP route modules of the Helm Sports API.

One module per area (auth, profile, discover, comparisons, colleges,
watchlist, messages, notifications, dashboard, teams, announcements, golf
courses, qualifiers, golf, jobs, client error log). `main.py`
mounts the composed `/api/v1` router:

    from services.api.app.routes import router
"""

from .api_router import router
