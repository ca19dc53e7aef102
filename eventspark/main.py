"""
EventSpark client - entry point.

Restores the stored session, asks the API who the user is and hands back the
dashboard for that role:
- admin      -> AdminDashboard (KPIs, approvals, roles)
- organizer  -> OrganizerDashboard (own events, sales)
- user       -> UserDashboard (browse, tickets, cancellation)
"""

from typing import Optional

from eventspark.core.config import Settings, get_settings
from eventspark.core.errors import ApiError
from eventspark.core.logging import get_logger, setup_logging
from eventspark.infrastructure.api_client import TicketingApiClient
from eventspark.schemas.user import User, UserRole
from eventspark.services.dashboards import AdminDashboard, Dashboard, OrganizerDashboard, UserDashboard
from eventspark.services.interfaces import Notifier


def create_dashboard(
    user: User,
    api: TicketingApiClient,
    notifier: Optional[Notifier] = None,
    interval: Optional[float] = None,
) -> Dashboard:
    if user.role == UserRole.ADMIN:
        return AdminDashboard(api, notifier, interval)
    if user.role == UserRole.ORGANIZER:
        return OrganizerDashboard(api, user.id or "", notifier, interval)
    return UserDashboard(api, notifier, interval)


async def open_dashboard(
    settings: Optional[Settings] = None,
    client: Optional[TicketingApiClient] = None,
    notifier: Optional[Notifier] = None,
) -> Optional[Dashboard]:
    """Dashboard for the signed-in user, or None when there is no usable session.

    The dashboard is returned unstarted; the caller owns its lifecycle.
    """
    setup_logging()
    logger = get_logger(__name__)
    settings = settings or get_settings()
    api = client or TicketingApiClient(settings)

    logger.info("client_starting", app=settings.APP_NAME, version=settings.APP_VERSION, api=settings.API_URL)

    if not api.tokens.load():
        logger.info("no_session")
        if client is None:
            await api.aclose()
        return None

    try:
        user = await api.current_user()
    except ApiError as e:
        logger.warning("session_lookup_failed", error=str(e))
        if client is None:
            await api.aclose()
        return None

    dashboard = create_dashboard(user, api, notifier, settings.REFRESH_INTERVAL_SECONDS)
    logger.info("dashboard_opened", role=user.role.value, user_id=user.id)
    return dashboard
