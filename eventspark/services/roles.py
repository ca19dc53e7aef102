"""
Role management for the admin view.

A role change moves the user between buckets locally at once. The server
update is then sent, and the buckets are re-fetched whatever the answer, so the
optimistic move is always checked against server truth.
"""

from dataclasses import dataclass

from eventspark.core.errors import ApiError, BusinessError, DuplicateUserError
from eventspark.core.logging import get_logger
from eventspark.core.metrics import record_role_change
from eventspark.infrastructure.api_client import TicketingApiClient
from eventspark.schemas.user import UserBuckets, UserCreate, UserRole
from eventspark.services.interfaces import Notifier
from eventspark.services.state import StateSlot

logger = get_logger(__name__)


@dataclass(frozen=True)
class RoleChangeOutcome:
    email: str
    role: UserRole
    confirmed: bool
    reconciled: bool


def move_user(buckets: UserBuckets, email: str, new_role: UserRole) -> UserBuckets:
    """Remove ``email`` from every bucket and add it to ``new_role``'s bucket.

    Other fields of the user record are kept. Unknown emails leave the
    partition unchanged.
    """
    wanted = email.lower()
    moved = buckets.find(email)
    updated = {
        role.value: [u for u in buckets.bucket(role) if u.email.lower() != wanted]
        for role in UserRole
    }
    if moved is not None:
        updated[new_role.value].append(moved.model_copy(update={"role": new_role}))
    return UserBuckets(**updated)


def check_new_email(buckets: UserBuckets, email: str) -> None:
    """Raises DuplicateUserError if any bucket already holds ``email``."""
    if buckets.contains_email(email):
        raise DuplicateUserError(email)


class RoleMutationCoordinator:
    def __init__(self, api: TicketingApiClient, users: StateSlot[UserBuckets], notifier: Notifier) -> None:
        self._api = api
        self._users = users
        self._notifier = notifier

    def apply_optimistic(self, email: str, new_role: UserRole) -> tuple[int, UserBuckets]:
        snapshot = self._users.value
        token = self._users.set_optimistic(move_user(snapshot, email, new_role))
        return token, snapshot

    async def reconcile(self) -> bool:
        try:
            await self._users.load(self._api.list_users)
        except ApiError as e:
            logger.warning("users_reconcile_failed", error=str(e))
            return False
        return True

    async def change_role(self, email: str, new_role: UserRole) -> RoleChangeOutcome:
        token, snapshot = self.apply_optimistic(email, new_role)
        try:
            await self._api.change_role(email, new_role)
        except ApiError as e:
            confirmed = False
            message = e.message if isinstance(e, BusinessError) else "Failed to update role"
            self._notifier.error(message)
            logger.info("role_change_rejected", email=email, role=new_role.value, error=str(e))
        else:
            confirmed = True
            self._notifier.success("Role updated and user notified by email.")
            logger.info("role_changed", email=email, role=new_role.value)
        record_role_change(success=confirmed)

        reconciled = await self.reconcile()
        if not reconciled and not confirmed:
            # The server refused the move and we cannot re-read: undo it locally
            self._users.rollback(token, snapshot)
        return RoleChangeOutcome(email=email, role=new_role, confirmed=confirmed, reconciled=reconciled)

    async def add_user(self, form: UserCreate) -> bool:
        try:
            check_new_email(self._users.value, form.email)
        except DuplicateUserError as e:
            self._notifier.error(e.message)
            logger.info("add_user_duplicate", email=form.email)
            return False

        try:
            await self._api.create_user(form)
        except BusinessError as e:
            self._notifier.error(e.message or "Failed to add user")
            return False
        except ApiError as e:
            logger.warning("add_user_failed", error=str(e))
            self._notifier.error("Failed to add user")
            return False

        self._notifier.success("Invite sent successfully!")
        logger.info("user_invited", email=form.email, role=form.role.value)
        await self.reconcile()
        return True
