"""
Quota Ledger - per-user monthly word allowance.

Admission is a pure decision over a usage snapshot. Persistence follows
two rules:

1. Cycle resets are a conditional UPDATE keyed on the cycle_start that was
   observed, so two stale-cycle requests cannot both reset.
2. Debits are a single `words_used = words_used + n` UPDATE, so overlapping
   requests never lose each other's consumption.

Admission and debit are deliberately not one transaction: the limit is
soft and enforced on the next request after it is crossed.
"""

import math
from datetime import UTC, datetime, timedelta

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from structlog import get_logger

from novluma.config import settings
from novluma.db.models import User
from novluma.exceptions import WriteVerificationError
from novluma.models.api import UserRole
from novluma.models.domain import (
    AdmissionDecision,
    UsageRecord,
    UsageSummary,
    UserRecord,
    VerifiedIdentity,
)
from novluma.observability import metrics

logger = get_logger(__name__)

_SECONDS_PER_DAY = 86400


def _utc_now() -> datetime:
    """Get current UTC timestamp."""
    return datetime.now(UTC)


def days_since(cycle_start: datetime, now: datetime) -> int:
    """Whole days between two instants, rounded up."""
    elapsed = abs((now - cycle_start).total_seconds())
    return math.ceil(elapsed / _SECONDS_PER_DAY)


def is_cycle_stale(cycle_start: datetime, now: datetime, cycle_days: int | None = None) -> bool:
    """True once more than `cycle_days` days have elapsed since cycle_start."""
    if cycle_days is None:
        cycle_days = settings.billing_cycle_days
    return days_since(cycle_start, now) > cycle_days


def admit(
    usage: UsageRecord,
    role: UserRole | str,
    now: datetime,
    limit: int | None = None,
    cycle_days: int | None = None,
) -> AdmissionDecision:
    """
    Decide whether a user may start another generation.

    Admins are always admitted and never reset. For everyone else a stale
    cycle counts as zero usage, and the limit check uses that post-reset
    value.
    """
    if limit is None:
        limit = settings.monthly_word_limit

    if role == UserRole.ADMIN:
        return AdmissionDecision(
            admitted=True, reset_required=False, words_used=usage.words_used, limit=limit
        )

    reset_required = is_cycle_stale(usage.cycle_start, now, cycle_days)
    words_used = 0 if reset_required else usage.words_used

    return AdmissionDecision(
        admitted=words_used < limit,
        reset_required=reset_required,
        words_used=words_used,
        limit=limit,
    )


class QuotaLedger:
    """
    Storage-facing half of the quota system.

    Owns the usage columns of the users table.
    """

    def __init__(self, session: AsyncSession) -> None:
        """Initialize ledger with database session."""
        self.session = session

    async def get_or_init_usage(self, identity: VerifiedIdentity) -> UserRecord:
        """
        Load the user's record, creating it with zero usage on first sight.

        Storage errors propagate to the caller.
        """
        user = await self._find_user(identity.user_id)

        if user is None:
            new_user = User(
                uid=identity.user_id,
                email=identity.email,
                display_name=identity.name,
                role=UserRole.USER.value,
                plan="free",
                words_used=0,
                cycle_start=_utc_now(),
            )
            self.session.add(new_user)

            try:
                await self.session.flush()
                await self.session.commit()
            except IntegrityError as e:
                # Created by a concurrent request
                logger.warning(
                    "user_creation_integrity_error", user_id=identity.user_id, error=str(e)
                )
                await self.session.rollback()
                user = await self._find_user(identity.user_id)
                if user is None:
                    raise WriteVerificationError(f"User creation failed: {e}") from e
            else:
                user = new_user
                logger.info("user_created", user_id=identity.user_id)

        return self._user_to_domain(user)

    async def reset_cycle(
        self, user_id: str, observed_cycle_start: datetime, now: datetime | None = None
    ) -> bool:
        """
        Start a new billing cycle for the user.

        Only applies if cycle_start still equals the value the admission
        decision was made on. Returns False when another request got there
        first, which leaves the record in the same reset state.
        """
        now = now or _utc_now()
        stmt = (
            update(User)
            .where(User.uid == user_id, User.cycle_start == observed_cycle_start)
            .values(words_used=0, cycle_start=now)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        await self.session.commit()

        applied = bool(result.rowcount)
        if applied:
            metrics.record_cycle_reset()
            logger.info(
                "usage_cycle_reset",
                user_id=user_id,
                previous_cycle_start=observed_cycle_start.isoformat(),
            )
        else:
            logger.info("usage_cycle_reset_already_applied", user_id=user_id)
        return applied

    async def debit(self, user_id: str, word_count: int) -> None:
        """
        Atomically add word_count to the user's usage.

        Non-positive counts are ignored.
        """
        if word_count <= 0:
            return

        stmt = (
            update(User)
            .where(User.uid == user_id)
            .values(words_used=User.words_used + word_count)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        await self.session.commit()

        if not result.rowcount:
            raise WriteVerificationError(f"User {user_id} not found while debiting usage")

        logger.info("usage_debited", user_id=user_id, words=word_count)

    async def usage_summary(
        self, identity: VerifiedIdentity, now: datetime | None = None
    ) -> UsageSummary:
        """
        Effective usage for display.

        A stale cycle is shown as already reset; nothing is written beyond
        first-sight creation.
        """
        now = now or _utc_now()
        record = await self.get_or_init_usage(identity)
        decision = admit(record.usage, record.role, now)

        cycle_start = now if decision.reset_required else record.usage.cycle_start
        return UsageSummary(
            user_id=record.user_id,
            role=record.role,
            words_used=decision.words_used,
            word_limit=decision.limit,
            cycle_start=cycle_start,
            cycle_resets_at=cycle_start + timedelta(days=settings.billing_cycle_days),
        )

    # ========================================================================
    # Private Helper Methods
    # ========================================================================

    async def _find_user(self, user_id: str) -> User | None:
        stmt = select(User).where(User.uid == user_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    def _user_to_domain(self, user: User) -> UserRecord:
        """Convert ORM user to domain model."""
        cycle_start = user.cycle_start
        if cycle_start.tzinfo is None:
            cycle_start = cycle_start.replace(tzinfo=UTC)

        try:
            role = UserRole(user.role)
        except ValueError:
            logger.warning("unknown_user_role", user_id=user.uid, role=user.role)
            role = UserRole.USER

        return UserRecord(
            user_id=user.uid,
            email=user.email,
            role=role,
            usage=UsageRecord(words_used=user.words_used, cycle_start=cycle_start),
        )
