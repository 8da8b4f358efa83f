"""
Quest Service - жизненный цикл квестов.

Creates, reads, progresses, completes, expires and deletes quest instances
for one user at a time. Every public operation:

* takes the per-user lock, so one process serializes a user's calls
  (the pool bound itself is enforced by the store, across processes);
* runs the expiry sweep first, so overdue quests are never served as active.

State machine: active -> completed (reward settled once), active -> expired
(no reward), active -> deleted. Nothing leaves completed or expired.
"""

import logging
import threading
import weakref
from contextlib import contextmanager
from datetime import datetime, timedelta, timezone, tzinfo
from typing import Optional, List, Dict, Callable, Iterable

from db_service import QuestRepository, REJECT_POOL_FULL, to_db_time, utc_now
from exceptions import (
    QuestNotFoundError, TemplateNotFoundError, PoolFullError, IneligibleError,
    AlreadyTerminalError, WalletSettlementFailedError,
)
from .catalog import QuestCatalog
from .eligibility import EligibilityGate
from .replenishment import QuestReplenisher
from .results import QuestResult
from .reward_parser import resolve_reward
from ..interfaces import Wallet, Notifier
from ..schemas import QuestSchema, QuestStatus, QuestTemplateSchema, RewardKind, RewardOperation, RewardType

logger = logging.getLogger("quest_service")


class UserLocks:
    """
    One re-entrant lock per user id.

    Entries are weak: a lock disappears from the map as soon as no caller
    holds a reference to it, so the map only tracks users with calls in
    flight.
    """

    def __init__(self):
        self._locks: "weakref.WeakValueDictionary[str, threading.RLock]" = weakref.WeakValueDictionary()
        self._guard = threading.Lock()

    def __len__(self) -> int:
        return len(self._locks)

    def get(self, user_id: str) -> threading.RLock:
        with self._guard:
            lock = self._locks.get(user_id)
            if lock is None:
                lock = threading.RLock()
                self._locks[user_id] = lock
            return lock

    @contextmanager
    def hold(self, user_id: str):
        lock = self.get(user_id)
        with lock:
            yield


class QuestService:
    """Quest Lifecycle Manager."""

    def __init__(
        self,
        quests: QuestRepository,
        catalog: QuestCatalog,
        wallet: Wallet,
        notifier: Optional[Notifier] = None,
        max_active: int = 3,
        replenish_attempts: int = 10,
        notifiable_types: Iterable[str] = (),
        default_icon: str = "/trials/energy.svg",
        clock: Callable[[], datetime] = utc_now,
        day_zone: tzinfo = timezone.utc,
    ):
        self.quests = quests
        self.catalog = catalog
        self.wallet = wallet
        self.notifier = notifier
        self.max_active = max_active
        self.notifiable_types = frozenset(notifiable_types)
        self.default_icon = default_icon
        self.clock = clock
        self.gate = EligibilityGate(quests, clock, day_zone)
        self.replenisher = QuestReplenisher(self, catalog, replenish_attempts)
        self.locks = UserLocks()

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _sweep(self, user_id: str) -> None:
        expired = self.quests.expire_overdue(user_id, self.clock())
        if expired:
            logger.info(f"⌛ Expired {expired} overdue quest(s) for user {user_id}")

    def _to_schema(self, row) -> QuestSchema:
        return QuestSchema.from_row(row, now=self.clock())

    def _load_active(self, quest_id: int, user_id: str):
        """Owned row plus the rejection to return if it is not usable."""
        row = self.quests.get_owned(quest_id, user_id)
        if row is None:
            return None, QuestNotFoundError(f"Quest {quest_id} not found", context={"quest_id": quest_id})
        if row["status"] != QuestStatus.ACTIVE.value:
            return row, AlreadyTerminalError(
                f"Quest {quest_id} is already {row['status']}",
                context={"quest_id": quest_id, "status": row["status"]},
            )
        return row, None

    def _pool_full(self, user_id: str, active: int) -> PoolFullError:
        logger.info(f"⛔ Max quests reached for user {user_id}: {active}/{self.max_active}")
        return PoolFullError(
            f"Active quest limit reached ({self.max_active})",
            context={"count": active, "max_quests": self.max_active},
        )

    @staticmethod
    def _ineligible(template: QuestTemplateSchema, reason: str) -> IneligibleError:
        return IneligibleError(
            f"Quest type {template.quest_type} cannot be issued now",
            context={"quest_type": template.quest_type, "reason": reason},
        )

    def _notify_created(self, user_id: str, template: QuestTemplateSchema) -> None:
        if self.notifier is None or template.quest_type not in self.notifiable_types:
            return
        try:
            self.notifier.notify(user_id, "New quest available", f"{template.title}: {template.description}")
        except Exception as e:
            logger.warning(f"⚠️ Notification for user {user_id} failed ({template.quest_type}): {e}")

    # ------------------------------------------------------------------
    # Read operations
    # ------------------------------------------------------------------

    def list_quests(self, user_id: str) -> List[QuestSchema]:
        """Active quests newest first, after expiring overdue ones."""
        with self.locks.hold(user_id):
            self._sweep(user_id)
            rows = self.quests.list_active(user_id)
        logger.info(f"📋 Found {len(rows)} active quests for user {user_id}")
        return [self._to_schema(row) for row in rows]

    def count_active(self, user_id: str) -> int:
        with self.locks.hold(user_id):
            self._sweep(user_id)
            return self.quests.count_active(user_id)

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------

    def create(self, user_id: str, template: QuestTemplateSchema) -> QuestResult:
        """
        Issue a quest from a template.

        Rejected with PoolFullError when the pool is full and with
        IneligibleError when the eligibility gate refuses the type.
        """
        with self.locks.hold(user_id):
            self._sweep(user_id)

            active = self.quests.count_active(user_id)
            if active >= self.max_active:
                return QuestResult.rejected(self._pool_full(user_id, active))

            reason = self.gate.check(user_id, template.quest_type, template.cooldown_minutes, template.max_per_day)
            if reason is not None:
                return QuestResult.rejected(self._ineligible(template, reason))

            now = self.clock()
            expires_at = now + timedelta(hours=template.expires_in_hours) if template.expires_in_hours else None

            # Re-checked atomically in the store: another process may have
            # inserted since the reads above
            row, rejection, active = self.quests.create_if_room(
                self.max_active,
                user_id=user_id,
                template_id=template.template_id,
                quest_type=template.quest_type,
                title=template.title,
                description=template.description,
                reward_type=RewardType(template.reward_type).value,
                reward_spec=template.reward_spec,
                progress_current=0,
                progress_target=template.progress_target,
                status=QuestStatus.ACTIVE.value,
                icon=template.icon or self.default_icon,
                created_at=to_db_time(now),
                expires_at=to_db_time(expires_at),
            )
            if rejection == REJECT_POOL_FULL:
                return QuestResult.rejected(self._pool_full(user_id, active))
            if rejection is not None:
                return QuestResult.rejected(self._ineligible(template, rejection))

        logger.info(
            f"✅ Created quest {row['id']} ({template.quest_type}) for user {user_id}, "
            f"expires: {expires_at.isoformat() if expires_at else 'never'}"
        )
        self._notify_created(user_id, template)
        return QuestResult(quest=self._to_schema(row))

    def create_from_template(self, user_id: str, template_id: str) -> QuestResult:
        template = self.catalog.lookup_by_id(template_id)
        if template is None:
            logger.info(f"Template not found: {template_id}")
            return QuestResult.rejected(TemplateNotFoundError(
                f"Template {template_id} not found", context={"template_id": template_id},
            ))
        return self.create(user_id, template)

    def create_random(self, user_id: str) -> QuestResult:
        """Issue one quest drawn from the catalog (bounded retries)."""
        with self.locks.hold(user_id):
            return self.replenisher.fill_slot(user_id)

    def fill(self, user_id: str) -> List[QuestSchema]:
        """Top the pool up to max_active; returns newly created quests."""
        with self.locks.hold(user_id):
            self._sweep(user_id)
            return self.replenisher.fill(user_id)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def update_progress(self, quest_id: int, user_id: str, progress: int) -> QuestResult:
        """
        Record progress, clamped to the target.

        Reaching the target never completes the quest; it only makes it
        ready to claim.
        """
        if progress < 0:
            raise ValueError("progress must be non-negative")

        with self.locks.hold(user_id):
            self._sweep(user_id)
            row, error = self._load_active(quest_id, user_id)
            if error is not None:
                return QuestResult.rejected(error)

            clamped = min(progress, row["progress_target"])
            if not self.quests.set_progress(quest_id, user_id, clamped):
                return QuestResult.rejected(AlreadyTerminalError(
                    f"Quest {quest_id} is no longer active", context={"quest_id": quest_id},
                ))
            row = self.quests.get_owned(quest_id, user_id)

        logger.info(f"📈 Quest {quest_id} progress {clamped}/{row['progress_target']} for user {user_id}")
        return QuestResult(quest=self._to_schema(row))

    def complete(self, quest_id: int, user_id: str) -> QuestResult:
        """
        Claim a quest: active -> completed, settle the reward, refill the pool.

        The status write is conditioned on the quest still being active and
        the reward is applied only by the caller whose write won. If the
        wallet fails afterwards the quest stays completed and
        WalletSettlementFailedError is raised with the quest id.
        """
        with self.locks.hold(user_id):
            self._sweep(user_id)
            row, error = self._load_active(quest_id, user_id)
            if error is not None:
                return QuestResult.rejected(error)

            if not self.quests.mark_completed(quest_id, user_id, self.clock()):
                logger.warning(f"⚠️ Quest {quest_id} was completed concurrently, skipping settlement")
                return QuestResult.rejected(AlreadyTerminalError(
                    f"Quest {quest_id} is already completed", context={"quest_id": quest_id},
                ))
            completed = self._to_schema(self.quests.get_owned(quest_id, user_id))
            logger.info(f"🏁 Marked quest {quest_id} as completed for user {user_id}")

            operations = resolve_reward(completed.reward_type, completed.reward_spec)
            applied: List[RewardOperation] = []
            settlement_error: Optional[Exception] = None
            try:
                for operation in operations:
                    self._apply(user_id, operation)
                    applied.append(operation)
            except Exception as e:
                settlement_error = e
                logger.error(f"❌ Reward settlement failed for quest {quest_id} (user {user_id}): {e}")

            new_quest = None
            if self.quests.count_active(user_id) < self.max_active:
                created = self.replenisher.fill(user_id)
                new_quest = created[0] if created else None

        if settlement_error is not None:
            raise WalletSettlementFailedError(
                quest_id, user_id, cause=settlement_error,
                applied=[op.model_dump(mode="json") for op in applied],
            ) from settlement_error

        wheel_spin = completed.reward_type == RewardType.WHEEL
        rewards_text = ", ".join(f"{op.kind.value}:{op.magnitude}" for op in applied)
        if wheel_spin:
            rewards_text = "wheel spin delegated"
        logger.info(f"🎁 Settled quest {quest_id} for user {user_id}: {rewards_text or 'nothing'}")
        return QuestResult(quest=completed, new_quest=new_quest, rewards=applied, wheel_spin=wheel_spin)

    def _apply(self, user_id: str, operation: RewardOperation) -> None:
        if operation.kind == RewardKind.CURRENCY:
            self.wallet.add_currency(user_id, operation.magnitude)
        elif operation.kind == RewardKind.COINS:
            self.wallet.add_coins(user_id, operation.magnitude)
        elif operation.kind == RewardKind.RESOURCE_POINTS:
            self.wallet.add_resource_points(user_id, operation.magnitude)
        else:
            raise ValueError(f"Unresolved reward operation: {operation.kind}")

    def replace(self, quest_id: int, user_id: str) -> QuestResult:
        """Drop a quest without reward and draw a replacement for its slot."""
        with self.locks.hold(user_id):
            self._sweep(user_id)
            if not self.quests.delete_owned(quest_id, user_id):
                return QuestResult.rejected(QuestNotFoundError(
                    f"Quest {quest_id} not found", context={"quest_id": quest_id},
                ))
            logger.info(f"🗑️ Deleted quest {quest_id} for replacement (user {user_id})")

            result = self.replenisher.fill_slot(user_id)

        if not result.ok:
            logger.info(f"No replacement issued for user {user_id}: {result.error.error_code}")
        return QuestResult(new_quest=result.quest)

    def delete(self, quest_id: int, user_id: str) -> bool:
        """Remove a quest; no reward, no replenishment."""
        with self.locks.hold(user_id):
            self._sweep(user_id)
            deleted = self.quests.delete_owned(quest_id, user_id)
        if deleted:
            logger.info(f"🗑️ Deleted quest {quest_id} for user {user_id}")
        return deleted

    # ------------------------------------------------------------------
    # Maintenance
    # ------------------------------------------------------------------

    def reconcile_pools(self) -> Dict[str, int]:
        """
        Periodic safety net: expire overdue quests for every user and trim
        pools above max_active, keeping the newest.
        """
        expired = self.quests.expire_all_overdue(self.clock())
        trimmed = 0
        for user_id in self.quests.users_over_limit(self.max_active):
            with self.locks.hold(user_id):
                removed = self.quests.delete_excess_active(user_id, self.max_active)
            if removed:
                logger.warning(f"⚠️ Trimmed {removed} excess active quest(s) for user {user_id}")
            trimmed += removed
        return {"expired": expired, "trimmed": trimmed}
