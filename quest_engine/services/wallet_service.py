"""
Wallet Service - баланс, монеты и энергия пользователя.

SQLite-backed implementation of the Wallet collaborator. Each call applies
one delta; calling it twice credits twice.
"""

import logging

from db_service import WalletRepository
from ..interfaces import Wallet, EnergyResult
from ..schemas import WalletSchema

logger = logging.getLogger("wallet_service")


class WalletService(Wallet):
    """Service for wallet mutations used by reward settlement."""

    def __init__(self, wallets: WalletRepository, energy_cycle_size: int = 100):
        self.wallets = wallets
        self.energy_cycle_size = energy_cycle_size

    def get_wallet(self, user_id: str) -> WalletSchema:
        self.wallets.ensure(user_id)
        return WalletSchema(**self.wallets.get_by_id(user_id))

    def add_currency(self, user_id: str, delta: float) -> None:
        self.wallets.ensure(user_id)
        self.wallets.add_balance(user_id, delta)
        logger.info(f"💰 Added money {delta} to user {user_id}")

    def add_coins(self, user_id: str, delta: int) -> None:
        self.wallets.ensure(user_id)
        self.wallets.add_coins(user_id, delta)
        logger.info(f"🪙 Added {delta} coins to user {user_id}")

    def add_resource_points(self, user_id: str, delta: int) -> EnergyResult:
        """
        Add energy towards the bonus cycle.

        Whole cycles roll over into energy_cycles, the remainder stays as
        progress (e.g. 95 + 10 -> progress 5, one cycle completed).
        """
        self.wallets.ensure(user_id)
        before = self.wallets.get_by_id(user_id)
        self.wallets.add_energy(user_id, delta, self.energy_cycle_size)
        after = self.wallets.get_by_id(user_id)

        completed = after["energy_cycles"] - before["energy_cycles"]
        if completed:
            logger.info(f"⚡ Energy overflow for user {user_id}: {completed} cycle(s), remainder {after['energy']}")
        else:
            logger.info(f"⚡ Added {delta} energy to user {user_id} (progress {after['energy']})")

        return EnergyResult(
            new_progress=after["energy"],
            is_completed=completed > 0,
            completed_cycles=completed,
        )
