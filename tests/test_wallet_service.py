"""
Wallet and notification service tests.
"""

import pytest

from quest_engine.interfaces import EnergyResult


class TestWalletService:

    def test_new_wallet_is_empty(self, wallet_service):
        wallet = wallet_service.get_wallet("user-1")
        assert wallet.balance == 0
        assert wallet.coins == 0
        assert wallet.energy == 0
        assert wallet.energy_cycles == 0

    def test_add_currency_and_coins(self, wallet_service):
        wallet_service.add_currency("user-1", 1000)
        wallet_service.add_currency("user-1", 0.5)
        wallet_service.add_coins("user-1", 250)

        wallet = wallet_service.get_wallet("user-1")
        assert wallet.balance == pytest.approx(1000.5)
        assert wallet.coins == 250

    def test_every_call_credits(self, wallet_service):
        """Not idempotent: two calls mean two credits."""
        wallet_service.add_coins("user-1", 100)
        wallet_service.add_coins("user-1", 100)
        assert wallet_service.get_wallet("user-1").coins == 200

    def test_energy_below_cycle(self, wallet_service):
        result = wallet_service.add_resource_points("user-1", 40)
        assert result == EnergyResult(new_progress=40, is_completed=False, completed_cycles=0)

    def test_energy_overflow_rolls_into_cycle(self, wallet_service):
        wallet_service.add_resource_points("user-1", 95)
        result = wallet_service.add_resource_points("user-1", 10)

        assert result.is_completed
        assert result.completed_cycles == 1
        assert result.new_progress == 5
        wallet = wallet_service.get_wallet("user-1")
        assert wallet.energy == 5
        assert wallet.energy_cycles == 1

    def test_energy_multiple_cycles_at_once(self, wallet_service):
        result = wallet_service.add_resource_points("user-1", 250)
        assert result.completed_cycles == 2
        assert result.new_progress == 50

    def test_wallets_are_per_user(self, wallet_service):
        wallet_service.add_coins("user-1", 10)
        assert wallet_service.get_wallet("user-2").coins == 0


class TestNotificationService:

    def test_notify_stores_row(self, notification_service):
        notification_service.notify("user-1", "New quest available", "Lucky spin")

        stored = notification_service.get_notifications("user-1")
        assert len(stored) == 1
        assert stored[0]["title"] == "New quest available"
        assert stored[0]["is_read"] == 0

    def test_newest_first(self, notification_service, clock):
        notification_service.notify("user-1", "first", "a")
        clock.advance(minutes=1)
        notification_service.notify("user-1", "second", "b")

        titles = [n["title"] for n in notification_service.get_notifications("user-1")]
        assert titles == ["second", "first"]

    def test_get_name(self, notification_service):
        assert notification_service.get_name() == "NotificationService"
