"""
Collaborator Interfaces (SOLID - DIP)
=====================================

The lifecycle manager talks to the wallet and the notification sink only
through these abstractions. Invocation is at-most-once per settlement;
implementations are not assumed idempotent.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass
class EnergyResult:
    """Outcome of adding resource points to a wallet"""
    new_progress: int
    is_completed: bool
    completed_cycles: int


class Wallet(ABC):
    """Mutate-by-delta wallet capability"""

    @abstractmethod
    def add_currency(self, user_id: str, delta: float) -> None:
        pass

    @abstractmethod
    def add_coins(self, user_id: str, delta: int) -> None:
        pass

    @abstractmethod
    def add_resource_points(self, user_id: str, delta: int) -> EnergyResult:
        pass


class Notifier(ABC):
    """Fire-and-forget notification sink"""

    @abstractmethod
    def notify(self, user_id: str, title: str, message: str) -> None:
        pass

    def get_name(self) -> str:
        return self.__class__.__name__
