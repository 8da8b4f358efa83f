"""
Custom exception classes for the Quest Engine.
Provides standardized error handling across the application.

Expected outcomes (not found, pool full, ineligible, already terminal) travel
inside QuestResult; only store and settlement failures are raised.
"""


class QuestEngineException(Exception):
    """Base exception for all Quest Engine errors."""

    http_status = 500

    def __init__(self, message: str, error_code: str = None, context: dict = None):
        self.message = message
        self.error_code = error_code or self.default_code()
        self.context = context or {}
        super().__init__(self.message)

    @classmethod
    def default_code(cls) -> str:
        return cls.__name__

    def to_user_message(self) -> str:
        """Return a user-friendly error message."""
        return f"❌ {self.message}"

    def to_dict(self) -> dict:
        return {
            "error": self.error_code,
            "message": self.message,
            "context": self.context,
        }


# ============================================================================
# EXPECTED OUTCOMES (4xx)
# ============================================================================

class QuestRejectedError(QuestEngineException):
    """Base class for outcomes the caller can recover from."""
    http_status = 400


class QuestNotFoundError(QuestRejectedError):
    """Quest instance is absent or belongs to another user."""
    http_status = 404

    @classmethod
    def default_code(cls) -> str:
        return "quest_not_found"

    def to_user_message(self) -> str:
        return "❌ Квест не найден."


class TemplateNotFoundError(QuestRejectedError):
    """Catalog has no template with the requested id."""
    http_status = 404

    @classmethod
    def default_code(cls) -> str:
        return "template_not_found"


class PoolFullError(QuestRejectedError):
    """User already holds the maximum number of active quests."""
    http_status = 400

    @classmethod
    def default_code(cls) -> str:
        return "pool_full"

    def to_user_message(self) -> str:
        return "❌ Достигнут лимит активных заданий."


class IneligibleError(QuestRejectedError):
    """Eligibility gate rejected the quest type (duplicate, cooldown or daily cap)."""
    http_status = 409

    @classmethod
    def default_code(cls) -> str:
        return "ineligible"


class AlreadyTerminalError(QuestRejectedError):
    """Operation attempted on a completed or expired quest."""
    http_status = 409

    @classmethod
    def default_code(cls) -> str:
        return "already_terminal"

    def to_user_message(self) -> str:
        return "❌ Это задание уже завершено."


# ============================================================================
# INFRASTRUCTURE FAILURES (5xx)
# ============================================================================

class StoreUnavailableError(QuestEngineException):
    """Raised when the quest store cannot be reached or a query fails."""
    http_status = 503

    @classmethod
    def default_code(cls) -> str:
        return "store_unavailable"

    def to_user_message(self) -> str:
        return "❌ Ошибка подключения к БД. Попробуй позже."


class WalletSettlementFailedError(QuestEngineException):
    """
    Raised when a quest was committed as completed but the reward could not
    be applied. The quest stays completed; an operator re-settles it using
    the quest id in context.
    """
    http_status = 500

    def __init__(self, quest_id: int, user_id: str, cause: Exception = None, applied: list = None):
        super().__init__(
            f"Reward settlement failed for quest {quest_id}",
            error_code="wallet_settlement_failed",
            context={
                "quest_id": quest_id,
                "user_id": user_id,
                "cause": str(cause) if cause else None,
                "applied": applied or [],
            },
        )
        self.quest_id = quest_id
        self.user_id = user_id
        self.cause = cause


# ============================================================================
# UTILITY FUNCTIONS
# ============================================================================

def handle_exception(exc: Exception) -> str:
    """
    Convert any exception to user-friendly message.

    Args:
        exc: The exception to handle

    Returns:
        User-friendly error message
    """
    if isinstance(exc, QuestEngineException):
        return exc.to_user_message()
    return "❌ Неизвестная ошибка. Обратись в поддержку."
