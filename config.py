# config.py
# Централизованная конфигурация для Quest Engine
# Version: 1.0.0

import os
from dotenv import load_dotenv

load_dotenv()

# ============================================================================
# DATABASE CONFIGURATION
# ============================================================================
DATABASE_PATH = os.getenv("DATABASE_PATH", "./quests.db")
DATABASE_TIMEOUT = int(os.getenv("DATABASE_TIMEOUT", "30"))

# ============================================================================
# QUEST POOL CONFIGURATION
# ============================================================================
MAX_ACTIVE_QUESTS = int(os.getenv("MAX_ACTIVE_QUESTS", "3"))
REPLENISH_MAX_ATTEMPTS = int(os.getenv("REPLENISH_MAX_ATTEMPTS", "10"))
DEFAULT_QUEST_ICON = os.getenv("DEFAULT_QUEST_ICON", "/trials/energy.svg")

# Empty path means the built-in catalog from quest_engine.catalog_data
QUEST_CATALOG_PATH = os.getenv("QUEST_CATALOG_PATH", "")

# Timestamps are stored in UTC; the daily completion cap resets at midnight here
QUEST_TIMEZONE = os.getenv("QUEST_TIMEZONE", "UTC")

NOTIFIABLE_QUEST_TYPES = frozenset(
    t.strip()
    for t in os.getenv("NOTIFIABLE_QUEST_TYPES", "big_luck,jackpot_spin,trading_master").split(",")
    if t.strip()
)

# ============================================================================
# WALLET CONFIGURATION
# ============================================================================
ENERGY_CYCLE_SIZE = int(os.getenv("ENERGY_CYCLE_SIZE", "100"))

# ============================================================================
# BACKGROUND SWEEP
# ============================================================================
# 0 disables the periodic sweep; expiry is still applied lazily on every call
SWEEP_INTERVAL_SECONDS = int(os.getenv("SWEEP_INTERVAL_SECONDS", "0"))

# ============================================================================
# API SERVER CONFIGURATION
# ============================================================================
ALLOWED_ORIGINS = os.getenv("ALLOWED_ORIGINS", "*").split(",")
PORT = int(os.getenv("PORT", "8000"))
USER_ID_HEADER = os.getenv("USER_ID_HEADER", "X-User-Id")

# ============================================================================
# LOGGING
# ============================================================================
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DEBUG_REQUESTS = os.getenv("DEBUG_REQUESTS", "false").lower() == "true"
