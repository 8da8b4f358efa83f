"""
Built-in quest templates.

Used when QUEST_CATALOG_PATH is not set. A JSON catalog file holds a list of
objects with the same keys.
"""

DEFAULT_TEMPLATES = [
    # === EASY (frequent, short cooldowns) ===
    {
        "template_id": "daily_bonus",
        "quest_type": "daily_bonus",
        "title": "Daily bonus",
        "description": "Claim the daily bonus for opening the app",
        "reward_type": "money",
        "reward_spec": "500",
        "progress_target": 1,
        "icon": "/trials/energy.svg",
        "category": "daily",
        "rarity": "common",
        "expires_in_hours": 6,
        "cooldown_minutes": 30,
        "max_per_day": 3,
        "rarity_weight": 30,
    },
    {
        "template_id": "watch_ad",
        "quest_type": "watch_ad",
        "title": "Watch an ad",
        "description": "Watch a video ad to earn a reward",
        "reward_type": "mixed",
        "reward_spec": "10_energy_800_money",
        "progress_target": 1,
        "icon": "/trials/video.svg",
        "category": "video",
        "rarity": "common",
        "expires_in_hours": 12,
        "cooldown_minutes": 20,
        "max_per_day": 10,
        "rarity_weight": 25,
    },
    {
        "template_id": "collect_energy",
        "quest_type": "collect_energy",
        "title": "Recharge energy",
        "description": "Collect free energy for trading",
        "reward_type": "energy",
        "reward_spec": "20",
        "progress_target": 1,
        "icon": "/trials/energy.svg",
        "category": "energy",
        "rarity": "common",
        "expires_in_hours": 8,
        "cooldown_minutes": 45,
        "max_per_day": 5,
        "rarity_weight": 25,
    },
    {
        "template_id": "bonus_coins",
        "quest_type": "bonus_coins",
        "title": "Bonus coins",
        "description": "Earn bonus coins for being active",
        "reward_type": "coins",
        "reward_spec": "35",
        "progress_target": 1,
        "icon": "/money.svg",
        "category": "daily",
        "rarity": "common",
        "expires_in_hours": 4,
        "cooldown_minutes": 25,
        "max_per_day": 5,
        "rarity_weight": 28,
    },
    {
        "template_id": "small_energy",
        "quest_type": "small_energy",
        "title": "Small energy boost",
        "description": "Restore a little energy for trading",
        "reward_type": "energy",
        "reward_spec": "12",
        "progress_target": 1,
        "icon": "/trials/energy.svg",
        "category": "energy",
        "rarity": "common",
        "expires_in_hours": 6,
        "cooldown_minutes": 30,
        "max_per_day": 8,
        "rarity_weight": 26,
    },
    {
        "template_id": "starter_cash",
        "quest_type": "starter_cash",
        "title": "Starter capital",
        "description": "Get starting funds for trading",
        "reward_type": "money",
        "reward_spec": "750",
        "progress_target": 1,
        "icon": "/trials/dollars.svg",
        "category": "daily",
        "rarity": "common",
        "expires_in_hours": 5,
        "cooldown_minutes": 40,
        "max_per_day": 4,
        "rarity_weight": 24,
    },
    {
        "template_id": "luck_wheel",
        "quest_type": "luck_wheel",
        "title": "Wheel of luck",
        "description": "Spin the wheel for a random prize",
        "reward_type": "wheel",
        "reward_spec": "random",
        "progress_target": 1,
        "icon": "/wheel/coins.svg",
        "category": "daily",
        "rarity": "common",
        "expires_in_hours": 8,
        "cooldown_minutes": 30,
        "max_per_day": 5,
        "rarity_weight": 20,
    },
    {
        "template_id": "quick_wheel",
        "quest_type": "quick_wheel",
        "title": "Quick wheel",
        "description": "Grab a quick prize from the wheel",
        "reward_type": "wheel",
        "reward_spec": "random",
        "progress_target": 1,
        "icon": "/wheel/coins.svg",
        "category": "daily",
        "rarity": "common",
        "expires_in_hours": 4,
        "cooldown_minutes": 20,
        "max_per_day": 6,
        "rarity_weight": 22,
    },
    # === MEDIUM (moderate cooldowns) ===
    {
        "template_id": "complete_trades",
        "quest_type": "complete_trades",
        "title": "Active trader",
        "description": "Make 3 trades",
        "reward_type": "mixed",
        "reward_spec": "15_energy_1200_money",
        "progress_target": 3,
        "icon": "/trials/trade.svg",
        "category": "trade",
        "rarity": "rare",
        "expires_in_hours": 12,
        "cooldown_minutes": 60,
        "max_per_day": 2,
        "rarity_weight": 15,
    },
    {
        "template_id": "check_profile",
        "quest_type": "check_profile",
        "title": "Review your profile",
        "description": "Visit your profile and check your stats",
        "reward_type": "coins",
        "reward_spec": "75",
        "progress_target": 1,
        "icon": "/trials/social.svg",
        "category": "social",
        "rarity": "rare",
        "expires_in_hours": 18,
        "cooldown_minutes": 90,
        "max_per_day": 3,
        "rarity_weight": 12,
    },
    {
        "template_id": "lucky_spin",
        "quest_type": "lucky_spin",
        "title": "Try your luck",
        "description": "Spin the fortune wheel for a random prize",
        "reward_type": "wheel",
        "reward_spec": "random",
        "progress_target": 1,
        "icon": "/wheel/coins.svg",
        "category": "daily",
        "rarity": "rare",
        "expires_in_hours": 8,
        "cooldown_minutes": 45,
        "max_per_day": 3,
        "rarity_weight": 18,
    },
    {
        "template_id": "big_wheel",
        "quest_type": "big_wheel",
        "title": "Big wheel",
        "description": "Spin the premium wheel with bigger prizes",
        "reward_type": "wheel",
        "reward_spec": "premium_random",
        "progress_target": 1,
        "icon": "/wheel/coins.svg",
        "category": "premium",
        "rarity": "rare",
        "expires_in_hours": 6,
        "cooldown_minutes": 60,
        "max_per_day": 3,
        "rarity_weight": 15,
    },
    # === RARE (long cooldowns, big rewards) ===
    {
        "template_id": "profitable_day",
        "quest_type": "profitable_day",
        "title": "Profitable day",
        "description": "Earn $1000 of profit in one day",
        "reward_type": "mixed",
        "reward_spec": "25_energy_2500_money",
        "progress_target": 1000,
        "icon": "/trials/crypto.svg",
        "category": "trade",
        "rarity": "epic",
        "expires_in_hours": 24,
        "cooldown_minutes": 240,
        "max_per_day": 1,
        "rarity_weight": 8,
    },
    {
        "template_id": "trading_master",
        "quest_type": "trading_master",
        "title": "Trading master",
        "description": "Make 10 trades in a row",
        "reward_type": "mixed",
        "reward_spec": "30_energy_3000_money",
        "progress_target": 10,
        "icon": "/trials/crypto.svg",
        "category": "trade",
        "rarity": "epic",
        "expires_in_hours": 24,
        "cooldown_minutes": 180,
        "max_per_day": 1,
        "rarity_weight": 6,
    },
    {
        "template_id": "jackpot_spin",
        "quest_type": "jackpot_spin",
        "title": "Jackpot wheel",
        "description": "A chance at a big prize on the premium wheel",
        "reward_type": "wheel",
        "reward_spec": "premium_random",
        "progress_target": 1,
        "icon": "/wheel/coins.svg",
        "category": "premium",
        "rarity": "epic",
        "expires_in_hours": 12,
        "cooldown_minutes": 120,
        "max_per_day": 2,
        "rarity_weight": 8,
    },
    {
        "template_id": "big_luck",
        "quest_type": "big_luck",
        "title": "Big luck",
        "description": "Watch 5 videos for a shot at a big win",
        "reward_type": "wheel",
        "reward_spec": "premium_random",
        "progress_target": 5,
        "icon": "/wheel/coins.svg",
        "category": "premium",
        "rarity": "legendary",
        "expires_in_hours": 12,
        "cooldown_minutes": 300,
        "max_per_day": 1,
        "rarity_weight": 3,
    },
]
