"""
Quest Catalog - шаблоны квестов и взвешенный выбор.

Loaded once at startup and never mutated afterwards, so request handlers
share one instance without locking.
"""

import json
import logging
import random
from pathlib import Path
from typing import Optional, List, Iterable, Dict, Any

from pydantic import ValidationError

from ..schemas import QuestTemplateSchema, RewardType

logger = logging.getLogger("quest_catalog")


class QuestCatalog:
    """Read-only set of quest templates with a rarity-weighted selector."""

    def __init__(self, templates: Iterable[QuestTemplateSchema], rng: Optional[random.Random] = None):
        self._templates = tuple(templates)
        self._by_id = {t.template_id: t for t in self._templates}
        if len(self._by_id) != len(self._templates):
            raise ValueError("Duplicate template_id in quest catalog")
        self._total_weight = sum(t.rarity_weight for t in self._templates)
        self._rng = rng or random.Random()

    def __len__(self) -> int:
        return len(self._templates)

    def all(self) -> List[QuestTemplateSchema]:
        return list(self._templates)

    def lookup_by_id(self, template_id: str) -> Optional[QuestTemplateSchema]:
        return self._by_id.get(template_id)

    def random_by_rarity(self) -> Optional[QuestTemplateSchema]:
        """
        Draw a template with probability proportional to rarity_weight.

        Returns:
            QuestTemplateSchema or None when the catalog is empty
        """
        if not self._templates:
            return None

        point = self._rng.random() * self._total_weight
        cumulative = 0.0
        for template in self._templates:
            cumulative += template.rarity_weight
            if point < cumulative:
                return template

        # Float rounding can leave point == total
        return self._templates[-1]

    def by_category(self, category: str) -> List[QuestTemplateSchema]:
        return [t for t in self._templates if t.category == category]

    def by_rarity(self, rarity: str) -> List[QuestTemplateSchema]:
        return [t for t in self._templates if t.rarity == rarity]

    def with_reward_type(self, reward_type: RewardType) -> List[QuestTemplateSchema]:
        return [t for t in self._templates if t.reward_type == reward_type]


def build_templates(raw_templates: List[Dict[str, Any]]) -> List[QuestTemplateSchema]:
    """Validate raw template dicts; any invalid entry aborts the load."""
    templates = []
    for index, raw in enumerate(raw_templates):
        try:
            templates.append(QuestTemplateSchema(**raw))
        except ValidationError as e:
            logger.error(f"❌ Invalid quest template #{index} ({raw.get('template_id')}): {e}")
            raise
    return templates


def load_catalog(path: Optional[str] = None, rng: Optional[random.Random] = None) -> QuestCatalog:
    """
    Load the catalog from a JSON file or the built-in templates.

    Args:
        path: JSON file with a list of template objects; empty for built-ins
        rng: Random source used for weighted draws

    Returns:
        QuestCatalog
    """
    if path:
        raw_templates = json.loads(Path(path).read_text(encoding="utf-8"))
        source = path
    else:
        from ..catalog_data import DEFAULT_TEMPLATES
        raw_templates = DEFAULT_TEMPLATES
        source = "built-in"

    catalog = QuestCatalog(build_templates(raw_templates), rng=rng)
    logger.info(f"✅ Loaded {len(catalog)} quest templates ({source})")
    return catalog
