"""
Quest catalog tests: lookups, weighted draw, loading.
"""

import json
import random
from collections import Counter

import pytest
from pydantic import ValidationError

from quest_engine.schemas import QuestTemplateSchema, RewardType
from quest_engine.services import QuestCatalog, build_templates, load_catalog
from quest_engine.catalog_data import DEFAULT_TEMPLATES

from conftest import TEST_TEMPLATES


def template(template_id, weight=1.0, **overrides):
    data = {
        "template_id": template_id,
        "quest_type": template_id,
        "title": template_id.title(),
        "reward_type": "coins",
        "reward_spec": "100",
        "progress_target": 1,
        "rarity_weight": weight,
    }
    data.update(overrides)
    return QuestTemplateSchema(**data)


class TestCatalogLookups:

    def test_len_and_all(self, catalog):
        assert len(catalog) == len(TEST_TEMPLATES)
        assert [t.template_id for t in catalog.all()] == [t["template_id"] for t in TEST_TEMPLATES]

    def test_lookup_by_id(self, catalog):
        found = catalog.lookup_by_id("active-trader")
        assert found is not None
        assert found.reward_type == RewardType.MIXED
        assert found.progress_target == 3

    def test_lookup_unknown_id(self, catalog):
        assert catalog.lookup_by_id("nope") is None

    def test_by_category(self, catalog):
        assert {t.template_id for t in catalog.by_category("daily")} == {"coin-bonus", "cash-drop"}
        assert catalog.by_category("crypto") == []

    def test_by_rarity(self, catalog):
        assert [t.template_id for t in catalog.by_rarity("epic")] == ["lucky-spin"]

    def test_with_reward_type(self, catalog):
        ids = {t.template_id for t in catalog.with_reward_type(RewardType.COINS)}
        assert ids == {"coin-bonus", "profile-check"}

    def test_duplicate_template_ids_rejected(self):
        with pytest.raises(ValueError):
            QuestCatalog([template("a"), template("a")])


class TestWeightedDraw:

    def test_empty_catalog_returns_none(self):
        assert QuestCatalog([]).random_by_rarity() is None

    def test_single_template_always_drawn(self):
        catalog = QuestCatalog([template("only", weight=0.5)])
        assert all(catalog.random_by_rarity().template_id == "only" for _ in range(20))

    def test_draw_is_proportional_to_weight(self):
        """Weight 9 vs 1 should land near a 90/10 split."""
        catalog = QuestCatalog([template("heavy", 9), template("light", 1)], rng=random.Random(7))
        counts = Counter(catalog.random_by_rarity().template_id for _ in range(5000))
        assert 0.86 < counts["heavy"] / 5000 < 0.94

    def test_point_at_total_falls_back_to_last(self):
        class EdgeRandom(random.Random):
            def random(self):
                return 1.0

        catalog = QuestCatalog([template("a"), template("b")], rng=EdgeRandom())
        assert catalog.random_by_rarity().template_id == "b"

    def test_seeded_draws_are_reproducible(self):
        first = QuestCatalog(build_templates(TEST_TEMPLATES), rng=random.Random(3))
        second = QuestCatalog(build_templates(TEST_TEMPLATES), rng=random.Random(3))
        assert [first.random_by_rarity().template_id for _ in range(10)] == \
               [second.random_by_rarity().template_id for _ in range(10)]


class TestTemplateValidation:

    def test_zero_weight_rejected(self):
        with pytest.raises(ValidationError):
            template("bad", weight=0)

    def test_zero_target_rejected(self):
        with pytest.raises(ValidationError):
            template("bad", progress_target=0)

    def test_unknown_reward_type_rejected(self):
        with pytest.raises(ValidationError):
            build_templates([dict(TEST_TEMPLATES[0], reward_type="gems")])

    def test_unknown_category_rejected(self):
        with pytest.raises(ValidationError):
            template("bad", category="casino")

    def test_templates_are_frozen(self):
        t = template("frozen")
        with pytest.raises(ValidationError):
            t.title = "changed"


class TestLoadCatalog:

    def test_builtin_templates(self):
        catalog = load_catalog()
        assert len(catalog) == len(DEFAULT_TEMPLATES)
        assert all(t.rarity_weight > 0 for t in catalog.all())

    def test_load_from_json_file(self, tmp_path):
        path = tmp_path / "catalog.json"
        path.write_text(json.dumps(TEST_TEMPLATES[:2]), encoding="utf-8")

        catalog = load_catalog(str(path), rng=random.Random(1))

        assert len(catalog) == 2
        assert catalog.lookup_by_id("cash-drop").expires_in_hours is None

    def test_invalid_json_template_aborts_load(self, tmp_path):
        path = tmp_path / "catalog.json"
        path.write_text(json.dumps([{"template_id": "x"}]), encoding="utf-8")

        with pytest.raises(ValidationError):
            load_catalog(str(path))
