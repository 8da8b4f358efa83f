"""
Data access layer tests: repositories, time encoding, store failures.
"""

import sqlite3
from datetime import datetime, timedelta, timezone

import pytest

import db_service
from db_service import (
    DatabaseConnectionPool, QuestRepository, REJECT_POOL_FULL, REJECT_DUPLICATE,
    to_db_time, from_db_time, init_database, utc_now,
)
from exceptions import StoreUnavailableError


class TestTimeEncoding:

    def test_round_trip_keeps_microseconds(self):
        value = datetime(2026, 10, 17, 9, 5, 3, 1234)
        assert from_db_time(to_db_time(value)) == value

    def test_none_passes_through(self):
        assert to_db_time(None) is None
        assert from_db_time(None) is None
        assert from_db_time("") is None

    def test_lexical_order_matches_time_order(self):
        early = datetime(2026, 1, 2, 9, 0, 0)
        late = datetime(2026, 1, 2, 10, 0, 0, 5)
        assert to_db_time(early) < to_db_time(late)


class TestQuestRepository:

    def test_expire_overdue_only_touches_past_deadlines(self, quest_repository, insert_quest, clock):
        overdue = insert_quest(quest_type="a", expires_at=clock() - timedelta(seconds=1))
        upcoming = insert_quest(quest_type="b", expires_at=clock() + timedelta(hours=1))
        forever = insert_quest(quest_type="c", expires_at=None)

        assert quest_repository.expire_overdue("user-1", clock()) == 1
        assert quest_repository.get_by_id(overdue["id"])["status"] == "expired"
        assert quest_repository.get_by_id(upcoming["id"])["status"] == "active"
        assert quest_repository.get_by_id(forever["id"])["status"] == "active"

    def test_expire_overdue_scoped_to_user(self, quest_repository, insert_quest, clock):
        other = insert_quest(user_id="user-2", expires_at=clock() - timedelta(minutes=1))

        assert quest_repository.expire_overdue("user-1", clock()) == 0
        assert quest_repository.get_by_id(other["id"])["status"] == "active"
        assert quest_repository.expire_all_overdue(clock()) == 1

    def test_list_active_newest_first(self, quest_repository, insert_quest, clock):
        insert_quest(quest_type="old", created_at=clock() - timedelta(hours=2))
        insert_quest(quest_type="new", created_at=clock())
        insert_quest(quest_type="done", status="completed", completed_at=clock())

        assert [r["quest_type"] for r in quest_repository.list_active("user-1")] == ["new", "old"]

    def test_get_owned_hides_other_users(self, quest_repository, insert_quest):
        row = insert_quest(user_id="user-2")
        assert quest_repository.get_owned(row["id"], "user-1") is None
        assert quest_repository.get_owned(row["id"], "user-2")["id"] == row["id"]

    def test_mark_completed_is_compare_and_set(self, quest_repository, insert_quest, clock):
        row = insert_quest(progress_target=5)

        assert quest_repository.mark_completed(row["id"], "user-1", clock()) is True
        assert quest_repository.mark_completed(row["id"], "user-1", clock()) is False

        stored = quest_repository.get_by_id(row["id"])
        assert stored["status"] == "completed"
        assert stored["progress_current"] == 5
        assert from_db_time(stored["completed_at"]) == clock()

    def test_set_progress_refused_after_terminal(self, quest_repository, insert_quest):
        row = insert_quest(status="expired")
        assert quest_repository.set_progress(row["id"], "user-1", 1) is False

    def test_count_completed_since(self, quest_repository, insert_quest, clock):
        insert_quest(status="completed", completed_at=clock() - timedelta(minutes=5))
        insert_quest(status="completed", completed_at=clock() - timedelta(hours=5))

        assert quest_repository.count_completed_since("user-1", "coin-bonus", clock() - timedelta(hours=1)) == 1

    def test_delete_excess_active_keeps_newest(self, quest_repository, insert_quest, clock):
        for offset in range(5):
            insert_quest(quest_type=f"q{offset}", created_at=clock() + timedelta(minutes=offset))

        assert quest_repository.users_over_limit(3) == ["user-1"]
        assert quest_repository.delete_excess_active("user-1", 3) == 2
        assert [r["quest_type"] for r in quest_repository.list_active("user-1")] == ["q4", "q3", "q2"]
        assert quest_repository.users_over_limit(3) == []


class TestStoreFailures:

    def test_query_error_becomes_store_unavailable(self, pool):
        repo = QuestRepository(pool)
        pool.get_connection().execute("DROP TABLE quests")

        with pytest.raises(StoreUnavailableError) as exc_info:
            repo.count_active("user-1")

        assert exc_info.value.http_status == 503
        assert isinstance(exc_info.value.__cause__, sqlite3.Error)

    def test_unopenable_database(self, tmp_path):
        pool = DatabaseConnectionPool(str(tmp_path / "missing" / "dir" / "quests.db"))
        with pytest.raises(StoreUnavailableError):
            init_database(pool)

    def test_init_pool_replaces_global(self, tmp_path):
        try:
            first = db_service.init_pool(str(tmp_path / "a.db"))
            second = db_service.init_pool(str(tmp_path / "b.db"))
            assert db_service.get_pool() is second
            assert first is not second
        finally:
            db_service.close_pool()


class TestCreateIfRoom:

    @staticmethod
    def fields(clock, quest_type="coin-bonus", user_id="user-1"):
        return dict(
            user_id=user_id, template_id=quest_type, quest_type=quest_type, title=quest_type,
            description="", reward_type="coins", reward_spec="100", progress_current=0,
            progress_target=1, status="active", icon=None,
            created_at=to_db_time(clock()), expires_at=None,
        )

    def test_inserts_when_room(self, quest_repository, clock):
        row, rejection, active = quest_repository.create_if_room(3, **self.fields(clock))

        assert rejection is None
        assert active == 1
        assert row["quest_type"] == "coin-bonus"
        assert row["status"] == "active"

    def test_full_pool_inserts_nothing(self, quest_repository, insert_quest, clock):
        for quest_type in ("a", "b", "c"):
            insert_quest(quest_type=quest_type)

        row, rejection, active = quest_repository.create_if_room(3, **self.fields(clock, "d"))

        assert row is None
        assert rejection == REJECT_POOL_FULL
        assert active == 3
        assert quest_repository.count_active("user-1") == 3

    def test_duplicate_active_type_inserts_nothing(self, quest_repository, insert_quest, clock):
        insert_quest(quest_type="coin-bonus")

        row, rejection, _ = quest_repository.create_if_room(3, **self.fields(clock))

        assert row is None
        assert rejection == REJECT_DUPLICATE
        assert quest_repository.count_active("user-1") == 1

    def test_terminal_quests_do_not_take_slots(self, quest_repository, insert_quest, clock):
        for quest_type in ("a", "b", "c"):
            insert_quest(quest_type=quest_type, status="expired")
        insert_quest(quest_type="coin-bonus", status="completed", completed_at=clock())

        row, rejection, _ = quest_repository.create_if_room(3, **self.fields(clock))

        assert rejection is None
        assert row is not None

    def test_connection_left_usable_after_rejection(self, quest_repository, insert_quest, clock):
        insert_quest(quest_type="coin-bonus")
        quest_repository.create_if_room(3, **self.fields(clock))

        assert not quest_repository.pool.get_connection().in_transaction
        row, rejection, _ = quest_repository.create_if_room(3, **self.fields(clock, "cash-drop"))
        assert rejection is None


class TestUtcNow:

    def test_is_naive_utc(self):
        before = datetime.now(timezone.utc).replace(tzinfo=None)
        now = utc_now()
        after = datetime.now(timezone.utc).replace(tzinfo=None)

        assert now.tzinfo is None
        assert before <= now <= after
