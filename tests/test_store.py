"""Schema setup and the textual-SQL store"""

from datetime import datetime
from unittest import mock

import pytest
from sqlalchemy.exc import OperationalError

from tip_raffle.database import REQUIRED_TABLES, verify_raffle_schema
from tip_raffle.errors import RecordNotFound, StoreError
from tip_raffle.models import Submission, ValidatedPlayer, WinRecord
from tip_raffle.store import RaffleStore, create_raffle_engine


def test_schema_created(store):
    status = verify_raffle_schema(store.engine)
    assert set(status) == set(REQUIRED_TABLES)
    assert all(status.values())


def test_setup_is_repeatable(store):
    assert store.setup() is True


def test_submissions_ordered_by_timestamp(store):
    store.insert_submission(Submission("b", {"fullName": "B"}, datetime(2024, 3, 15, 11, 0)))
    store.insert_submission(Submission("a", {"fullName": "A"}, datetime(2024, 3, 15, 10, 0, 0, 500)))

    submissions = store.list_submissions()

    assert [s.id for s in submissions] == ["a", "b"]
    assert submissions[0].created_at == datetime(2024, 3, 15, 10, 0, 0, 500)


def test_find_submission_by_field(store):
    store.insert_submission(Submission("a", {"accountId": "A1"}, datetime(2024, 3, 15)))
    assert store.find_submission_by_field("accountId", "A1").id == "a"
    assert store.find_submission_by_field("accountId", "B2") is None


def test_set_win_tip_only_once(store):
    store.insert_win(WinRecord("w1", "s1", {"accountId": "A1"}, datetime(2024, 3, 15)))

    assert store.set_win_tip("w1", "R$ 10,00") is True
    assert store.set_win_tip("w1", "R$ 20,00") is False
    assert store.list_wins()[0].tip_value == "R$ 10,00"


def test_delete_missing_rows(store):
    with pytest.raises(RecordNotFound):
        store.delete_submission("missing")
    with pytest.raises(RecordNotFound):
        store.update_submission("missing", {})


def test_config_blob_upsert(store):
    assert store.load_config_blob() is None
    store.save_config_blob({"heroTitle": "One"})
    store.save_config_blob({"heroTitle": "Two"})
    assert store.load_config_blob() == {"heroTitle": "Two"}


def test_validated_player_upsert(store):
    store.upsert_validated_player(ValidatedPlayer("777", currency="BRL"))
    store.upsert_validated_player(ValidatedPlayer("777", currency="USD", type="ftd"))

    assert store.validated_player_ids() == {"777"}
    assert store.count_validated_players() == 1


def test_database_errors_become_store_errors(store):
    engine = mock.Mock()
    engine.begin.side_effect = OperationalError("INSERT", {}, Exception("disk I/O error"))
    broken = RaffleStore(engine)

    with pytest.raises(StoreError):
        broken.insert_submission(Submission("a", {}, datetime(2024, 3, 15)))
    with pytest.raises(StoreError):
        broken.setup()


def test_postgres_url_normalised():
    with mock.patch("tip_raffle.store.create_engine") as create_engine:
        create_raffle_engine("postgres://user:pw@db/raffle")
    create_engine.assert_called_once_with("postgresql://user:pw@db/raffle", pool_pre_ping=True)
