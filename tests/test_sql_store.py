from __future__ import annotations

import pytest
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from voters_list.models.voter import Voter
from voters_list.store.base import INSUFFICIENT_PRIVILEGE, UNIQUE_VIOLATION, StoreError
from voters_list.store.sql import _is_voter_id_conflict


def _rows(engine):
    with Session(engine) as session:
        return list(session.exec(select(Voter)).all())


def test_insert_then_list_is_scoped_to_owner(m1, m2, store_for):
    s1 = store_for("m1")
    s2 = store_for("m2")

    rec = s1.insert_voter(voter_id="V1", name="Ann", phone="555-0100", monitor_id="m1")
    s2.insert_voter(voter_id="V2", name="Bob", phone="555-0101", monitor_id="m2")

    assert rec.monitor_id == "m1"
    assert [(r.voter_id, r.name, r.phone) for r in s1.list_voters("m1")] == [("V1", "Ann", "555-0100")]
    assert [r.voter_id for r in s2.list_voters("m2")] == ["V2"]


def test_list_ignores_filter_for_another_monitor(m1, m2, store_for):
    store_for("m2").insert_voter(voter_id="V2", name="Bob", phone="1", monitor_id="m2")

    # acting as m1 but asking for m2's rows: the store policy still wins
    assert store_for("m1").list_voters("m2") == []


def test_duplicate_voter_id_is_a_unique_violation_and_not_applied(engine, m1, m2, store_for):
    store_for("m1").insert_voter(voter_id="V1", name="Ann", phone="1", monitor_id="m1")

    with pytest.raises(StoreError) as exc:
        store_for("m2").insert_voter(voter_id="V1", name="Impostor", phone="2", monitor_id="m2")

    assert exc.value.code == UNIQUE_VIOLATION
    rows = _rows(engine)
    assert len(rows) == 1
    assert rows[0].monitor_id == "m1"
    assert rows[0].name == "Ann"


def test_insert_for_another_monitor_is_refused(engine, m1, m2, store_for):
    with pytest.raises(StoreError) as exc:
        store_for("m1").insert_voter(voter_id="V9", name="X", phone="1", monitor_id="m2")

    assert exc.value.code == INSUFFICIENT_PRIVILEGE
    assert _rows(engine) == []


def test_owner_lookup_crosses_owners_only_when_disclosure_allowed(m1, m2, store_for):
    store_for("m1").insert_voter(voter_id="V1", name="Ann", phone="1", monitor_id="m1")

    assert store_for("m2").find_voter_owner("V1") == "m1"
    assert store_for("m2").find_voter_owner("missing") is None
    assert store_for("m2", allow_owner_disclosure=False).find_voter_owner("V1") is None


def test_monitor_contact(m1, m2, store_for):
    contact = store_for("m2").get_monitor_contact("m1")
    assert contact.email == "m1@example.org"
    assert contact.name == "Monitor One"

    assert store_for("m2").get_monitor_contact("nobody") is None
    assert store_for("m2", allow_owner_disclosure=False).get_monitor_contact("m1") is None
    # own contact is always readable
    assert store_for("m2", allow_owner_disclosure=False).get_monitor_contact("m2").email == "m2@example.org"


def test_update_and_delete_match_only_owned_rows(engine, m1, m2, store_for):
    rec = store_for("m1").insert_voter(voter_id="V1", name="Ann", phone="1", monitor_id="m1")

    # m2 forging m1's id as the filter still changes nothing
    assert store_for("m2").update_voter(rec.id, "m1", name="Hacked", phone="0") == 0
    assert store_for("m2").update_voter(rec.id, "m2", name="Hacked", phone="0") == 0
    assert store_for("m2").delete_voter(rec.id, "m1") == 0
    assert _rows(engine)[0].name == "Ann"

    assert store_for("m1").update_voter(rec.id, "m1", name="Ann B", phone="2") == 1
    row = _rows(engine)[0]
    assert (row.name, row.phone, row.voter_id) == ("Ann B", "2", "V1")

    assert store_for("m1").delete_voter(rec.id, "m1") == 1
    assert store_for("m1").delete_voter(rec.id, "m1") == 0
    assert _rows(engine) == []


@pytest.mark.parametrize(
    "message, expected",
    [
        ("UNIQUE constraint failed: voters.voter_id", True),
        ('duplicate key value violates unique constraint "ix_voters_voter_id"', True),
        ("UNIQUE constraint failed: voters.id", False),
        ('duplicate key value violates unique constraint "voters_pkey"', False),
        ("NOT NULL constraint failed: voters.voter_id", False),
        ("FOREIGN KEY constraint failed", False),
    ],
)
def test_only_voter_id_collisions_count_as_duplicates(message, expected):
    err = IntegrityError("INSERT INTO voters ...", {}, Exception(message))
    assert _is_voter_id_conflict(err) is expected


def test_insert_for_unknown_monitor_is_not_a_duplicate(engine, store_for):
    # acting monitor has no monitors row, so the foreign key fails
    with pytest.raises(StoreError) as exc:
        store_for("ghost").insert_voter(voter_id="V1", name="Ann", phone="1", monitor_id="ghost")
    assert exc.value.code != UNIQUE_VIOLATION
    assert _rows(engine) == []
