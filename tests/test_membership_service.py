import threading
from concurrent.futures import ThreadPoolExecutor

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from app.core.database import Base
from app.core.errors import (
    AlreadyJoinedError,
    InvalidIdError,
    MatchFullError,
    NotFoundError,
    ValidationError,
)
from app.schemas.match import MatchCreate
from app.services import matches, membership

from conftest import CREATOR_ID, tomorrow

MISSING_ID = "00000000-0000-0000-0000-000000000000"


def test_capacity_and_uncompacted_positions(db, create_match):
    match = create_match(max_players=2)
    assert membership.list_participants(db, match.id)[0].position == 0

    b = membership.join_match(db, match.id, "user-b", "B")
    assert b.position == 1
    assert membership.count_participants(db, match.id) == 2

    with pytest.raises(MatchFullError):
        membership.join_match(db, match.id, "user-c", "C")

    membership.leave_match(db, match.id, "user-b")
    assert membership.count_participants(db, match.id) == 1

    c = membership.join_match(db, match.id, "user-c", "C")
    assert c.position == 2
    assert [p.position for p in membership.list_participants(db, match.id)] == [0, 2]


def test_sequential_joins_stop_exactly_at_capacity(db, create_match):
    match = create_match(max_players=5)

    for i in range(4):
        membership.join_match(db, match.id, f"user-{i}", f"P{i}")

    with pytest.raises(MatchFullError):
        membership.join_match(db, match.id, "one-too-many", "Late")

    assert membership.count_participants(db, match.id) == 5


def test_join_twice_is_rejected(db, create_match):
    match = create_match()
    membership.join_match(db, match.id, "user-b", "B")

    with pytest.raises(AlreadyJoinedError):
        membership.join_match(db, match.id, "user-b", "B otra vez")

    with pytest.raises(AlreadyJoinedError):
        membership.join_match(db, match.id, CREATOR_ID, "Creador")


def test_rejoin_after_leaving_gets_new_position(db, create_match):
    match = create_match()
    first = membership.join_match(db, match.id, "user-b", "B")
    membership.join_match(db, match.id, "user-c", "C")

    membership.leave_match(db, match.id, "user-b")
    again = membership.join_match(db, match.id, "user-b", "B")

    assert first.position == 1
    assert again.position == 3
    assert membership.has_joined(db, match.id, "user-b")


def test_leave_is_idempotent(db, create_match):
    match = create_match()
    membership.join_match(db, match.id, "user-b", "B")

    assert membership.leave_match(db, match.id, "user-b") is True
    assert membership.leave_match(db, match.id, "user-b") is False
    assert membership.leave_match(db, match.id, "user-b") is False
    assert not membership.has_joined(db, match.id, "user-b")


def test_leave_unknown_match_is_a_noop(db):
    assert membership.leave_match(db, MISSING_ID, "user-b") is False


def test_join_missing_match(db):
    with pytest.raises(NotFoundError):
        membership.join_match(db, MISSING_ID, "user-b", "B")


def test_join_requires_user_and_valid_id(db, create_match):
    match = create_match()

    with pytest.raises(ValidationError):
        membership.join_match(db, match.id, "", "B")
    with pytest.raises(ValidationError):
        membership.leave_match(db, match.id, None)
    with pytest.raises(InvalidIdError):
        membership.join_match(db, "abc", "user-b", "B")


def test_anonymous_user_name_is_allowed(db, create_match):
    match = create_match()

    p = membership.join_match(db, match.id, "anon", None)

    assert p.user_name == ""
    assert p.is_starter is True


def test_unique_constraint_violation_becomes_already_joined(db, create_match, monkeypatch):
    match = create_match()
    membership.join_match(db, match.id, "user-b", "B")

    real_has_joined = membership.has_joined
    calls = []

    def stale_then_real(session, match_id, user_id):
        # simula que la lectura previa no vio la fila de la otra petición
        calls.append(user_id)
        return False if len(calls) == 1 else real_has_joined(session, match_id, user_id)

    monkeypatch.setattr(membership, "has_joined", stale_then_real)

    with pytest.raises(AlreadyJoinedError):
        membership.join_match(db, match.id, "user-b", "B")

    assert membership.count_participants(db, match.id) == 2


def test_capacity_is_rechecked_after_claiming_position(db, create_match, monkeypatch):
    match = create_match(max_players=2)
    membership.join_match(db, match.id, "user-b", "B")

    real_count = membership.count_participants
    calls = []

    def stale_then_real(session, match_id):
        calls.append(match_id)
        return 1 if len(calls) == 1 else real_count(session, match_id)

    monkeypatch.setattr(membership, "count_participants", stale_then_real)

    with pytest.raises(MatchFullError):
        membership.join_match(db, match.id, "user-c", "C")

    assert real_count(db, match.id) == 2


@pytest.fixture
def file_sessions(tmp_path):
    engine = create_engine(
        f"sqlite:///{tmp_path / 'race.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    engine.dispose()


def _race(file_sessions, match_id, users):
    barrier = threading.Barrier(len(users))

    def attempt(user_id):
        session = file_sessions()
        try:
            barrier.wait()
            try:
                return membership.join_match(session, match_id, user_id, user_id).position
            except (AlreadyJoinedError, MatchFullError) as exc:
                return exc
        finally:
            session.close()

    with ThreadPoolExecutor(max_workers=len(users)) as pool:
        return list(pool.map(attempt, users))


def test_concurrent_duplicate_join_only_one_wins(file_sessions):
    setup = file_sessions()
    match = matches.create_match(
        setup,
        MatchCreate(title="Race", sport="other", location="X", date=tomorrow(), time="10:00"),
        CREATOR_ID,
        "Creador",
    )
    match_id = match.id
    setup.close()

    results = _race(file_sessions, match_id, ["same-user", "same-user"])

    positions = [r for r in results if isinstance(r, int)]
    errors = [r for r in results if isinstance(r, Exception)]
    assert len(positions) == 1
    assert len(errors) == 1 and isinstance(errors[0], AlreadyJoinedError)

    check = file_sessions()
    try:
        assert membership.count_participants(check, match_id) == 2
    finally:
        check.close()


def test_concurrent_joins_get_distinct_positions(file_sessions):
    setup = file_sessions()
    match = matches.create_match(
        setup,
        MatchCreate(title="Race", sport="other", location="X", date=tomorrow(), time="10:00", max_players=10),
        CREATOR_ID,
        "Creador",
    )
    match_id = match.id
    setup.close()

    results = _race(file_sessions, match_id, ["a", "b", "c", "d"])

    assert all(isinstance(r, int) for r in results)
    assert sorted(results) == [1, 2, 3, 4]


def test_match_deleted_before_position_claim_is_not_found(file_sessions, monkeypatch):
    setup = file_sessions()
    match = matches.create_match(
        setup,
        MatchCreate(title="Borrado", sport="other", location="X", date=tomorrow(), time="10:00"),
        CREATOR_ID,
        "Creador",
    )
    match_id = match.id
    setup.close()

    def deleted_meanwhile(session, match_id, user_id):
        # otra petición borra el partido justo después de la lectura previa
        other = file_sessions()
        try:
            matches.delete_match(other, match_id, CREATOR_ID)
        finally:
            other.close()
        return False

    monkeypatch.setattr(membership, "has_joined", deleted_meanwhile)

    session = file_sessions()
    try:
        with pytest.raises(NotFoundError):
            membership.join_match(session, match_id, "late-user", "Late")

        assert not session.in_transaction()
        assert membership.count_participants(session, match_id) == 0
    finally:
        session.close()
