from __future__ import annotations

import datetime as dt

import pytest

from voluntree.core.exceptions import ConflictError, InvalidOperationError, NotFoundError
from voluntree.models import Follow
from voluntree.services import graph as graph_service


def test_self_follow_is_rejected(db_session, make_user) -> None:
    ada = make_user("ada")

    with pytest.raises(InvalidOperationError):
        graph_service.follow_user(db_session, ada, "ada")
    with pytest.raises(InvalidOperationError):
        graph_service.follow_user(db_session, ada, ada.id)
    with pytest.raises(InvalidOperationError):
        graph_service.unfollow_user(db_session, ada, "ada")
    assert db_session.query(Follow).count() == 0


def test_follow_unknown_user(db_session, make_user) -> None:
    ada = make_user("ada")

    with pytest.raises(NotFoundError):
        graph_service.follow_user(db_session, ada, "ghost")


def test_duplicate_follow_conflicts(db_session, make_user) -> None:
    ada, bob = make_user("ada"), make_user("bob")
    graph_service.follow_user(db_session, ada, "bob")

    with pytest.raises(ConflictError):
        graph_service.follow_user(db_session, ada, bob.id)
    assert db_session.query(Follow).count() == 1


def test_unique_index_catches_race_past_precheck(db_session, make_user, monkeypatch) -> None:
    ada = make_user("ada")
    make_user("bob")
    graph_service.follow_user(db_session, ada, "bob")
    # The second caller read the graph before the first insert committed.
    monkeypatch.setattr(graph_service, "find_edge", lambda *args: None)

    with pytest.raises(ConflictError):
        graph_service.follow_user(db_session, ada, "bob")
    assert db_session.query(Follow).count() == 1


def test_follow_unfollow_round_trip(db_session, make_user) -> None:
    ada = make_user("ada")
    make_user("bob")

    edge = graph_service.follow_user(db_session, ada, "bob")
    assert edge.follower_id == ada.id

    graph_service.unfollow_user(db_session, ada, "bob")
    assert db_session.query(Follow).count() == 0
    with pytest.raises(NotFoundError) as exc_info:
        graph_service.unfollow_user(db_session, ada, "bob")
    assert exc_info.value.message == "not_following"


def test_listings_are_newest_first_and_paginated(db_session, make_user) -> None:
    ada = make_user("ada")
    others = [make_user(name) for name in ("bob", "cleo", "dan")]
    base = dt.datetime(2026, 1, 1, tzinfo=dt.timezone.utc)
    for index, other in enumerate(others):
        edge = graph_service.follow_user(db_session, other, "ada")
        edge.created_at = base + dt.timedelta(minutes=index)
    db_session.commit()

    entries, total = graph_service.list_followers(db_session, "ada")
    assert total == 3
    assert [entry.counterpart.username for entry in entries] == ["dan", "cleo", "bob"]

    page, total = graph_service.list_followers(db_session, "ada", offset=1, limit=1)
    assert total == 3
    assert [entry.counterpart.username for entry in page] == ["cleo"]

    followings, total = graph_service.list_followings(db_session, "bob")
    assert total == 1
    assert followings[0].counterpart.id == ada.id
    assert graph_service.list_followings(db_session, "ada") == ([], 0)


def test_listing_unknown_user(db_session) -> None:
    with pytest.raises(NotFoundError):
        graph_service.list_followers(db_session, "ghost")
