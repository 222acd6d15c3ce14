from __future__ import annotations

import os

import pytest

from voluntree.core.exceptions import ConflictError, InternalError, ValidationError
from voluntree.core.security import verify_password
from voluntree.models import User
from voluntree.services.auth import RegistrationFiles, register_user


def _form(**overrides):
    form = {
        "username": "Grace-Hopper",
        "email": " Grace@Example.com ",
        "fullname": "Grace  Hopper",
        "password": "cobol59",
        "bio": "Rear admiral.",
        "interests": "technology, education, technology",
        "location": "Arlington",
        "location_coordinates": "-77.1, 38.88",
    }
    form.update(overrides)
    return form


def test_register_normalizes_input_and_uploads_images(db_session, blob_store, make_file) -> None:
    avatar = make_file("avatar.png")
    cover = make_file("cover.jpg")

    user = register_user(db_session, blob_store, _form(), RegistrationFiles(avatar=avatar, cover_image=cover))

    assert user.username == "grace-hopper"
    assert user.email == "grace@example.com"
    assert user.fullname == "Grace Hopper"
    assert user.interests == ["technology", "education"]
    assert user.location_coordinates == [-77.1, 38.88]
    assert user.avatar == "https://cdn.test/blob-1"
    assert user.cover_image == "https://cdn.test/blob-2"
    assert user.version == 1
    assert user.password_hash != "cobol59"
    assert verify_password("cobol59", user.password_hash)
    assert not os.path.exists(avatar)
    assert not os.path.exists(cover)


def test_register_without_cover_image(db_session, blob_store, make_file) -> None:
    user = register_user(db_session, blob_store, _form(), RegistrationFiles(avatar=make_file()))

    assert user.cover_image == ""
    assert list(blob_store.live) == ["blob-1"]


def test_missing_avatar_cleans_up_cover(db_session, blob_store, make_file) -> None:
    cover = make_file("cover.jpg")

    with pytest.raises(ValidationError) as exc_info:
        register_user(db_session, blob_store, _form(), RegistrationFiles(cover_image=cover))

    assert exc_info.value.message == "avatar_required"
    assert not os.path.exists(cover)
    assert blob_store.upload_calls == 0


@pytest.mark.parametrize(
    "overrides",
    [
        {"username": "-bad"},
        {"email": "not-an-email"},
        {"password": "abc"},
        {"fullname": "   "},
        {"bio": "x" * 201},
        {"interests": "knitting"},
        {"location_coordinates": "200,10"},
    ],
)
def test_invalid_fields_are_rejected_without_orphans(db_session, blob_store, make_file, overrides) -> None:
    avatar = make_file("avatar.png")

    with pytest.raises(ValidationError):
        register_user(db_session, blob_store, _form(**overrides), RegistrationFiles(avatar=avatar))

    assert not os.path.exists(avatar)
    assert blob_store.live == {}
    assert db_session.query(User).count() == 0


def test_duplicate_username_or_email_conflicts(db_session, blob_store, make_file, make_user) -> None:
    make_user("grace-hopper", email="someone@example.com")
    avatar = make_file("avatar.png")

    with pytest.raises(ConflictError):
        register_user(db_session, blob_store, _form(), RegistrationFiles(avatar=avatar))

    assert not os.path.exists(avatar)
    assert blob_store.upload_calls == 0


def test_cover_upload_failure_destroys_uploaded_avatar(db_session, blob_store_factory, make_file) -> None:
    store = blob_store_factory(fail_on_call=2)
    avatar = make_file("avatar.png")
    cover = make_file("cover.jpg")

    with pytest.raises(InternalError) as exc_info:
        register_user(db_session, store, _form(), RegistrationFiles(avatar=avatar, cover_image=cover))

    assert exc_info.value.message == "cover_image_upload_failed"
    assert store.destroyed == ["blob-1"]
    assert store.live == {}
    assert not os.path.exists(avatar)
    assert not os.path.exists(cover)
    assert db_session.query(User).count() == 0
