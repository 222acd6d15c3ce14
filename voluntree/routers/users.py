"""Account, profile and social graph endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, File, Query, UploadFile
from sqlalchemy.orm import Session

from voluntree.core.deps import get_current_user
from voluntree.db.session import get_db
from voluntree.models.enums import ImageKind
from voluntree.models.user import User
from voluntree.schemas.common import ApiResponse, ok
from voluntree.schemas.graph import FollowEntryOut, FollowOut, FollowPageOut
from voluntree.schemas.profile import ProfileOut
from voluntree.schemas.user import UserDetailsUpdate, UserOut, UserSummary
from voluntree.services import graph as graph_service
from voluntree.services.profiles import get_profile
from voluntree.services.users import update_user_details, update_user_image
from voluntree.storage.blob import BlobStore, get_blob_store
from voluntree.storage.uploads import save_upload

router = APIRouter()


def _page(entries: list[graph_service.FollowEntry], total: int, offset: int, limit: int | None) -> FollowPageOut:
    items = [
        FollowEntryOut(
            edge_id=entry.edge_id,
            counterpart=UserSummary.model_validate(entry.counterpart),
            created_at=entry.created_at,
        )
        for entry in entries
    ]
    return FollowPageOut(items=items, count=len(items), total=total, offset=offset, limit=limit)


@router.get("/current-user", response_model=ApiResponse[UserOut])
def current_user(user: User = Depends(get_current_user)) -> ApiResponse[UserOut]:
    return ok(UserOut.model_validate(user), "current user fetched successfully")


@router.api_route("/update-details", methods=["PATCH", "POST"], response_model=ApiResponse[UserOut])
def update_details(
    payload: UserDetailsUpdate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ApiResponse[UserOut]:
    updated = update_user_details(db, user, payload)
    return ok(UserOut.model_validate(updated), "user details updated successfully")


def _update_image(
    kind: ImageKind,
    upload: UploadFile | None,
    user: User,
    db: Session,
    blob_store: BlobStore,
) -> ApiResponse[UserOut]:
    local_path = save_upload(upload)
    updated = update_user_image(db, blob_store, user, local_path, kind)
    return ok(UserOut.model_validate(updated), f"{kind.value} updated successfully")


@router.post("/update-avatar", response_model=ApiResponse[UserOut])
def update_avatar(
    avatar: UploadFile | None = File(None),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    blob_store: BlobStore = Depends(get_blob_store),
) -> ApiResponse[UserOut]:
    return _update_image(ImageKind.avatar, avatar, user, db, blob_store)


@router.post("/update-cover-image", response_model=ApiResponse[UserOut])
def update_cover_image(
    cover_image: UploadFile | None = File(None, alias="coverImage"),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    blob_store: BlobStore = Depends(get_blob_store),
) -> ApiResponse[UserOut]:
    return _update_image(ImageKind.cover_image, cover_image, user, db, blob_store)


@router.get("/profile/{username}", response_model=ApiResponse[ProfileOut])
def user_profile(
    username: str,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ApiResponse[ProfileOut]:
    return ok(get_profile(db, user.id, username), "user profile fetched successfully")


@router.post("/follow/{username}", response_model=ApiResponse[FollowOut])
def follow(
    username: str,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ApiResponse[FollowOut]:
    edge = graph_service.follow_user(db, user, username)
    payload = FollowOut(
        edge_id=edge.id,
        follower=edge.follower_id,
        following=edge.following_id,
        created_at=edge.created_at,
    )
    return ok(payload, "user followed successfully")


@router.post("/unfollow/{username}", response_model=ApiResponse[dict])
def unfollow(
    username: str,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ApiResponse[dict]:
    graph_service.unfollow_user(db, user, username)
    return ok({}, "user unfollowed successfully")


@router.get("/followers/{username}", response_model=ApiResponse[FollowPageOut])
def followers(
    username: str,
    offset: int = Query(0, ge=0),
    limit: int | None = Query(None, ge=1, le=500),
    db: Session = Depends(get_db),
) -> ApiResponse[FollowPageOut]:
    entries, total = graph_service.list_followers(db, username, offset=offset, limit=limit)
    return ok(_page(entries, total, offset, limit), "followers fetched successfully")


@router.get("/followings/{username}", response_model=ApiResponse[FollowPageOut])
def followings(
    username: str,
    offset: int = Query(0, ge=0),
    limit: int | None = Query(None, ge=1, le=500),
    db: Session = Depends(get_db),
) -> ApiResponse[FollowPageOut]:
    entries, total = graph_service.list_followings(db, username, offset=offset, limit=limit)
    return ok(_page(entries, total, offset, limit), "followings fetched successfully")
