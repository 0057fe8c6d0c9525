from pydantic import BaseModel
from typing import Any, Dict, Optional, Union
from datetime import datetime

from story_auth.models.user import SOCIAL_LINK_FIELDS, User
from story_auth.utils.avatars import avatar_url


class SocialOut(BaseModel):
    bio: str = ""
    facebook: str = ""
    twitter: str = ""
    instagram: str = ""
    youtube: str = ""
    website: str = ""


class UserOut(BaseModel):
    """What clients see of a user. Never carries the password hash."""

    id: str
    mongoId: str
    name: str = ""
    email: str = ""
    role: str = "user"
    avatar: str
    banner: Optional[Union[str, Dict[str, Any]]] = None
    accountType: str = "email"
    gender: str = ""
    birthday: Optional[datetime] = None
    slug: str = ""
    diem_danh: int = 0
    coin: int = 0
    coin_total: int = 0
    coin_spent: int = 0
    social: SocialOut
    created_at: Optional[datetime] = None
    isActive: bool = False
    email_verified_at: Optional[datetime] = None


def build_user_response(user: User) -> Dict[str, Any]:
    account_type = user.accountType or "email"
    social = {field: getattr(user.social, field) or "" for field in SOCIAL_LINK_FIELDS}
    return UserOut(
        id=user.id,
        mongoId=user.id,
        name=user.name or "",
        email=user.email or "",
        role=user.role or "user",
        avatar=avatar_url(user.avatar, account_type),
        banner=user.banner,
        accountType=account_type,
        gender=user.gender or "",
        birthday=user.birthday,
        slug=user.slug or "",
        diem_danh=getattr(user, "diem_danh", 0) or 0,
        coin=getattr(user, "coin", 0) or 0,
        coin_total=getattr(user, "coin_total", 0) or 0,
        coin_spent=getattr(user, "coin_spent", 0) or 0,
        social=SocialOut(**social),
        created_at=user.createdAt,
        isActive=bool(user.isActive),
        email_verified_at=user.email_verified_at,
    ).model_dump()
