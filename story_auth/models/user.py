from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Dict, Optional, Union
from datetime import datetime
from enum import Enum


class AccountType(str, Enum):
    EMAIL = "email"
    GOOGLE = "google"


SOCIAL_LINK_FIELDS = ("bio", "facebook", "twitter", "instagram", "youtube", "website")


class SocialLinks(BaseModel):
    model_config = ConfigDict(validate_assignment=True)

    bio: Optional[str] = ""
    facebook: Optional[str] = ""
    twitter: Optional[str] = ""
    instagram: Optional[str] = ""
    youtube: Optional[str] = ""
    website: Optional[str] = ""


class User(BaseModel):
    # Unknown fields written by other parts of the platform (coins, stats...)
    # are kept so that a save round-trips the whole document.
    model_config = ConfigDict(
        populate_by_name=True,
        validate_assignment=True,
        extra="allow",
    )

    id: Optional[str] = Field(None, alias="_id")
    email: str
    password: Optional[str] = None  # bcrypt hash; absent for OAuth accounts
    name: str = ""
    slug: Optional[str] = None
    role: str = "user"
    accountType: str = AccountType.EMAIL.value
    isActive: bool = True
    avatar: Optional[Union[str, Dict[str, Any]]] = None
    banner: Optional[Union[str, Dict[str, Any]]] = None
    gender: Optional[str] = None
    birthday: Optional[datetime] = None
    social: SocialLinks = Field(default_factory=SocialLinks)
    metadata: Dict[str, Any] = Field(default_factory=dict)
    email_verified_at: Optional[datetime] = None
    last_active: Optional[datetime] = None
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None
