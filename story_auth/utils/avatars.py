"""
Default avatars.

Email accounts without an uploaded avatar get the site default; OAuth
accounts normally bring one from the provider and fall back to the
platform's hosted placeholder, the same URL clients have always received.
"""

from typing import Any, Dict, Optional, Union

DEFAULT_EMAIL_AVATAR = "/images/default-avatar.png.webp"
FALLBACK_AVATAR = (
    "https://scontent.fhan14-1.fna.fbcdn.net/v/t1.30497-1/453178253_471506465671661_2781666950760530985_n.png?stp=dst-png_s200x200&_nc_cat=1&ccb=1-7&_nc_sid=136b72&_nc_eui2=AeEVh0QX00TsNbI_haYB6RkWWt9TLzuBU1Ba31MvO4FTUF6Wlqf82r4BlCRAvh76aT3XsemaZbZv1fSB6o0CuFyz&_nc_ohc=Py8_nbWK5EEQ7kNvwGsqdUg&_nc_oc=AdnI1l-iLBtmCS_HEGsSqRjBSwsEa7c2UqgE5xPauCK2NBbd3kafOH_SABtbbISIdl6NeB79axebfe0e8MZgqmPe&_nc_zt=24&_nc_ht=scontent.fhan14-1.fna&oh=00_AfEDQng6NcDapZJFJ_Rjx-l97NT-NKumwkUgVLnP-cH5Fg&oe=683150FA"
)


def avatar_url(avatar: Optional[Union[str, Dict[str, Any]]], account_type: Optional[str]) -> str:
    # uploaded avatars are stored as {primaryUrl, variants, ...}
    if isinstance(avatar, dict):
        avatar = avatar.get("primaryUrl")
    if avatar:
        return avatar
    if (account_type or "email") == "email":
        return DEFAULT_EMAIL_AVATAR
    return FALLBACK_AVATAR
