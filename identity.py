from typing import Optional
from urllib.parse import quote

from constants import AVATAR_URL_TEMPLATE
from room_keys import DEFAULT_USER_NAME, PRIVATE_ROOM_ID


def canonical_pair_id(id_a: str, id_b: str) -> str:
    """Return the private room id for the unordered pair {id_a, id_b}.

    The ids are sorted lexicographically before formatting, so the result is
    the same whichever participant asks first.
    """
    first, second = sorted((id_a, id_b))
    return PRIVATE_ROOM_ID.format(first=first, second=second)


def default_name(connection_id: str) -> str:
    return DEFAULT_USER_NAME.format(prefix=connection_id[:4])


def default_avatar(name: str, template: Optional[str] = None) -> str:
    """Placeholder avatar URL keyed by display name."""
    return (template or AVATAR_URL_TEMPLATE).format(name=quote(name, safe=""))
