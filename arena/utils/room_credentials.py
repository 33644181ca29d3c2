"""Room credential generation for paired matches."""

import secrets
import string
from typing import Tuple

from arena.constants import ROOM_ID_LENGTH, ROOM_ID_PREFIX, ROOM_SECRET_LENGTH

_ROOM_ID_ALPHABET = string.ascii_uppercase + string.digits
_ROOM_SECRET_ALPHABET = string.ascii_lowercase + string.digits


def generate_room_id() -> str:
    """
    Create an opaque room identifier, e.g. ROOM_7QX2M0KD.

    Returns:
        Room id string
    """
    return ROOM_ID_PREFIX + "".join(secrets.choice(_ROOM_ID_ALPHABET) for _ in range(ROOM_ID_LENGTH))


def generate_room_secret() -> str:
    """
    Create the short password players type into the game client.

    Returns:
        Room secret string
    """
    return "".join(secrets.choice(_ROOM_SECRET_ALPHABET) for _ in range(ROOM_SECRET_LENGTH))


def generate_room_credentials() -> Tuple[str, str]:
    """
    Create a fresh room id/secret pair shared by both paired tickets.

    Returns:
        Tuple of (room_id, room_secret)
    """
    return generate_room_id(), generate_room_secret()
