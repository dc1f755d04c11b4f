from enum import Enum


class ErrorKind(Enum):
    """Recoverable, user-facing failure reasons returned by the services."""

    NOT_FOUND = "not_found"
    INVALID_INPUT = "invalid_input"
    INVALID_BET = "invalid_bet"
    INSUFFICIENT_POINTS = "insufficient_points"
    ALREADY_PLAYING = "already_playing"
    NOT_PLAYING = "not_playing"
    ON_COOLDOWN = "on_cooldown"
    BANNED = "banned"
    ALREADY_DUELING = "already_dueling"
    NOT_DUELING = "not_dueling"
    FORBIDDEN = "forbidden"
