from __future__ import annotations


def encode_duel_response(challenger: str, accepted: bool) -> str:
    """
    Encode an accept/decline button for a duel challenge.

    The button names the challenger, so a button left over from an earlier
    challenge cannot answer a newer one. The challenged player is whoever
    presses it. Telegram caps callback data at 64 bytes, and a username is at
    most 32.

    Format:
      duel:yes:{challenger}
      duel:no:{challenger}
    """

    answer = "yes" if accepted else "no"
    return f"duel:{answer}:{challenger}"


def parse_duel_response(data: str) -> tuple[bool, str]:
    parts = data.split(":")
    if len(parts) != 3 or parts[0] != "duel" or parts[1] not in ("yes", "no") or not parts[2]:
        raise ValueError(f"Invalid duel response callback data: {data}")

    accepted = parts[1] == "yes"
    return accepted, parts[2]
