# ABOUTME: Derives a "place, country" label from a reverse-geocode payload.
# ABOUTME: Rules are tried in a fixed priority order and the first one that matches wins.

from collections.abc import Callable

UNKNOWN_LOCATION = "Unknown Location"

PlaceNameRule = Callable[[dict], str | None]


def _address_rule(field: str) -> PlaceNameRule:
    """Match when address.<field> and address.country are both present."""

    def rule(payload: dict) -> str | None:
        address = payload.get("address")
        if not isinstance(address, dict):
            return None
        place, country = address.get(field), address.get("country")
        if place and country:
            return f"{place}, {country}"
        return None

    rule.__name__ = f"address_{field}"
    return rule


def _display_name_rule(payload: dict) -> str | None:
    """Use the first and last comma-separated segments of display_name."""
    display_name = payload.get("display_name")
    if not display_name or not isinstance(display_name, str):
        return None
    parts = display_name.split(",")
    if len(parts) > 1:
        return f"{parts[0].strip()}, {parts[-1].strip()}"
    return display_name


PLACE_NAME_RULES: tuple[PlaceNameRule, ...] = (
    _address_rule("city"),
    _address_rule("town"),
    _address_rule("village"),
    _address_rule("hamlet"),
    _address_rule("county"),
    _display_name_rule,
)


def derive_place_name(payload) -> str:
    """Return the place name for a reverse-geocode payload, or "Unknown Location"."""
    if not isinstance(payload, dict):
        return UNKNOWN_LOCATION
    for rule in PLACE_NAME_RULES:
        name = rule(payload)
        if name is not None:
            return name
    return UNKNOWN_LOCATION
