"""Helpers about CAN identifiers."""


def is_id_restricted(can_id: int) -> bool:
    """Return True if the CAN id is reserved by CANopen for its own services."""
    return (
        can_id <= 0x7F
        or 0x101 <= can_id <= 0x180
        or 0x581 <= can_id <= 0x5FF
        or 0x601 <= can_id <= 0x67F
        or 0x6E0 <= can_id <= 0x6FF
        or can_id >= 0x701
    )