"""
Ride mode ordering. Modes form a cycle: glide -> combat -> ballistic -> glide.
The actuator can only step forward, so a transition is always counted forward.
"""
import enum
from types import MappingProxyType

from ride_mode.errors import InvalidEnumValueError


class RideMode(str, enum.Enum):
    GLIDE = "glide"
    COMBAT = "combat"
    BALLISTIC = "ballistic"


RIDE_MODE_ORDER: tuple[str, ...] = tuple(mode.value for mode in RideMode)

_POSITIONS = MappingProxyType({name: idx for idx, name in enumerate(RIDE_MODE_ORDER)})


def index_of(name: str) -> int | None:
    """Position of name in RIDE_MODE_ORDER, or None if unknown."""
    return _POSITIONS.get(name)


def mode_index(field: str, value: str) -> int:
    idx = index_of(value)
    if idx is None:
        raise InvalidEnumValueError(field, value)
    return idx


def forward_steps(current_index: int, target_index: int, n: int = len(RIDE_MODE_ORDER)) -> int:
    """Forward positions from current to target; 0 when already there."""
    return (target_index - current_index + n) % n
