"""Battle state machine.

    SCHEDULED ──start──▶ LIVE ──end──▶ COMPLETED
        │                  │
        └──────cancel──────┴──────────▶ CANCELLED

Transitions are monotonic; COMPLETED and CANCELLED are terminal.
"""

from src.sb_common.enums import BattleStatus
from src.sb_common.errors import IllegalTransitionError

_ALLOWED: dict[BattleStatus, frozenset[BattleStatus]] = {
    BattleStatus.SCHEDULED: frozenset({BattleStatus.LIVE, BattleStatus.CANCELLED}),
    BattleStatus.LIVE: frozenset({BattleStatus.COMPLETED, BattleStatus.CANCELLED}),
    BattleStatus.COMPLETED: frozenset(),
    BattleStatus.CANCELLED: frozenset(),
}


def can_transition(current: str, target: str) -> bool:
    return BattleStatus(target) in _ALLOWED[BattleStatus(current)]


def check_transition(battle_id: str, current: str, target: str, action: str) -> None:
    if not can_transition(current, target):
        raise IllegalTransitionError(battle_id, BattleStatus(current).value, action)
