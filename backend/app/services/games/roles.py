import random
from typing import Dict, Sequence

from app.models import ALL_ROLES, Role
from .errors import RoleAssignmentError, RosterSizeError

ROSTER_SIZE = len(ALL_ROLES)


def assign_roles(participant_ids: Sequence[str], rng: random.Random = None) -> Dict[str, Role]:
    """Map each of the four participants to a distinct role.

    The roles are permuted with ``Random.shuffle`` (Fisher-Yates), so all 24
    orderings are equally likely. Participant order is preserved in the
    returned mapping.
    """
    ids = list(participant_ids)
    if len(ids) != ROSTER_SIZE or len(set(ids)) != ROSTER_SIZE:
        raise RosterSizeError(f'expected {ROSTER_SIZE} distinct participants, got {ids!r}')
    roles = list(ALL_ROLES)
    (rng or random).shuffle(roles)
    mapping = dict(zip(ids, roles))
    check_bijection(mapping)
    return mapping


def check_bijection(mapping: Dict[str, Role]) -> None:
    if len(mapping) != ROSTER_SIZE or set(mapping.values()) != set(ALL_ROLES):
        raise RoleAssignmentError(f'roles do not cover the table exactly once: {mapping!r}')
