from typing import Dict, Iterable, List, NamedTuple, Sequence

from app.models import ALL_ROLES, Outcome, Participant, Role, Round
from .errors import ResolutionError

IMMEDIATE = 'immediate'
CONTINGENT = 'contingent'

MISS_FORFEIT = 'forfeit'
MISS_TRANSFER = 'transfer'


class RoleGrant(NamedTuple):
    points: int
    timing: str


class Resolution(NamedTuple):
    correct: bool
    deltas: Dict[str, int]
    message: str


class ScoringPolicy:
    """Point table for the four roles plus the rules for the guess.

    ``target_cycle`` is indexed by round number, so a one-element cycle
    always targets the same role and a two-element cycle alternates by
    parity.
    """

    def __init__(self, name: str, grants: Dict[Role, RoleGrant], guesser_role: Role = Role.POLICE,
                 exempt_roles: Iterable[Role] = (), target_cycle: Sequence[Role] = (Role.CHOR,),
                 miss_rule: str = MISS_FORFEIT):
        if set(grants) != set(ALL_ROLES):
            raise ValueError(f'policy {name!r} must grant every role')
        if not target_cycle:
            raise ValueError(f'policy {name!r} needs at least one target role')
        if miss_rule not in (MISS_FORFEIT, MISS_TRANSFER):
            raise ValueError(f'unknown miss rule {miss_rule!r}')
        self.name = name
        self.grants = dict(grants)
        self.guesser_role = guesser_role
        self.exempt_roles = frozenset(exempt_roles)
        self.target_cycle = tuple(target_cycle)
        self.miss_rule = miss_rule

    def target_for_round(self, round_number: int) -> Role:
        return self.target_cycle[(round_number - 1) % len(self.target_cycle)]

    def suspect_roles(self, target: Role) -> List[Role]:
        """Roles the guesser picks among, target first."""
        others = [r for r in ALL_ROLES if r not in self.exempt_roles and r not in (self.guesser_role, target)]
        return [target] + others

    def immediate_grants(self, roles: Dict[str, Role]) -> Dict[str, int]:
        out = {}
        for pid, role in roles.items():
            grant = self.grants[role]
            out[pid] = grant.points if grant.timing == IMMEDIATE else 0
        return out

    def contingent_points(self, role: Role) -> int:
        grant = self.grants[role]
        return grant.points if grant.timing == CONTINGENT else 0

    def to_dict(self):
        return {
            'name': self.name,
            'roles': {
                role.value: {'points': g.points, 'timing': g.timing} for role, g in self.grants.items()
            },
            'guesser_role': self.guesser_role.value,
            'exempt_roles': sorted(r.value for r in self.exempt_roles),
            'target_cycle': [r.value for r in self.target_cycle],
            'miss_rule': self.miss_rule,
        }


POLICIES = {
    # Babu paid on assignment; the rest settle when Police guesses
    'parity': ScoringPolicy(
        'parity',
        {
            Role.BABU: RoleGrant(900, IMMEDIATE),
            Role.POLICE: RoleGrant(800, CONTINGENT),
            Role.DAKAT: RoleGrant(600, CONTINGENT),
            Role.CHOR: RoleGrant(400, CONTINGENT),
        },
        exempt_roles=(Role.BABU,),
        target_cycle=(Role.CHOR, Role.DAKAT),
    ),
    # Everyone paid on assignment; a miss hands Police's points to the accused
    'classic': ScoringPolicy(
        'classic',
        {
            Role.BABU: RoleGrant(1000, IMMEDIATE),
            Role.POLICE: RoleGrant(500, IMMEDIATE),
            Role.DAKAT: RoleGrant(300, IMMEDIATE),
            Role.CHOR: RoleGrant(0, IMMEDIATE),
        },
        target_cycle=(Role.CHOR,),
        miss_rule=MISS_TRANSFER,
    ),
}


def get_policy(name: str) -> ScoringPolicy:
    try:
        return POLICIES[name]
    except KeyError:
        raise ValueError(f'unknown scoring policy {name!r}; choose from {sorted(POLICIES)}') from None


def _join_reveals(parts: List[str]) -> str:
    if len(parts) == 1:
        return parts[0]
    if len(parts) == 2:
        return f'{parts[0]}, and {parts[1]}'
    return ', '.join(parts[:-1]) + f', and {parts[-1]}'


def resolve_round(policy: ScoringPolicy, rnd: Round, guessed_id: str, names: Dict[str, str]) -> Resolution:
    """Work out correctness and per-participant points for one guess.

    Pure: nothing is mutated. Raises ResolutionError when a role holder the
    policy relies on cannot be found in the round.
    """
    guesser_id = rnd.guesser_id
    if guesser_id is None or rnd.roles.get(guesser_id) != policy.guesser_role:
        raise ResolutionError(f'no {policy.guesser_role.value} in round', rnd.number)
    if guessed_id not in rnd.roles:
        raise ResolutionError(f'guessed participant {guessed_id!r} is not seated', rnd.number)

    target = rnd.target_role
    suspects = policy.suspect_roles(target)
    holders = {role: rnd.holder_of(role) for role in suspects}
    missing = [role.value for role, pid in holders.items() if pid is None]
    if missing:
        raise ResolutionError(f'missing holder(s) for {", ".join(missing)}', rnd.number)

    correct = rnd.roles[guessed_id] == target
    deltas = {pid: 0 for pid in rnd.roles}
    for pid, role in rnd.roles.items():
        if role == policy.guesser_role:
            deltas[pid] += policy.contingent_points(role) if correct else 0
        elif role == target:
            deltas[pid] += 0 if correct else policy.contingent_points(role)
        else:
            deltas[pid] += policy.contingent_points(role)
    if not correct and policy.miss_rule == MISS_TRANSFER:
        forfeited = policy.grants[policy.guesser_role].points
        deltas[guesser_id] -= forfeited
        deltas[guessed_id] += forfeited

    guesser_name = names.get(guesser_id)
    if correct:
        message = f'{guesser_name} guessed correctly: {names.get(holders[target])} is the {target.value}.'
    else:
        reveals = [f'{names.get(holders[role])} was the {role.value}' for role in suspects]
        message = f'{guesser_name} guessed incorrectly. {_join_reveals(reveals)}.'
    return Resolution(correct, deltas, message)


def apply_immediate_grants(policy: ScoringPolicy, rnd: Round, participants: Dict[str, Participant]) -> None:
    """Pay the on-assignment grants for a round. Safe to call more than once."""
    if rnd.grants_applied:
        return
    rnd.grants = policy.immediate_grants(rnd.roles)
    for pid, points in rnd.grants.items():
        participants[pid].score += points
    rnd.grants_applied = True


def score_current_round(policy: ScoringPolicy, rnd: Round, guessed_id: str,
                        participants: Dict[str, Participant]) -> Resolution:
    """Resolve the guess and apply its deltas once, finalizing the round."""
    if rnd.finalized:
        raise ResolutionError('round already resolved', rnd.number)
    names = {pid: participants[pid].name for pid in rnd.roles}
    resolution = resolve_round(policy, rnd, guessed_id, names)
    for pid, delta in resolution.deltas.items():
        participants[pid].score += delta
    rnd.deltas = dict(resolution.deltas)
    rnd.guessed_id = guessed_id
    rnd.message = resolution.message
    rnd.outcome = Outcome.CORRECT if resolution.correct else Outcome.INCORRECT
    return resolution
