from enum import Enum
from typing import Dict, List, Optional


class Role(str, Enum):
    BABU = 'Babu'
    POLICE = 'Police'
    CHOR = 'Chor'
    DAKAT = 'Dakat'


ALL_ROLES = (Role.BABU, Role.POLICE, Role.CHOR, Role.DAKAT)


class Membership(str, Enum):
    UNREGISTERED = 'unregistered'
    WAITING = 'waiting'
    IN_GAME = 'in_game'


class Phase(str, Enum):
    EMPTY = 'empty'
    WAITING = 'waiting'
    READY = 'ready'
    ROUND_ACTIVE = 'round_active'
    ROUND_RESOLVED = 'round_resolved'
    GAME_OVER = 'game_over'


class Outcome(str, Enum):
    PENDING = 'pending'
    CORRECT = 'correct'
    INCORRECT = 'incorrect'


class Participant:
    """One connection. Named once; score and role only mean something in a game."""

    def __init__(self, id: str, namespace: str = '/ws'):
        self.id = id
        self.namespace = namespace
        self.name: Optional[str] = None
        self.score = 0
        self.role: Optional[Role] = None
        self.membership = Membership.UNREGISTERED

    def reset(self):
        self.score = 0
        self.role = None

    def to_dict(self, include_role=False):
        data = {
            'id': self.id,
            'name': self.name,
            'score': self.score,
        }
        if include_role:
            data['role'] = self.role.value if self.role else None
        return data


class Round:
    def __init__(self, number: int, roles: Dict[str, Role], target_role: Role, guesser_role: Role):
        self.number = number
        self.roles = dict(roles)
        self.target_role = target_role
        self.guesser_id = self.holder_of(guesser_role)
        self.outcome = Outcome.PENDING
        self.guessed_id: Optional[str] = None
        self.message = ''
        self.grants: Dict[str, int] = {pid: 0 for pid in roles}
        self.deltas: Dict[str, int] = {pid: 0 for pid in roles}
        self.grants_applied = False

    def holder_of(self, role: Role) -> Optional[str]:
        for pid, r in self.roles.items():
            if r == role:
                return pid
        return None

    @property
    def finalized(self):
        return self.outcome != Outcome.PENDING

    def to_dict(self, names: Dict[str, str]):
        order = list(self.roles)
        return {
            'round': self.number,
            'target_role': self.target_role.value,
            'guesser_id': self.guesser_id,
            'guessed_id': self.guessed_id,
            'correct': self.outcome == Outcome.CORRECT,
            'message': self.message,
            'roles': {pid: self.roles[pid].value for pid in order},
            'grants': dict(self.grants),
            'deltas': dict(self.deltas),
            'gains': [
                {'id': pid, 'name': names.get(pid), 'points': self.grants[pid] + self.deltas[pid]}
                for pid in order
            ],
        }


class Game:
    """The four claimed participants and their finished rounds."""

    def __init__(self, generation: int, participant_ids: List[str], max_rounds: int):
        self.generation = generation
        self.participant_ids = list(participant_ids)
        self.max_rounds = max_rounds
        self.round_number = 0
        self.current_round: Optional[Round] = None
        self.history: List[dict] = []
        self.phase = Phase.READY
        # True between a resolution and the cooldown timer firing
        self.cooling_down = False

    @property
    def awaiting_guess(self):
        return self.phase == Phase.ROUND_ACTIVE

    @property
    def accepts_start(self):
        if self.cooling_down:
            return False
        return self.phase in (Phase.READY, Phase.ROUND_RESOLVED)

    def includes(self, participant_id: str) -> bool:
        return participant_id in self.participant_ids
