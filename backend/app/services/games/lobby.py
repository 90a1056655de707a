from typing import Dict, List, Optional

from app.models import Membership, Participant


class Lobby:
    """Connection registry plus the ordered pool of named players waiting for a game."""

    def __init__(self):
        self.participants: Dict[str, Participant] = {}
        self._waiting: List[str] = []

    def connect(self, participant_id: str, namespace: str = '/ws') -> Participant:
        participant = self.participants.get(participant_id)
        if participant is None:
            participant = Participant(participant_id, namespace)
            self.participants[participant_id] = participant
        return participant

    def get(self, participant_id: str) -> Optional[Participant]:
        return self.participants.get(participant_id)

    def join(self, participant_id: str, name) -> bool:
        """Name a connection and queue it. Returns False when nothing changed."""
        if not isinstance(name, str) or not name.strip():
            return False
        participant = self.connect(participant_id)
        if participant.membership != Membership.UNREGISTERED:
            return False
        participant.name = name.strip()
        participant.membership = Membership.WAITING
        self._waiting.append(participant_id)
        return True

    @property
    def waiting(self) -> List[Participant]:
        return [self.participants[pid] for pid in self._waiting]

    def waiting_names(self) -> List[str]:
        return [p.name for p in self.waiting]

    def can_claim(self, count: int) -> bool:
        return len(self._waiting) >= count

    def claim(self, count: int) -> List[str]:
        """Take the earliest ``count`` waiting players out of the pool."""
        if not self.can_claim(count):
            return []
        claimed, self._waiting = self._waiting[:count], self._waiting[count:]
        for pid in claimed:
            participant = self.participants[pid]
            participant.reset()
            participant.membership = Membership.IN_GAME
        return claimed

    def return_to_pool(self, participant_ids: List[str]) -> None:
        for pid in participant_ids:
            participant = self.participants.get(pid)
            if participant is None:
                continue
            participant.reset()
            participant.membership = Membership.WAITING
            if pid not in self._waiting:
                self._waiting.append(pid)

    def remove(self, participant_id: str) -> Optional[Participant]:
        participant = self.participants.pop(participant_id, None)
        if participant_id in self._waiting:
            self._waiting.remove(participant_id)
        return participant

    def outside_game(self) -> List[Participant]:
        """Every connection not seated at the table, named or not."""
        return [p for p in self.participants.values() if p.membership != Membership.IN_GAME]
