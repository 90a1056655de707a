import logging
import random
import threading
from typing import Callable, List, Optional

from app.models import Game, Membership, Participant, Phase, Round
from .errors import GameError
from .lobby import Lobby
from .roles import ROSTER_SIZE, assign_roles
from .scoring import ScoringPolicy, apply_immediate_grants, get_policy, score_current_round

Notifier = Callable[[str, dict, List[Participant]], None]
Scheduler = Callable[[float, Callable[[], None], str], None]


def _run_now(delay: float, callback: Callable[[], None], label: str = '') -> None:
    callback()


class GameTable:
    """The single game table: lobby, the active game and its round lifecycle.

    Every public method is one inbound event and runs under the table lock,
    so a handler and the notifications it sends are never interleaved with
    another event. Invalid events are logged and ignored.
    """

    def __init__(self, policy: ScoringPolicy, notify: Notifier, schedule: Optional[Scheduler] = None,
                 max_rounds: int = 10, cooldown_sec: float = 4.0, auto_start_next: bool = False,
                 guess_by_name: bool = False, rng: Optional[random.Random] = None,
                 logger: Optional[logging.Logger] = None):
        self.policy = policy
        self.notify = notify
        self.schedule = schedule or _run_now
        self.max_rounds = max_rounds
        self.cooldown_sec = cooldown_sec
        self.auto_start_next = auto_start_next
        self.guess_by_name = guess_by_name
        self.rng = rng or random.Random()
        self.logger = logger or logging.getLogger(__name__)
        self.lobby = Lobby()
        self.game: Optional[Game] = None
        self._generation = 0
        self._lock = threading.RLock()

    @classmethod
    def from_config(cls, config, notify: Notifier, schedule: Optional[Scheduler] = None,
                    logger: Optional[logging.Logger] = None, rng: Optional[random.Random] = None):
        return cls(
            get_policy(config.get('SCORING_POLICY', 'parity')),
            notify,
            schedule=schedule,
            max_rounds=int(config.get('MAX_ROUNDS', 10)),
            cooldown_sec=float(config.get('ROUND_COOLDOWN_SEC', 4)),
            auto_start_next=bool(config.get('AUTO_START_NEXT_ROUND', False)),
            guess_by_name=bool(config.get('GUESS_BY_NAME_FALLBACK', False)),
            rng=rng,
            logger=logger,
        )

    # ---- queries ----

    @property
    def phase(self) -> Phase:
        if self.game is not None:
            return self.game.phase
        return Phase.WAITING if self.lobby.waiting else Phase.EMPTY

    @property
    def generation(self) -> int:
        return self._generation

    def seated(self) -> List[Participant]:
        if self.game is None:
            return []
        return [self.lobby.participants[pid] for pid in self.game.participant_ids]

    def scoreboard(self, reveal_roles=False) -> List[dict]:
        return [p.to_dict(include_role=reveal_roles) for p in self.seated()]

    def suspects(self, rnd: Round) -> List[Participant]:
        roles = set(self.policy.suspect_roles(rnd.target_role))
        return [p for p in self.seated() if p.id != rnd.guesser_id and rnd.roles.get(p.id) in roles]

    def snapshot(self) -> dict:
        with self._lock:
            game = self.game
            return {
                'phase': self.phase.value,
                'generation': self._generation,
                'policy': self.policy.name,
                'waiting': self.lobby.waiting_names(),
                'players': self.scoreboard(),
                'round': game.round_number if game else 0,
                'max_rounds': self.max_rounds,
                'cooling_down': bool(game and game.cooling_down),
                'history': list(game.history) if game else [],
            }

    # ---- inbound events ----

    def connect(self, participant_id: str, namespace: str = '/ws') -> None:
        with self._lock:
            self.lobby.connect(participant_id, namespace)

    def join(self, participant_id: str, name) -> None:
        with self._lock:
            changed = self.lobby.join(participant_id, name)
            if not changed:
                participant = self.lobby.get(participant_id)
                blank = not isinstance(name, str) or not name.strip()
                if blank or participant is None or participant.membership != Membership.WAITING:
                    self.logger.debug(f"[ignored] join sid={participant_id} name={name!r}")
                    return
            else:
                self.logger.info(f"[join] sid={participant_id} name={participant_name(self.lobby, participant_id)} waiting={len(self.lobby.waiting)}")
            self._try_promote()
            self._broadcast_roster()

    def start_round(self, participant_id: str) -> None:
        with self._lock:
            game = self.game
            if game is None or not game.includes(participant_id) or not game.accepts_start:
                self.logger.debug(f"[ignored] shuffle sid={participant_id} phase={self.phase.value}")
                return
            self._start_round(game)

    def guess(self, participant_id: str, payload) -> None:
        with self._lock:
            game = self.game
            rnd = game.current_round if game else None
            if game is None or not game.awaiting_guess or rnd is None or rnd.guesser_id != participant_id:
                self.logger.debug(f"[ignored] guess sid={participant_id} phase={self.phase.value}")
                return
            target_id = self._guess_target(payload)
            if target_id not in {p.id for p in self.suspects(rnd)}:
                self.logger.debug(f"[ignored] guess sid={participant_id} target={target_id!r} not a suspect")
                return
            self._resolve(game, rnd, target_id)

    def restart(self, participant_id: str) -> None:
        with self._lock:
            game = self.game
            if game is None or not game.includes(participant_id):
                self.logger.debug(f"[ignored] restart sid={participant_id}")
                return
            seated_ids = list(game.participant_ids)
            self._clear_game('restart')
            self.lobby.return_to_pool(seated_ids)
            self.notify('game_reset', {}, list(self.lobby.participants.values()))
            self._broadcast_roster()

    def disconnect(self, participant_id: str) -> None:
        with self._lock:
            participant = self.lobby.get(participant_id)
            if participant is None:
                return
            game = self.game
            if game is not None and game.includes(participant_id):
                survivors = [pid for pid in game.participant_ids if pid != participant_id]
                self._clear_game('disconnect')
                self.lobby.remove(participant_id)
                self.lobby.return_to_pool(survivors)
                message = f"{participant.name or 'A player'} left. Game reset."
                self.notify('player_left', {'message': message}, [self.lobby.participants[pid] for pid in survivors])
                self._broadcast_roster()
                return
            was_waiting = participant.membership == Membership.WAITING
            self.lobby.remove(participant_id)
            if was_waiting:
                self._broadcast_roster()

    # ---- transitions ----

    def _try_promote(self) -> None:
        if self.game is not None or not self.lobby.can_claim(ROSTER_SIZE):
            return
        claimed = self.lobby.claim(ROSTER_SIZE)
        self._generation += 1
        self.game = Game(self._generation, claimed, self.max_rounds)
        self.logger.info(f"[promote] generation={self._generation} players={[participant_name(self.lobby, pid) for pid in claimed]}")
        self.notify('shuffle_enabled', {'round': 0, 'max_rounds': self.max_rounds}, self.seated())

    def _start_round(self, game: Game) -> None:
        number = game.round_number + 1
        try:
            roles = assign_roles(game.participant_ids, self.rng)
        except GameError as exc:
            exc.round_number = number
            self.logger.error(f"[round-abort] generation={game.generation} error={exc.to_dict()}")
            return
        rnd = Round(number, roles, self.policy.target_for_round(number), self.policy.guesser_role)
        participants = self.lobby.participants
        apply_immediate_grants(self.policy, rnd, participants)
        for pid, role in roles.items():
            participants[pid].role = role
        game.round_number = number
        game.current_round = rnd
        game.phase = Phase.ROUND_ACTIVE
        self.logger.info(f"[round-start] generation={game.generation} round={number} target={rnd.target_role.value}")

        scoreboard = self.scoreboard()
        for participant in self.seated():
            self.notify('roles_assigned', {
                'role': participant.role.value,
                'round': number,
                'max_rounds': game.max_rounds,
                'scoreboard': scoreboard,
                'history': list(game.history),
            }, [participant])
        guesser = participants.get(rnd.guesser_id)
        if guesser is not None:
            self.notify('guess_request', {
                'target_role': rnd.target_role.value,
                'suspects': [{'id': p.id, 'name': p.name} for p in self.suspects(rnd)],
            }, [guesser])

    def _resolve(self, game: Game, rnd: Round, target_id: str) -> None:
        participants = self.lobby.participants
        try:
            resolution = score_current_round(self.policy, rnd, target_id, participants)
        except GameError as exc:
            self.logger.error(f"[round-abort] generation={game.generation} error={exc.to_dict()}")
            self._abort_round(game, rnd)
            return

        names = {pid: participants[pid].name for pid in game.participant_ids}
        game.history.append(rnd.to_dict(names))
        game.phase = Phase.ROUND_RESOLVED
        self.logger.info(
            f"[round-resolved] generation={game.generation} round={rnd.number} correct={resolution.correct} deltas={resolution.deltas}"
        )
        scoreboard = self.scoreboard(reveal_roles=True)
        self.notify('round_result', {
            'round': rnd.number,
            'correct': resolution.correct,
            'message': resolution.message,
            'target_role': rnd.target_role.value,
            'roles': {pid: role.value for pid, role in rnd.roles.items()},
            'scoreboard': scoreboard,
            'history': list(game.history),
        }, self.seated())

        if game.round_number >= game.max_rounds:
            self._finish(game, scoreboard)
            return
        game.cooling_down = True
        self._schedule_cooldown(game)

    def _abort_round(self, game: Game, rnd: Round) -> None:
        participants = self.lobby.participants
        if rnd.grants_applied:
            # Scores must equal the grants and deltas of finished rounds; drop this round's grants
            for pid, points in rnd.grants.items():
                participants[pid].score -= points
        for participant in self.seated():
            participant.role = None
        game.current_round = None
        game.round_number = rnd.number - 1
        game.phase = Phase.ROUND_RESOLVED if game.round_number else Phase.READY
        game.cooling_down = False
        self.notify('shuffle_enabled', {'round': game.round_number, 'max_rounds': game.max_rounds}, self.seated())

    def _finish(self, game: Game, scoreboard: List[dict]) -> None:
        game.phase = Phase.GAME_OVER
        seated = self.seated()
        highest = max(p.score for p in seated)
        winners = [p for p in seated if p.score == highest]
        self.logger.info(f"[game-over] generation={game.generation} winners={[p.name for p in winners]} score={highest}")
        self.notify('game_over', {
            'winners': [p.name for p in winners],
            'winner_ids': [p.id for p in winners],
            'scoreboard': scoreboard,
            'history': list(game.history),
        }, seated)

    def _schedule_cooldown(self, game: Game) -> None:
        generation = game.generation
        expected_round = game.round_number

        def _fire():
            with self._lock:
                current = self.game
                if (current is None or current.generation != generation
                        or current.round_number != expected_round
                        or current.phase != Phase.ROUND_RESOLVED or not current.cooling_down):
                    self.logger.info(f"[timer-abort] generation={generation} round={expected_round} table moved on")
                    return
                current.cooling_down = False
                self.logger.info(f"[timer-fire] generation={generation} round={expected_round}")
                if self.auto_start_next:
                    self._start_round(current)
                else:
                    self.notify('shuffle_enabled', {'round': expected_round, 'max_rounds': current.max_rounds},
                                self.seated())

        self.schedule(self.cooldown_sec, _fire, f"generation={generation} round={expected_round}")

    def _clear_game(self, reason: str) -> None:
        game = self.game
        self.game = None
        self._generation += 1
        if game is not None:
            self.logger.info(f"[reset] reason={reason} generation={game.generation} round={game.round_number}")

    def _broadcast_roster(self) -> None:
        self.notify('waiting_roster', {'players': self.lobby.waiting_names()}, self.lobby.outside_game())

    def _guess_target(self, payload) -> Optional[str]:
        if isinstance(payload, str):
            return payload or None
        if not isinstance(payload, dict):
            return None
        for key in ('target_id', 'id'):
            target_id = payload.get(key)
            if isinstance(target_id, str) and target_id:
                return target_id
        name = payload.get('name')
        if self.guess_by_name and isinstance(name, str):
            for participant in self.seated():
                if participant.name == name.strip():
                    return participant.id
        return None


def participant_name(lobby: Lobby, participant_id: str) -> Optional[str]:
    participant = lobby.get(participant_id)
    return participant.name if participant else None
