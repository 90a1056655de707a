"""Exceptions raised by the game services.

Input problems (bad names, guesses out of turn) are not errors here: the
table ignores them. These classes cover broken invariants only.
"""


class GameError(Exception):
    """Base class for internal game failures."""

    def __init__(self, message, round_number=None):
        super().__init__(message)
        self.message = message
        self.round_number = round_number

    def to_dict(self):
        return {'error': type(self).__name__, 'message': self.message, 'round': self.round_number}


class RosterSizeError(GameError):
    """Role assignment was called with the wrong number of participants."""


class RoleAssignmentError(GameError):
    """Participants and roles are not in one-to-one correspondence."""


class ResolutionError(GameError):
    """An expected role holder is missing when resolving a guess."""
