import os


def _flag(name, default='0'):
    return os.environ.get(name, default).strip().lower() in ('1', 'true', 'yes', 'on')


class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    # Rounds per game
    MAX_ROUNDS = int(os.environ.get('MAX_ROUNDS', '10'))
    # Delay between a resolved round and the next shuffle being accepted (seconds)
    ROUND_COOLDOWN_SEC = float(os.environ.get('ROUND_COOLDOWN_SEC', '4'))
    # Scoring table: 'parity' (Chor/Dakat alternate) or 'classic' (Chor only)
    SCORING_POLICY = os.environ.get('SCORING_POLICY', 'parity')
    # Start the next round when the cooldown fires instead of waiting for a shuffle
    AUTO_START_NEXT_ROUND = _flag('AUTO_START_NEXT_ROUND')
    # Accept guesses that only carry a display name
    GUESS_BY_NAME_FALLBACK = _flag('GUESS_BY_NAME_FALLBACK')
    # Optional: heartbeat interval for cooldown timer logs (sec). 0 disables.
    TIMER_HEARTBEAT_SEC = int(os.environ.get('TIMER_HEARTBEAT_SEC', '0'))
