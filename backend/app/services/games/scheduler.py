import time
from typing import Callable

from app import socketio


def make_cooldown_scheduler(app) -> Callable[[float, Callable[[], None], str], None]:
    """Build the scheduler the game table uses for its round cooldown.

    - Runs the callback inline in TESTING mode (unless ENABLE_SCHEDULER_IN_TESTS)
    - Otherwise sleeps in a Socket.IO background task, then fires inside an app context
    - Never cancels: the callback itself checks that its game is still current
    """

    def schedule(delay: float, callback: Callable[[], None], label: str = '') -> None:
        try:
            app.logger.info(f"[timer-set] {label} delay={delay}s deadline={time.time() + delay:.3f}")
        except Exception:
            pass

        def _worker():
            try:
                hb = int(app.config.get('TIMER_HEARTBEAT_SEC', 0))
            except (TypeError, ValueError):
                hb = 0
            if hb > 0:
                slept = 0.0
                while slept < delay:
                    step = min(hb, delay - slept)
                    socketio.sleep(step)
                    slept += step
                    app.logger.info(f"[timer-heartbeat] {label} remaining={max(0.0, delay - slept)}s")
            elif delay > 0:
                socketio.sleep(delay)
            with app.app_context():
                callback()

        if app.config.get('TESTING') and not app.config.get('ENABLE_SCHEDULER_IN_TESTS'):
            with app.app_context():
                callback()
            return
        socketio.start_background_task(_worker)

    return schedule
