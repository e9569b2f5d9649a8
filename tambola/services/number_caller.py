"""Background number calling.

One thread per game calls a number, records the winners that call produced,
commits, and waits ``number_calling_delay`` seconds before the next tick.
It stops on its own once the game is no longer active or all numbers are
out.
"""

from __future__ import annotations

import logging
from threading import Event, Lock, Thread

from sqlalchemy.orm import Session, sessionmaker

from tambola.errors import AppError
from tambola.records import GameStatus
from tambola.services.game_service import GameService

logger = logging.getLogger(__name__)


class NumberCaller:
    """Calls numbers for one game on a fixed cadence."""

    def __init__(
        self,
        session_factory: sessionmaker[Session],
        game_id: int,
        service: GameService | None = None,
        *,
        delay_override: float | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._game_id = int(game_id)
        self._service = service or GameService()
        self._delay_override = delay_override
        self._stop = Event()
        self._thread: Thread | None = None
        self.calls_made = 0

    @property
    def game_id(self) -> int:
        return self._game_id

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.is_running:
            return
        self._stop.clear()
        self._thread = Thread(target=self._run, name=f"number-caller-{self._game_id}", daemon=True)
        self._thread.start()

    def stop(self, timeout: float | None = None) -> None:
        self._stop.set()
        if self._thread is not None and timeout is not None:
            self._thread.join(timeout)

    def join(self, timeout: float | None = None) -> None:
        if self._thread is not None:
            self._thread.join(timeout)

    def tick(self) -> float | None:
        """Call one number in its own transaction.

        Returns the delay before the next tick, or None when calling is over.
        """

        with self._session_factory() as session:
            try:
                game = self._service.get_game(session, self._game_id)
                if GameStatus(game.status) is not GameStatus.ACTIVE:
                    logger.info("Game %s is %s; caller stopping", self._game_id, game.status)
                    return None

                result = self._service.call_next_number(session, self._game_id)
                session.commit()
            except AppError as exc:
                session.rollback()
                logger.info("Game %s caller stopping: %s", self._game_id, exc.message)
                return None

            if result is None:
                return None
            self.calls_made += 1
            if self._delay_override is not None:
                return float(self._delay_override)
            return float(game.number_calling_delay or 5)

    def _run(self) -> None:
        logger.info("Number caller started for game %s", self._game_id)
        try:
            while not self._stop.is_set():
                delay = self.tick()
                if delay is None:
                    break
                self._stop.wait(delay)
        except Exception:
            logger.exception("Number caller for game %s crashed", self._game_id)
        finally:
            logger.info("Number caller for game %s stopped after %s calls", self._game_id, self.calls_made)


class CallerRegistry:
    """At most one running caller per game."""

    def __init__(self, session_factory: sessionmaker[Session], *, delay_override: float | None = None) -> None:
        self._session_factory = session_factory
        self._delay_override = delay_override
        self._lock = Lock()
        self._callers: dict[int, NumberCaller] = {}

    def start(self, game_id: int) -> NumberCaller:
        with self._lock:
            caller = self._callers.get(int(game_id))
            if caller is not None and caller.is_running:
                return caller
            caller = NumberCaller(self._session_factory, game_id, delay_override=self._delay_override)
            self._callers[int(game_id)] = caller
            caller.start()
            return caller

    def stop(self, game_id: int, timeout: float | None = None) -> bool:
        with self._lock:
            caller = self._callers.pop(int(game_id), None)
        if caller is None:
            return False
        caller.stop(timeout)
        return True

    def running_count(self) -> int:
        with self._lock:
            return sum(1 for c in self._callers.values() if c.is_running)

    def is_running(self, game_id: int) -> bool:
        with self._lock:
            caller = self._callers.get(int(game_id))
        return caller is not None and caller.is_running

    def stop_all(self, timeout: float | None = None) -> None:
        with self._lock:
            callers = list(self._callers.values())
            self._callers.clear()
        for caller in callers:
            caller.stop(timeout)
