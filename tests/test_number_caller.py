import random

from tambola.services.game_service import GameService
from tambola.services.number_caller import CallerRegistry, NumberCaller
from tambola.services.ticket_service import TicketService


def _active_game(session_factory, start=True):
    with session_factory() as session:
        TicketService(rng=random.Random(4)).generate_set(session, "default", 3)
        service = GameService()
        game = service.create_game(session, selected_prizes=["full_house"], max_tickets=3, number_calling_delay=1)
        if start:
            service.start_game(session, game.id)
        session.commit()
        return game.id


def _numbers_called(session_factory, game_id):
    with session_factory() as session:
        return list(GameService().get_game(session, game_id).numbers_called)


def test_tick_calls_one_number(session_factory):
    game_id = _active_game(session_factory)
    caller = NumberCaller(session_factory, game_id)

    assert caller.tick() == 1.0
    assert caller.tick() == 1.0
    assert len(_numbers_called(session_factory, game_id)) == 2
    assert caller.calls_made == 2


def test_tick_stops_for_inactive_game(session_factory):
    game_id = _active_game(session_factory, start=False)
    caller = NumberCaller(session_factory, game_id)

    assert caller.tick() is None
    assert _numbers_called(session_factory, game_id) == []


def test_caller_runs_until_every_number_is_out(session_factory):
    game_id = _active_game(session_factory)
    caller = NumberCaller(session_factory, game_id, delay_override=0)

    caller.start()
    caller.join(timeout=60)

    assert not caller.is_running
    called = _numbers_called(session_factory, game_id)
    assert sorted(called) == list(range(1, 91))
    assert caller.calls_made == 90


def test_caller_stops_when_game_pauses(session_factory):
    game_id = _active_game(session_factory)
    with session_factory() as session:
        GameService().pause_game(session, game_id)
        session.commit()

    registry = CallerRegistry(session_factory, delay_override=0)
    caller = registry.start(game_id)
    caller.join(timeout=10)

    assert not registry.is_running(game_id)
    assert _numbers_called(session_factory, game_id) == []
    assert registry.stop(game_id) is True
    assert registry.stop(game_id) is False
