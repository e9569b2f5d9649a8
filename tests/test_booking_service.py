import random

import pytest

from tambola.errors import ConflictError, GameStateError, NotFoundError, ValidationError
from tambola.services.booking_service import BookingService
from tambola.services.game_service import GameService
from tambola.services.ticket_service import TicketService


@pytest.fixture()
def game(session):
    TicketService(rng=random.Random(2)).generate_set(session, "default", 10)
    game = GameService().create_game(session, selected_prizes=["full_house"], max_tickets=8)
    session.commit()
    return game


def test_book_tickets_trims_and_stores(session, game):
    service = BookingService()
    created = service.book_tickets(
        session, game.id, ticket_numbers=[3, 1], player_name="  Asha ", player_phone=" 555-0101 "
    )

    assert len(created) == 2
    assert {b.player_name for b in created} == {"Asha"}
    assert {b.player_phone for b in created} == {"555-0101"}
    assert len(service.list_bookings(session, game.id)) == 2


def test_ticket_is_held_by_one_player_only(session, game):
    service = BookingService()
    service.book_tickets(session, game.id, ticket_numbers=[1, 2], player_name="Asha")

    with pytest.raises(ConflictError) as exc:
        service.book_tickets(session, game.id, ticket_numbers=[3, 2], player_name="Ravi")
    assert exc.value.details == {"ticket_numbers": [2]}


@pytest.mark.parametrize(
    "kwargs",
    [
        {"ticket_numbers": [1], "player_name": "   "},
        {"ticket_numbers": [], "player_name": "Asha"},
        {"ticket_numbers": [1, 1], "player_name": "Asha"},
        {"ticket_numbers": [9], "player_name": "Asha"},
        {"ticket_numbers": [0], "player_name": "Asha"},
    ],
)
def test_invalid_requests(session, game, kwargs):
    with pytest.raises(ValidationError):
        BookingService().book_tickets(session, game.id, **kwargs)


def test_ticket_missing_from_set(session):
    TicketService(rng=random.Random(2)).generate_set(session, "small", 2)
    game = GameService().create_game(session, selected_prizes=["corners"], max_tickets=5, ticket_set="small")

    with pytest.raises(NotFoundError) as exc:
        BookingService().book_tickets(session, game.id, ticket_numbers=[2, 4], player_name="Asha")
    assert exc.value.details == {"ticket_numbers": [4]}


def test_bookings_close_when_game_starts(session, game):
    GameService().start_game(session, game.id)

    with pytest.raises(GameStateError):
        BookingService().book_tickets(session, game.id, ticket_numbers=[1], player_name="Asha")


def test_unknown_game(session):
    with pytest.raises(NotFoundError):
        BookingService().book_tickets(session, 404, ticket_numbers=[1], player_name="Asha")


def test_update_player(session, game):
    service = BookingService()
    booking = service.book_tickets(session, game.id, ticket_numbers=[5], player_name="Asha")[0]

    updated = service.update_player(session, booking.id, player_name="Asha K", player_phone="")
    assert updated.player_name == "Asha K"
    assert updated.player_phone is None

    with pytest.raises(ValidationError):
        service.update_player(session, booking.id, player_name=" ")
    with pytest.raises(NotFoundError):
        service.update_player(session, 999, player_name="Ravi")
