"""ORM models."""

from tambola.models.booking import Booking
from tambola.models.game import Game
from tambola.models.ticket import Ticket
from tambola.models.winner import Winner

__all__ = ["Booking", "Game", "Ticket", "Winner"]
