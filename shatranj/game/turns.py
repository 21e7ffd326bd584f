"""Who sits where: the roster of the two players and the mapping from a wallet address to a seat."""

from dataclasses import dataclass
from typing import Optional, Self

from shatranj.auth.address import Address
from shatranj.config.settings import Settings
from shatranj.core.shared_types import Color, Observer, Seat


@dataclass(frozen=True)
class Player:
    username: str
    address: Address


@dataclass(frozen=True)
class Roster:
    """The two seated players. Fixed for the lifetime of a match."""

    white: Player
    black: Player

    def __post_init__(self) -> None:
        if self.white.address == self.black.address:
            raise ValueError("The same wallet cannot play both colors.")

    @classmethod
    def from_settings(cls, settings: Settings) -> Self:
        return cls(
            white=Player(settings.WHITE_USERNAME, Address(settings.WHITE_ADDRESS)),
            black=Player(settings.BLACK_USERNAME, Address(settings.BLACK_ADDRESS)),
        )

    def player_for(self, color: Color) -> Player:
        return self.white if color == Color.WHITE else self.black

    def as_dict(self) -> dict[str, str]:
        """color -> username, as shown next to the board."""
        return {Color.WHITE: self.white.username, Color.BLACK: self.black.username}


class TurnResolver:
    """Maps the session's address onto a seat. Pure: same inputs, same seat."""

    def resolve(self, address: Optional[Address | str], roster: Roster) -> Seat:
        if address is None:
            return Observer.OBSERVER
        try:
            address = Address.parse(address)
        except ValueError:
            return Observer.OBSERVER

        # Address equality ignores letter case
        if address == roster.white.address:
            return Color.WHITE
        if address == roster.black.address:
            return Color.BLACK
        return Observer.OBSERVER
