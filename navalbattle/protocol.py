"""Wire protocol shared by the battle server and client."""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum

PORT = 8080
MAX_MSG = 1024
MAX_PLAYERS = 2
GRID_SIZE = 8

CMD_JOIN = "JOIN"
CMD_READY = "READY"
CMD_POS = "POS"
CMD_FIRE = "FIRE"
CMD_HIT = "HIT"
CMD_MISS = "MISS"
CMD_SUNK = "SUNK"
CMD_WIN = "WIN"
CMD_LOSE = "LOSE"
CMD_PLAY = "PLAY"
CMD_FIM = "FIM"
CMD_ATACANTE = "ATACANTE"
CMD_VOCE_E_JOGADOR = "VOCE_E_JOGADOR"

_FORMAT_MESSAGE = "Comando inválido. Use: POS TIPO X Y DIRECAO"
_KIND_MESSAGE = "Tipo ou direção inválida. Use FRAGATA, SUBMARINO, DESTROYER e H/V."

_INT = re.compile(r"[+-]?\d+")
_WORD = re.compile(r"\S+")


class ProtocolError(ValueError):
    """A message that does not follow the protocol."""


class Direction(str, Enum):
    """Orientation of a ship: horizontal runs along y, vertical along x."""

    H = "H"
    V = "V"

    def __str__(self) -> str:
        return self.value

    @property
    def step(self) -> tuple[int, int]:
        """Offset (dx, dy) between two consecutive cells of a ship."""
        return (1, 0) if self is Direction.V else (0, 1)


class ShipKind(str, Enum):
    """The kinds of ship a player places, with their sizes and quotas."""

    SUBMARINO = "SUBMARINO"
    FRAGATA = "FRAGATA"
    DESTROYER = "DESTROYER"

    def __str__(self) -> str:
        return self.value

    @property
    def size(self) -> int:
        return _SIZES[self]

    @property
    def quota(self) -> int:
        return _QUOTAS[self]


_SIZES = {ShipKind.SUBMARINO: 1, ShipKind.FRAGATA: 2, ShipKind.DESTROYER: 3}
_QUOTAS = {ShipKind.SUBMARINO: 1, ShipKind.FRAGATA: 2, ShipKind.DESTROYER: 1}


@dataclass(frozen=True)
class PlaceCommand:
    """A parsed ``POS TIPO X Y DIRECAO`` command."""

    kind: ShipKind
    x: int
    y: int
    direction: Direction

    @property
    def size(self) -> int:
        return self.kind.size


class _Scanner:
    """Reads whitespace-separated fields the way the wire format expects."""

    def __init__(self, text: str, error: str) -> None:
        self._text = text
        self._pos = 0
        self._error = error

    def _fail(self) -> ProtocolError:
        return ProtocolError(self._error)

    def _skip_space(self) -> None:
        while self._pos < len(self._text) and self._text[self._pos].isspace():
            self._pos += 1

    def literal(self, word: str) -> None:
        if not self._text.startswith(word, self._pos):
            raise self._fail()
        self._pos += len(word)

    def word(self, limit: int) -> str:
        self._skip_space()
        match = _WORD.match(self._text, self._pos)
        if match is None:
            raise self._fail()
        value = match.group()[:limit]
        self._pos += len(value)
        return value

    def integer(self) -> int:
        self._skip_space()
        match = _INT.match(self._text, self._pos)
        if match is None:
            raise self._fail()
        self._pos = match.end()
        return int(match.group())

    def char(self) -> str:
        self._skip_space()
        if self._pos >= len(self._text):
            raise self._fail()
        value = self._text[self._pos]
        self._pos += 1
        return value


def validate_position(x: int, y: int, direction: str, size: int) -> bool:
    """Tell whether a ship of ``size`` starting at (x, y) fits on the grid."""
    if x < 0 or y < 0 or x >= GRID_SIZE or y >= GRID_SIZE:
        return False
    if direction == "H" and y + size > GRID_SIZE:
        return False
    if direction == "V" and x + size > GRID_SIZE:
        return False
    return True


def _ship_kind(kind: str) -> ShipKind:
    try:
        return ShipKind(str(kind).upper()) if not isinstance(kind, ShipKind) else kind
    except ValueError:
        raise ProtocolError(_KIND_MESSAGE) from None


def ship_size(kind: str) -> int:
    """Size of a ship kind given by name; unknown names raise ProtocolError."""
    return _ship_kind(kind).size


def parse_place_command(text: str) -> PlaceCommand:
    """Parse ``POS TIPO X Y DIRECAO``; type and direction are case-insensitive."""
    scanner = _Scanner(text, _FORMAT_MESSAGE)
    scanner.literal(CMD_POS)
    kind_name = scanner.word(15)
    x = scanner.integer()
    y = scanner.integer()
    direction_char = scanner.char()
    kind = _ship_kind(kind_name)
    try:
        direction = Direction(direction_char.upper())
    except ValueError:
        raise ProtocolError(_KIND_MESSAGE) from None
    return PlaceCommand(kind, x, y, direction)


def parse_fire_command(text: str) -> tuple[int, int]:
    """Parse ``FIRE X Y`` into its coordinates."""
    scanner = _Scanner(text, "Formato inválido. Use FIRE X Y")
    scanner.literal(CMD_FIRE)
    return scanner.integer(), scanner.integer()


def parse_attacker_notice(text: str) -> tuple[int, int, str]:
    """Parse ``ATACANTE X Y RESULTADO`` into coordinates and result word."""
    scanner = _Scanner(text, "Notificação de ataque inválida")
    scanner.literal(CMD_ATACANTE)
    x = scanner.integer()
    y = scanner.integer()
    return x, y, scanner.word(9)