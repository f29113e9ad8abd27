"""Game boards, ship placement and attack resolution."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from navalbattle.protocol import (
    CMD_ATACANTE,
    GRID_SIZE,
    Direction,
    ShipKind,
    validate_position,
)

WATER = "~"
MISS_MARK = "M"
HIT_MARK = "X"

_OUT_OF_BOUNDS = "Fora dos limites do campo."
_OVERLAP = "Sobreposição detectada. Escolha outra posição."
_PLURALS = {
    ShipKind.FRAGATA: "fragatas",
    ShipKind.SUBMARINO: "submarinos",
    ShipKind.DESTROYER: "destroyers",
}


class PlacementError(ValueError):
    """A ship cannot be placed where or as requested."""


class AttackOutcome(Enum):
    MISS = "MISS"
    HIT = "HIT"
    SUNK = "SUNK"
    ALREADY_ATTACKED = "ALREADY_ATTACKED"


@dataclass(frozen=True)
class AttackResult:
    """What an attack on one cell produced."""

    x: int
    y: int
    outcome: AttackOutcome
    ship_id: str | None = None

    @property
    def reply(self) -> str:
        """Message sent back to the attacker."""
        if self.outcome is AttackOutcome.ALREADY_ATTACKED:
            return "ERRO: Posição já atacada"
        if self.outcome is AttackOutcome.SUNK:
            return f"SUNK {self.ship_id}"
        return self.outcome.value

    @property
    def notice(self) -> str | None:
        """Message sent to the defender, or None when nothing changed."""
        if self.outcome is AttackOutcome.ALREADY_ATTACKED:
            return None
        return f"{CMD_ATACANTE} {self.x} {self.y} {self.reply}"


def _check(x: int, y: int) -> None:
    if not (0 <= x < GRID_SIZE and 0 <= y < GRID_SIZE):
        raise IndexError("Coordenadas inválidas")


def _cells(x: int, y: int, direction: str, size: int):
    dx = 1 if direction == "V" else 0
    dy = 1 if direction == "H" else 0
    return ((x + dx * i, y + dy * i) for i in range(size))


class Board:
    """An 8x8 grid of cells: water, ship ids, misses and hits."""

    def __init__(self) -> None:
        self._grid = [[WATER] * GRID_SIZE for _ in range(GRID_SIZE)]

    def cell(self, x: int, y: int) -> str:
        _check(x, y)
        return self._grid[x][y]

    def can_place(self, x: int, y: int, direction: str, size: int) -> bool:
        """Tell whether a ship fits in bounds without touching another."""
        if not validate_position(x, y, direction, size):
            return False
        return all(
            0 <= xi < GRID_SIZE and 0 <= yi < GRID_SIZE and self._grid[xi][yi] == WATER
            for xi, yi in _cells(x, y, direction, size)
        )

    def place(self, ship_id: str, x: int, y: int, direction: str, size: int) -> None:
        """Put a ship, marked by a single-digit id, on the board."""
        if len(ship_id) != 1 or not ship_id.isdigit():
            raise ValueError(f"invalid ship id: {ship_id!r}")
        if not validate_position(x, y, direction, size):
            raise PlacementError(_OUT_OF_BOUNDS)
        if not self.can_place(x, y, direction, size):
            raise PlacementError(_OVERLAP)
        for xi, yi in _cells(x, y, direction, size):
            self._grid[xi][yi] = ship_id

    def receive_attack(self, x: int, y: int) -> AttackResult:
        """Resolve a shot at (x, y) and update the board."""
        _check(x, y)
        current = self._grid[x][y]
        if current in (MISS_MARK, HIT_MARK):
            return AttackResult(x, y, AttackOutcome.ALREADY_ATTACKED)
        if current == WATER:
            self._grid[x][y] = MISS_MARK
            return AttackResult(x, y, AttackOutcome.MISS)
        self._grid[x][y] = HIT_MARK
        if any(current in row for row in self._grid):
            return AttackResult(x, y, AttackOutcome.HIT, current)
        return AttackResult(x, y, AttackOutcome.SUNK, current)

    def mark(self, x: int, y: int, symbol: str) -> None:
        """Set a cell to ``symbol`` directly."""
        _check(x, y)
        self._grid[x][y] = symbol

    def render(self, title: str, hide_ships: bool = False) -> str:
        """Draw the board under ``title``; hidden ships show as water."""
        visible = {WATER, MISS_MARK, HIT_MARK}
        lines = [title, "  " + " ".join(str(i) for i in range(GRID_SIZE))]
        for index, row in enumerate(self._grid):
            cells = (c if not hide_ships or c in visible else WATER for c in row)
            lines.append(f"{index} " + "".join(f"{c} " for c in cells))
        return "\n".join(lines)


class Fleet:
    """Tracks which ships a player has placed against the fleet quota."""

    def __init__(self) -> None:
        self._placed = {kind: 0 for kind in ShipKind}
        self._count = 0

    def remaining(self, kind: str) -> int:
        kind = ShipKind(str(kind).upper()) if not isinstance(kind, ShipKind) else kind
        return kind.quota - self._placed[kind]

    def is_complete(self) -> bool:
        return all(self.remaining(kind) == 0 for kind in ShipKind)

    def place(self, board: Board, kind: str, x: int, y: int, direction: str) -> str:
        """Place the next ship of ``kind`` on ``board`` and return its id."""
        if not isinstance(kind, ShipKind):
            try:
                kind = ShipKind(str(kind).upper())
            except ValueError:
                raise PlacementError(f"Tipo de navio inválido: {kind}") from None
        direction = Direction(str(direction).upper())
        if self.remaining(kind) <= 0:
            raise PlacementError(
                f"Quantidade máxima de {_PLURALS[kind]} já posicionada ({kind.quota})."
            )
        ship_id = chr(ord("1") + self._count)
        board.place(ship_id, x, y, direction.value, kind.size)
        self._placed[kind] += 1
        self._count += 1
        return ship_id