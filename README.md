# navalbattle

A two-player naval battle game played over TCP. One machine runs the
server; each player connects with the terminal client. The game's
messages and prompts are in Portuguese.

## Installing

    pip install .

## Playing

Start the server. By default it listens on all addresses, port 8080:

    navalbattle-server
    navalbattle-server --host 127.0.0.1 --port 9000

Each player then connects by giving the server's IPv4 address (and the
port, if it is not 8080):

    navalbattle-client 192.168.1.100
    navalbattle-client 127.0.0.1 --port 9000

The client refuses anything that is not an IPv4 address.

The game runs in phases:

1. **Join** – type `JOIN <your_name>`. The first player to join is told
   to wait; when the second joins, both are told the game has started.
2. **Placement** – both players place ships at the same time on an
   8×8 grid. The fleet is two frigates (size 2), one submarine (size 1)
   and one destroyer (size 3):

       POS FRAGATA 3 4 H
       POS SUBMARINO 0 0 V
       POS DESTROYER 5 1 V

   `X` is the row, `Y` the column, and the direction is `H`
   (horizontal, along the row) or `V` (vertical, down the column). Ship
   type and direction may be typed in any case. Ships must fit on the
   board, may not overlap, and no more of a type than the fleet allows
   can be placed. The client checks this itself before sending, and the
   server checks it again.
3. **Ready** – type `READY` once your fleet is placed. Play starts when
   both players are ready; the first player to join fires first.
4. **Attack** – players take turns. When it is your turn, fire with

       FIRE 3 4

   The server answers `MISS`, `HIT` or `SUNK <ship id>`, and tells your
   opponent where you struck with `ATACANTE X Y <result>`. Firing at a
   cell already attacked is answered with an error, and the turn still
   passes. The first player to sink all four ships of the other wins;
   the server then sends `WIN`, `LOSE` and `FIM` and shuts down.

On the boards, `~` is water, digits are your ships (numbered `1` to `4`
in the order they were placed), `M` is a miss and `X` is a hit. The
opponent's board never shows ships.

## Using it as a library

- `navalbattle.protocol` holds the message formats: `ShipKind`,
  `Direction`, `PlaceCommand`, `ProtocolError`, `ship_size`,
  `validate_position`, `parse_place_command`, `parse_fire_command` and
  `parse_attacker_notice`.
- `navalbattle.board` holds the game rules: `Board` (`cell`,
  `can_place`, `place`, `receive_attack`, `mark`, `render`), `Fleet`
  (`remaining`, `is_complete`, `place`), `AttackResult`,
  `AttackOutcome` and `PlacementError`.
- `navalbattle.server` has `GameServer` (`bind`, `serve_forever`,
  `close`, `handle_player`) and `write_log`, which appends a
  timestamped line to a file (`battleship.log` by default).
- `navalbattle.client` has `GameClient`, which takes a connected socket
  and optional input and output functions, and `render_boards`.

```python
from navalbattle.board import Board, Fleet

board = Board()
fleet = Fleet()
fleet.place(board, "SUBMARINO", 0, 0, "H")
print(board.receive_attack(0, 0).reply)  # SUNK 1
```

## Limits

- The server referees a single game between two players and exits when
  it ends; a third connection is turned away with `ERRO: Servidor cheio`.
- The server does not write a log of the game on its own; `write_log` is
  only a helper for doing so.
- Nothing is stored between games.

## Running the tests

    pip install .[test]
    pytest