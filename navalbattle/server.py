"""Battle server: pairs two players and referees their game."""

from __future__ import annotations

import argparse
import socket
import threading
import time
from dataclasses import dataclass, field
from enum import Enum, auto

from navalbattle.board import AttackOutcome, Board, Fleet, PlacementError
from navalbattle.protocol import (
    CMD_FIM,
    CMD_FIRE,
    CMD_JOIN,
    CMD_LOSE,
    CMD_PLAY,
    CMD_READY,
    CMD_VOCE_E_JOGADOR,
    CMD_WIN,
    MAX_MSG,
    MAX_PLAYERS,
    PORT,
    ProtocolError,
    parse_fire_command,
    parse_place_command,
)

LOG_FILE = "battleship.log"
FLEET_SIZE = 4
_ACCEPT_POLL = 0.2
_NAME_LIMIT = 49


class GameState(Enum):
    WAITING_FOR_PLAYERS = auto()
    PLACING_SHIPS = auto()
    WAITING_READY = auto()
    IN_GAME = auto()
    GAME_OVER = auto()


def write_log(message: str, path: str = LOG_FILE) -> None:
    """Append a timestamped line to the log file; failures are ignored."""
    stamp = time.strftime("%Y-%m-%d %H:%M:%S")
    try:
        with open(path, "a", encoding="utf-8") as log_file:
            log_file.write(f"[{stamp}] {message}\n")
    except OSError:
        pass


@dataclass
class _Player:
    conn: socket.socket
    name: str = ""
    board: Board = field(default_factory=Board)
    ships_left: int = FLEET_SIZE


def _send(conn: socket.socket, message: str) -> None:
    if not message:
        return
    try:
        conn.sendall(message.encode("utf-8"))
    except OSError as exc:
        print(f"send failed: {exc}")


def _recv(conn: socket.socket) -> str | None:
    try:
        data = conn.recv(MAX_MSG - 1)
    except OSError:
        return None
    if not data:
        return None
    return data.decode("utf-8", errors="replace")


class GameServer:
    """Accepts two players, lets them place ships, then runs the turns."""

    def __init__(self, host: str = "0.0.0.0", port: int = PORT) -> None:
        self.host = host
        self.port = port
        self.state = GameState.WAITING_FOR_PLAYERS
        self._players: list[_Player | None] = [None] * MAX_PLAYERS
        self._turn = 0
        self._ready: set[int] = set()
        self._connected = 0
        self._lock = threading.Lock()
        self._finished = threading.Event()
        self._closed = threading.Event()
        self._listener: socket.socket | None = None

    @property
    def finished(self) -> bool:
        return self._finished.is_set()

    def bind(self) -> tuple[str, int]:
        """Open the listening socket and return the address it is bound to."""
        listener = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        try:
            listener.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            if hasattr(socket, "SO_REUSEPORT"):
                listener.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEPORT, 1)
            listener.bind((self.host, self.port))
            listener.listen(3)
        except OSError:
            listener.close()
            raise
        listener.settimeout(_ACCEPT_POLL)
        self._listener = listener
        host, port = listener.getsockname()[:2]
        self.port = port
        print(f"Servidor aguardando conexões na porta {port}...")
        return host, port

    def serve_forever(self) -> None:
        """Accept players until the game ends or the server is closed."""
        if self._listener is None:
            self.bind()
        listener = self._listener
        while not self._finished.is_set() and not self._closed.is_set():
            try:
                conn, address = listener.accept()
            except TimeoutError:
                continue
            except OSError as exc:
                if self._closed.is_set() or listener.fileno() == -1:
                    break
                print(f"accept: {exc}")
                continue
            conn.settimeout(None)
            print(f"Conexão aceita de {address[0]}:{address[1]}")
            threading.Thread(target=self.handle_player, args=(conn,), daemon=True).start()
        print("Fim de jogo. Encerrando servidor.")
        self.close()

    def close(self) -> None:
        """Stop accepting connections and release the listening socket."""
        self._closed.set()
        if self._listener is not None:
            self._listener.close()

    def handle_player(self, conn: socket.socket) -> None:
        """Run one player's session from joining to the end of the game."""
        try:
            index = self._claim_slot(conn)
            if index is None:
                _send(conn, "ERRO: Servidor cheio")
                return
            self._receive_join(conn, index)
            _send(conn, "INICIO_POSICIONAMENTO")
            if not self._place_ships(conn, index):
                return
            _send(conn, "AGUARDANDO_READY")
            if not self._await_ready(conn):
                return
            self._mark_ready(index)
            self._play(conn, index)
        finally:
            conn.close()

    def _claim_slot(self, conn: socket.socket) -> int | None:
        with self._lock:
            for index, slot in enumerate(self._players):
                if slot is None:
                    self._players[index] = _Player(conn)
                    return index
        return None

    def _receive_join(self, conn: socket.socket, index: int) -> None:
        message = _recv(conn)
        if message is None or not message.startswith(CMD_JOIN):
            return
        words = message[len(CMD_JOIN) + 1:].split()
        with self._lock:
            player = self._players[index]
            player.name = words[0][:_NAME_LIMIT] if words else ""
            self._connected += 1
            print(f"Jogador conectado: {player.name} (Índice: {index})")
            if index == 0:
                _send(conn, "AGUARDE JOGADOR")
                return
            first = self._players[0]
            _send(conn, "JOGO INICIADO")
            _send(first.conn, "JOGO INICIADO")
            _send(first.conn, f"{CMD_VOCE_E_JOGADOR} 1")
            _send(conn, f"{CMD_VOCE_E_JOGADOR} 2")
            self.state = GameState.PLACING_SHIPS

    def _place_ships(self, conn: socket.socket, index: int) -> bool:
        player = self._players[index]
        board = Board()
        fleet = Fleet()
        player.board = board
        while not fleet.is_complete():
            message = _recv(conn)
            if message is None:
                print("recv failed or client disconnected")
                return False
            try:
                command = parse_place_command(message)
                fleet.place(board, command.kind, command.x, command.y, command.direction)
            except (ProtocolError, PlacementError) as exc:
                _send(conn, f"ERRO: {exc}\n")
                continue
            _send(conn, f"OK: {command.kind.value} posicionado em {command.x},{command.y}\n")
        player.ships_left = FLEET_SIZE
        _send(conn, "OK: Todos os navios posicionados!\n")
        print("\n" + board.render(f"Campo do jogador {index} - {player.name}:"))
        return True

    def _await_ready(self, conn: socket.socket) -> bool:
        message = _recv(conn)
        if message is None:
            return False
        if message == CMD_READY:
            _send(conn, "AGUARDANDO ADVERSÁRIO")
        return True

    def _mark_ready(self, index: int) -> None:
        with self._lock:
            self._ready.add(index)
            if len(self._ready) < MAX_PLAYERS:
                self.state = GameState.WAITING_READY
                return
            self.state = GameState.IN_GAME
            self._turn = 0
            for position, player in enumerate(self._players):
                _send(player.conn, CMD_PLAY if position == self._turn else "AGUARDE")

    def _play(self, conn: socket.socket, index: int) -> None:
        while True:
            message = _recv(conn)
            if message is None or self._finished.is_set():
                break
            if not message.startswith(CMD_FIRE):
                continue
            try:
                x, y = parse_fire_command(message)
            except ProtocolError:
                continue
            with self._lock:
                if self.state is GameState.IN_GAME and self._turn == index:
                    self._fire(index, x, y)

    def _fire(self, index: int, x: int, y: int) -> None:
        target_index = (index + 1) % MAX_PLAYERS
        attacker = self._players[index]
        target = self._players[target_index]
        try:
            result = target.board.receive_attack(x, y)
        except IndexError:
            _send(attacker.conn, "ERRO: Coordenadas inválidas")
        else:
            if result.outcome is AttackOutcome.SUNK:
                target.ships_left -= 1
            _send(attacker.conn, result.reply)
            if result.notice is not None:
                _send(target.conn, result.notice)

        if target.ships_left == 0:
            self.state = GameState.GAME_OVER
            self._finished.set()
            _send(attacker.conn, CMD_WIN)
            _send(target.conn, CMD_LOSE)
            self._broadcast(CMD_FIM)
        else:
            self._turn = target_index
            _send(target.conn, CMD_PLAY)
            _send(attacker.conn, "AGUARDE")

    def _broadcast(self, message: str) -> None:
        for player in self._players:
            if player is not None:
                _send(player.conn, message)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="navalbattle-server", description="Run a two-player naval battle server."
    )
    parser.add_argument("--host", default="0.0.0.0", help="address to listen on")
    parser.add_argument("--port", type=int, default=PORT, help="port to listen on")
    args = parser.parse_args(argv)

    server = GameServer(args.host, args.port)
    try:
        server.bind()
    except OSError as exc:
        print(f"bind failed: {exc}")
        print(f"Erro ao vincular ao endereço {args.host}:{args.port}")
        return 1
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        pass
    finally:
        server.close()
    return 0