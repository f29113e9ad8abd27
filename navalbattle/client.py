"""Interactive battle client: joins a server, places ships and fires."""

from __future__ import annotations

import argparse
import ipaddress
import socket
from typing import Callable

from navalbattle.board import HIT_MARK, MISS_MARK, Board, Fleet
from navalbattle.protocol import (
    CMD_ATACANTE,
    CMD_FIRE,
    CMD_JOIN,
    CMD_PLAY,
    CMD_POS,
    CMD_READY,
    CMD_VOCE_E_JOGADOR,
    GRID_SIZE,
    MAX_MSG,
    PORT,
    ProtocolError,
    ShipKind,
    parse_attacker_notice,
    parse_fire_command,
    parse_place_command,
    validate_position,
)

CLOSED_BY_SERVER = "FIM: Conexão encerrada pelo servidor"
CONNECTION_FAILED = "ERRO: Falha na conexão com o servidor"

_QUOTA_MESSAGES = {
    ShipKind.FRAGATA: "ERRO: Você já posicionou 2 fragatas.",
    ShipKind.SUBMARINO: "ERRO: Você já posicionou 1 submarino.",
    ShipKind.DESTROYER: "ERRO: Você já posicionou 1 destroyer.",
}

_PLACEMENT_INTRO = (
    "\n=== FASE DE POSICIONAMENTO ===\n"
    "Posicione seus navios (você e seu oponente podem posicionar simultaneamente):\n"
    "Navios disponíveis: 2x FRAGATA (tam=2), 1x SUBMARINO (tam=1), 1x DESTROYER (tam=3)\n"
    "Use: POS TIPO X Y DIRECAO (H/V)\nEx: POS FRAGATA 3 4 H\n"
)


def render_boards(own: Board, enemy: Board) -> str:
    """Draw the player's board and the opponent's board, ships hidden."""
    return "\n".join(
        [
            "",
            own.render("SEU CAMPO:"),
            "",
            enemy.render("CAMPO ADVERSÁRIO:", hide_ships=True),
        ]
    )


class GameClient:
    """Drives one player's game over a connected socket."""

    def __init__(
        self,
        sock: socket.socket,
        input_fn: Callable[[str], str] = input,
        output_fn: Callable[[str], None] = print,
    ) -> None:
        self.sock = sock
        self._input = input_fn
        self._output = output_fn
        self.own_board = Board()
        self.enemy_board = Board()
        self.fleet = Fleet()
        self.connected = True
        self._last_shot: tuple[int, int] | None = None

    def read_command(self, prefix: str) -> str:
        """Prompt until the user types a non-empty line containing ``prefix``."""
        while True:
            command = self._input("> ").split("\n", 1)[0]
            if not command:
                continue
            if prefix in command:
                return command
            self._output(
                f"Comando inválido. Deve começar com '{prefix}'. Tente novamente."
            )

    def _send(self, command: str) -> None:
        try:
            self.sock.sendall(command.encode("utf-8"))
        except OSError as exc:
            self._output(f"Erro ao enviar comando: {exc}")

    def receive(self) -> str:
        """Read one message from the server; a closed link yields a notice."""
        try:
            data = self.sock.recv(MAX_MSG - 1)
        except OSError:
            self.connected = False
            return CONNECTION_FAILED
        if not data:
            self.connected = False
            return CLOSED_BY_SERVER
        return data.decode("utf-8", errors="replace")

    def _receive_or_fail(self) -> str:
        message = self.receive()
        if not self.connected:
            raise ConnectionError(message)
        return message

    def _show_boards(self) -> None:
        self._output(render_boards(self.own_board, self.enemy_board))

    def join(self) -> None:
        """Send the JOIN command and wait until the server assigns a seat."""
        self._send(self.read_command(CMD_JOIN))
        while True:
            message = self._receive_or_fail()
            self._output(f"Servidor: {message}")
            if CMD_VOCE_E_JOGADOR in message or "INICIO_POSICIONAMENTO" in message:
                return

    def _remaining_summary(self) -> str:
        return (
            "\nNavios restantes:\n"
            f"- Fragatas: {self.fleet.remaining(ShipKind.FRAGATA)}/2\n"
            f"- Submarinos: {self.fleet.remaining(ShipKind.SUBMARINO)}/1\n"
            f"- Destroyers: {self.fleet.remaining(ShipKind.DESTROYER)}/1"
        )

    def place_ships(self) -> None:
        """Ask for ship positions, check them locally, and confirm with the server."""
        self._output(_PLACEMENT_INTRO)
        while not self.fleet.is_complete():
            self._show_boards()
            self._output(self._remaining_summary())
            command = self.read_command(CMD_POS)
            try:
                placement = parse_place_command(command)
            except ProtocolError as exc:
                self._output(f"ERRO: {exc}")
                continue
            kind, x, y = placement.kind, placement.x, placement.y
            direction = placement.direction.value
            if self.fleet.remaining(kind) <= 0:
                self._output(_QUOTA_MESSAGES[kind])
                continue
            if not validate_position(x, y, direction, kind.size):
                self._output("ERRO: Posição inválida! Fora dos limites do campo.")
                continue
            if not self.own_board.can_place(x, y, direction, kind.size):
                self._output("ERRO: Posição sobreposta ou inválida!")
                continue

            self._send(command)
            response = self._receive_or_fail()
            self._output(response)
            if "OK:" in response:
                self.fleet.place(self.own_board, kind, x, y, direction)

    def ready(self) -> None:
        """Tell the server this player is ready to start firing."""
        self._output(
            "\nTodos os navios posicionados! Digite 'READY' quando estiver pronto"
        )
        self._send(self.read_command(CMD_READY))
        self._output(self.receive())

    def _take_turn(self) -> None:
        self._show_boards()
        self._output("\nSUA VEZ! Digite 'FIRE X Y' (ex: FIRE 3 4)")
        while True:
            command = self.read_command(CMD_FIRE)
            try:
                x, y = parse_fire_command(command)
            except ProtocolError:
                self._output("ERRO: Formato inválido. Use FIRE X Y")
                continue
            if not (0 <= x < GRID_SIZE and 0 <= y < GRID_SIZE):
                self._output(
                    f"ERRO: Coordenadas fora do tabuleiro (0 a {GRID_SIZE - 1})"
                )
                continue
            self._last_shot = (x, y)
            self._send(command)
            return

    def _record_enemy_attack(self, message: str) -> None:
        try:
            x, y, result = parse_attacker_notice(message)
            if result == "MISS":
                self.own_board.mark(x, y, MISS_MARK)
            elif result == "HIT" or result.startswith("SUNK"):
                self.own_board.mark(x, y, HIT_MARK)
        except (ProtocolError, IndexError):
            pass
        self._show_boards()
        self._output(f"Adversário atacou: {message}")

    def _mark_shot(self, symbol: str) -> None:
        if self._last_shot is not None:
            self.enemy_board.mark(*self._last_shot, symbol)

    def play(self) -> None:
        """Run the firing phase until the game ends or the link drops."""
        self._output("\n=== FASE DE ATAQUE ===")
        while True:
            message = self.receive()
            if not self.connected:
                self._output(f"Servidor: {message}")
                return
            if CMD_PLAY in message:
                self._take_turn()
            elif CMD_ATACANTE in message:
                self._record_enemy_attack(message)
            elif message == "MISS":
                self._output("Água! Nenhum navio atingido.")
                self._mark_shot(MISS_MARK)
            elif message == "HIT":
                self._output("Acerto! Você atingiu um navio.")
                self._mark_shot(HIT_MARK)
            elif message.startswith("SUNK"):
                self._output("Afundado! Você destruiu um navio.")
                self._mark_shot(HIT_MARK)
            elif message == "WIN":
                self._output("\nPARABÉNS! VOCÊ VENCEU!")
                return
            elif message == "LOSE":
                self._output("\nVOCÊ PERDEU! TENTE NOVAMENTE.")
                return
            elif message == "FIM":
                self._output("\nFim de jogo!")
                return
            elif "ERRO:" in message:
                self._output(f"ERRO: {message}")
            elif message == "AGUARDE":
                self._output("Aguarde seu turno...")
            elif message == "AGUARDANDO_READY":
                self._output("Aguardando outro jogador ficar pronto...")
            elif message == "INICIO_POSICIONAMENTO":
                pass
            else:
                self._output(f"Servidor: {message}")

    def run(self) -> None:
        """Play a whole game: join, place ships, get ready and fire."""
        self.join()
        self.place_ships()
        self.ready()
        self.play()


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="navalbattle-client", description="Play naval battle against a server."
    )
    parser.add_argument("server_ip", help="IPv4 address of the server")
    parser.add_argument("--port", type=int, default=PORT, help="server port")
    args = parser.parse_args(argv)

    print(f"Conectando ao servidor em {args.server_ip}:{args.port}...")
    try:
        ipaddress.IPv4Address(args.server_ip)
    except ValueError:
        print(f"Erro: Endereço IP inválido '{args.server_ip}'")
        print("Use um endereço IPv4 válido (ex: 192.168.1.100)")
        return 1

    try:
        sock = socket.create_connection((args.server_ip, args.port))
    except OSError as exc:
        print(f"Erro ao conectar ao servidor: {exc}")
        print("Verifique:")
        print("1. Se o servidor está rodando")
        print(f"2. Se o IP '{args.server_ip}' está correto")
        print(f"3. Se o firewall permite conexões na porta {args.port}")
        return 1

    with sock:
        print("Conectado com sucesso ao servidor!")
        print("Digite 'JOIN <seu_nome>' para entrar no jogo.")
        try:
            GameClient(sock).run()
        except ConnectionError as exc:
            print(exc)
        except (EOFError, KeyboardInterrupt):
            pass
    print("Conexão encerrada.")
    return 0