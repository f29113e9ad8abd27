import pytest

from navalbattle.board import Board
from navalbattle.client import (
    CLOSED_BY_SERVER,
    CONNECTION_FAILED,
    GameClient,
    main,
    render_boards,
)


class FakeSocket:
    def __init__(self, incoming):
        self.incoming = list(incoming)
        self.sent = []

    def recv(self, size):
        if not self.incoming:
            return b""
        item = self.incoming.pop(0)
        if isinstance(item, Exception):
            raise item
        return item.encode("utf-8")

    def sendall(self, data):
        self.sent.append(data)


def scripted(lines):
    it = iter(lines)

    def read(prompt):
        try:
            return next(it)
        except StopIteration:
            raise EOFError from None

    return read


def make_client(incoming=(), lines=()):
    sock = FakeSocket(incoming)
    out = []
    client = GameClient(sock, scripted(lines), out.append)
    return client, sock, out


def test_render_boards_fresh():
    text = render_boards(Board(), Board())
    assert "SEU CAMPO:" in text
    assert "CAMPO ADVERSÁRIO:" in text
    assert text.count("  0 1 2 3 4 5 6 7") == 2
    assert text.count("0 ~ ~ ~ ~ ~ ~ ~ ~ ") == 2


def test_read_command_skips_empty_and_invalid():
    client, _, out = make_client(lines=["", "hello", "JOIN ana"])
    assert client.read_command("JOIN") == "JOIN ana"
    assert out == ["Comando inválido. Deve começar com 'JOIN'. Tente novamente."]


def test_read_command_propagates_eof():
    client, _, _ = make_client(lines=[])
    with pytest.raises(EOFError):
        client.read_command("READY")


def test_receive_closed_connection():
    client, _, _ = make_client(incoming=[])
    assert client.receive() == CLOSED_BY_SERVER
    assert client.connected is False


def test_receive_error():
    client, _, _ = make_client(incoming=[OSError("boom")])
    assert client.receive() == CONNECTION_FAILED
    assert client.connected is False


def test_join_waits_for_seat():
    client, sock, out = make_client(
        incoming=["AGUARDE JOGADOR", "JOGO INICIADO", "VOCE_E_JOGADOR 1", "extra"],
        lines=["JOIN ana"],
    )
    client.join()
    assert sock.sent == [b"JOIN ana"]
    assert sock.incoming == ["extra"]
    assert out[-1] == "Servidor: VOCE_E_JOGADOR 1"


def test_join_connection_lost():
    client, _, _ = make_client(incoming=["AGUARDE JOGADOR"], lines=["JOIN ana"])
    with pytest.raises(ConnectionError):
        client.join()


def test_place_ships_validates_locally():
    lines = [
        "POS BARCO 1 1 H",
        "POS FRAGATA 7 7 H",
        "POS FRAGATA 0 0 H",
        "POS SUBMARINO 0 1 H",
        "POS FRAGATA 2 0 V",
        "POS FRAGATA 5 5 H",
        "POS SUBMARINO 7 7 H",
        "POS DESTROYER 0 5 h",
    ]
    incoming = ["OK: a\n", "OK: b\n", "OK: c\n", "OK: d\n"]
    client, sock, out = make_client(incoming=incoming, lines=lines)
    client.place_ships()
    assert sock.sent == [
        b"POS FRAGATA 0 0 H",
        b"POS FRAGATA 2 0 V",
        b"POS SUBMARINO 7 7 H",
        b"POS DESTROYER 0 5 h",
    ]
    assert client.fleet.is_complete()
    assert client.own_board.cell(0, 1) == "1"
    assert client.own_board.cell(3, 0) == "2"
    assert client.own_board.cell(7, 7) == "3"
    assert client.own_board.cell(0, 7) == "4"
    assert "ERRO: Posição inválida! Fora dos limites do campo." in out
    assert "ERRO: Posição sobreposta ou inválida!" in out
    assert "ERRO: Você já posicionou 2 fragatas." in out


def test_place_ships_respects_server_rejection():
    lines = [
        "POS SUBMARINO 0 0 H",
        "POS SUBMARINO 1 1 H",
        "POS FRAGATA 2 2 H",
        "POS FRAGATA 3 3 H",
        "POS DESTROYER 4 4 H",
    ]
    incoming = ["ERRO: no", "OK: a", "OK: b", "OK: c", "OK: d"]
    client, sock, _ = make_client(incoming=incoming, lines=lines)
    client.place_ships()
    assert len(sock.sent) == 5
    assert client.own_board.cell(0, 0) == "~"
    assert client.own_board.cell(1, 1) == "1"


def test_place_ships_connection_lost():
    client, _, _ = make_client(incoming=[], lines=["POS SUBMARINO 0 0 H"])
    with pytest.raises(ConnectionError):
        client.place_ships()
    assert client.own_board.cell(0, 0) == "~"


def test_ready_sends_and_reports():
    client, sock, out = make_client(incoming=["AGUARDANDO ADVERSÁRIO"], lines=["READY"])
    client.ready()
    assert sock.sent == [b"READY"]
    assert out[-1] == "AGUARDANDO ADVERSÁRIO"


def test_play_until_win():
    incoming = ["PLAY", "HIT", "AGUARDE", "ATACANTE 2 3 MISS", "PLAY", "SUNK 1", "WIN"]
    lines = ["FIRE 1 1", "FIRE 9 9", "FIRE 1 2"]
    client, sock, out = make_client(incoming=incoming, lines=lines)
    client.play()
    assert sock.sent == [b"FIRE 1 1", b"FIRE 1 2"]
    assert client.enemy_board.cell(1, 1) == "X"
    assert client.enemy_board.cell(1, 2) == "X"
    assert client.own_board.cell(2, 3) == "M"
    assert "Aguarde seu turno..." in out
    assert "ERRO: Coordenadas fora do tabuleiro (0 a 7)" in out
    assert out[-1] == "\nPARABÉNS! VOCÊ VENCEU!"
    assert sock.incoming == []


def test_play_marks_miss_and_enemy_hit():
    incoming = ["PLAY", "MISS", "ATACANTE 4 4 HIT", "LOSE"]
    client, sock, out = make_client(incoming=incoming, lines=["FIRE 6 0"])
    client.own_board.place("1", 4, 4, "H", 2)
    client.play()
    assert client.enemy_board.cell(6, 0) == "M"
    assert client.own_board.cell(4, 4) == "X"
    assert "Adversário atacou: ATACANTE 4 4 HIT" in out
    assert out[-1] == "\nVOCÊ PERDEU! TENTE NOVAMENTE."


def test_play_reports_errors_and_ends_on_fim():
    incoming = ["ERRO: Posição já atacada", "AGUARDANDO_READY", "other", "FIM", "more"]
    client, sock, out = make_client(incoming=incoming)
    client.play()
    assert "ERRO: ERRO: Posição já atacada" in out
    assert "Aguardando outro jogador ficar pronto..." in out
    assert "Servidor: other" in out
    assert out[-1] == "\nFim de jogo!"
    assert sock.incoming == ["more"]


def test_play_stops_when_connection_closes():
    client, _, out = make_client(incoming=["AGUARDE"])
    client.play()
    assert out[-1] == f"Servidor: {CLOSED_BY_SERVER}"
    assert client.connected is False


def test_run_whole_game():
    incoming = [
        "VOCE_E_JOGADOR 1",
        "OK: a",
        "OK: b",
        "OK: c",
        "OK: d",
        "AGUARDANDO ADVERSÁRIO",
        "PLAY",
        "MISS",
        "WIN",
    ]
    lines = [
        "JOIN ana",
        "POS FRAGATA 0 0 H",
        "POS FRAGATA 1 0 H",
        "POS SUBMARINO 2 0 H",
        "POS DESTROYER 3 0 H",
        "READY",
        "FIRE 5 5",
    ]
    client, sock, out = make_client(incoming=incoming, lines=lines)
    client.run()
    assert sock.sent[0] == b"JOIN ana"
    assert sock.sent[-2:] == [b"READY", b"FIRE 5 5"]
    assert client.enemy_board.cell(5, 5) == "M"
    assert out[-1] == "\nPARABÉNS! VOCÊ VENCEU!"


def test_main_rejects_invalid_ip(capsys):
    assert main(["not-an-ip"]) == 1
    assert "Erro: Endereço IP inválido 'not-an-ip'" in capsys.readouterr().out