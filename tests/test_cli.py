import builtins

import pytest

import cli

MACHINES = """
N1:
-> q0 : "" -> q1, "b" -> q2
   q1 : "a" -> q2, "c" -> q1
   q2 : "d" -> q2, "d" -> q3
 * q3 : "c" -> q0

G1:
S -> A,B
A -> a,S | ε
B -> b,B | ε
"""


def run_commands(monkeypatch, commands):
    remaining = list(commands)

    def fake_input(prompt=""):
        if not remaining:
            raise EOFError
        return remaining.pop(0)

    monkeypatch.setattr(builtins, "input", fake_input)
    cli.main()


@pytest.fixture
def machines_file(tmp_path):
    path = tmp_path / "machines.txt"
    path.write_text(MACHINES, encoding="utf-8")
    return str(path)


def test_automaton_commands(monkeypatch, capsys, machines_file):
    run_commands(
        monkeypatch,
        [
            f"load {machines_file}",
            "det N1",
            "to_dfa N1 D1",
            "det D1",
            "accepts D1 bd",
            "accepts D1 b",
            "print D1",
            "show D1",
            "list",
            "exit",
        ],
    )
    out = capsys.readouterr().out

    assert "Loaded 1 automata: N1 and 1 grammars: G1" in out
    assert "NON-DETERMINISTIC" in out
    assert "Created: D1" in out
    assert "\nDETERMINISTIC\n" in out
    assert "ACCEPTED" in out
    assert "REJECTED" in out
    assert '-> {q0, q1} : "a" -> q2, "b" -> q2, "c" -> q1' in out
    assert "States: 4" in out
    assert "D1: DFA, 4 states" in out
    assert out.rstrip().endswith("Goodbye!")


def test_grammar_commands(monkeypatch, capsys, machines_file):
    run_commands(
        monkeypatch,
        [
            f"load {machines_file}",
            "recursive G1 S",
            "nullable G1",
            "productive G1",
            "show_grammar G1_prod",
        ],
    )
    out = capsys.readouterr().out

    assert "RECURSIVE" in out
    assert "{A, B, S}" in out
    assert "Created: G1_prod" in out
    assert "START: _T" in out
    assert "_T -> S" in out


def test_errors_do_not_stop_the_terminal(monkeypatch, capsys, tmp_path):
    run_commands(
        monkeypatch,
        [
            f"load {tmp_path / 'missing.txt'}",
            "det nothing",
            "frobnicate",
            "delete nothing",
            "clear",
            "list",
        ],
    )
    out = capsys.readouterr().out

    assert "Error:" in out
    assert "Automaton not found: nothing" in out
    assert "Unknown command: frobnicate" in out
    assert "Not found: nothing" in out
    assert "Nothing loaded" in out
    assert "Goodbye!" in out
