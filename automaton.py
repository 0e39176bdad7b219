import re
from collections import defaultdict
from dataclasses import dataclass, field
from functools import cached_property
from typing_extensions import *

from graphviz import Digraph


class InvalidAutomatonError(ValueError):
    """Raised when an automaton violates one of its structural invariants."""

    def __init__(self, invariant: str, element: Any, message: str):
        super().__init__(f"{message}: {element}")
        self.invariant = invariant
        self.element = element


class FormatError(ValueError):
    """Raised on malformed textual automaton or grammar descriptions."""

    def __init__(self, message: str, line: Optional[str] = None, segment: Optional[str] = None):
        detail = segment if segment is not None else line
        super().__init__(f"{message}: {detail!r}" if detail is not None else message)
        self.line = line
        self.segment = segment


class PreconditionError(AssertionError):
    pass


# -------------------------------------------------------------------------
# Value types
# -------------------------------------------------------------------------


@dataclass(frozen=True, order=True)
class Symbol:
    identifier: str = ""

    def __post_init__(self):
        object.__setattr__(self, "identifier", self.identifier.strip())

    @classmethod
    def of(cls, identifier: str) -> "Symbol":
        return cls(identifier)

    def is_empty(self) -> bool:
        return self.identifier == ""

    def __str__(self):
        return self.identifier


EPSILON = Symbol.of("")


@dataclass(frozen=True, order=True)
class State:
    name: str

    def __post_init__(self):
        object.__setattr__(self, "name", self.name.strip())

    @classmethod
    def of(cls, name: str) -> "State":
        return cls(name)

    @classmethod
    def merge(cls, states: Iterable["State"]) -> "State":
        """
        Derive the composite state for a set of states.

        A single state is returned unchanged; anything larger is named after
        its sorted members, e.g. ``{q1, q2}``, so set-equal inputs always
        produce the same state.
        """
        members = sorted(set(states))
        if not members:
            raise PreconditionError("Cannot merge an empty set of states")
        if len(members) == 1:
            return members[0]
        return cls("{" + ", ".join(s.name for s in members) + "}")

    def __str__(self):
        return self.name


@dataclass(frozen=True, order=True)
class Transition:
    source: State
    symbol: Symbol
    destination: State

    def is_epsilon(self) -> bool:
        return self.symbol.is_empty()

    def __str__(self):
        return f"{self.source} ({self.symbol}) -> {self.destination}"


StateInput = Union[State, Iterable[State]]


def _as_state_set(states: StateInput) -> FrozenSet[State]:
    if isinstance(states, State):
        return frozenset({states})
    return frozenset(states)


# -------------------------------------------------------------------------
# Automaton
# -------------------------------------------------------------------------


@dataclass(frozen=True)
class Automaton:
    """
    Finite state machine over a finite alphabet.

    The alphabet may contain the empty symbol, in which case transitions on it
    are epsilon moves. Instances are immutable; every transformation returns a
    fresh automaton.
    """

    alphabet: FrozenSet[Symbol] = field(default_factory=frozenset)
    states: FrozenSet[State] = field(default_factory=frozenset)
    accepting_states: FrozenSet[State] = field(default_factory=frozenset)
    start_state: Optional[State] = None
    transitions: FrozenSet[Transition] = field(default_factory=frozenset)

    def __post_init__(self):
        for name in ("alphabet", "states", "accepting_states", "transitions"):
            object.__setattr__(self, name, frozenset(getattr(self, name)))
        self._validate()

    def _validate(self):
        if self.start_state not in self.states:
            raise InvalidAutomatonError(
                "start_state",
                self.start_state,
                "Start state is not an element of the set of states",
            )

        for state in sorted(self.accepting_states):
            if state not in self.states:
                raise InvalidAutomatonError(
                    "accepting_states",
                    state,
                    "Accepting state is not an element of the set of states",
                )

        if not self.accepting_states:
            raise InvalidAutomatonError(
                "accepting_nonempty",
                self.accepting_states,
                "No accepting states, there must be at least one",
            )

        for t in sorted(self.transitions):
            if t.source not in self.states:
                raise InvalidAutomatonError(
                    "transition_source",
                    t,
                    "Source state of transition is not an element of the set of states",
                )
            if t.destination not in self.states:
                raise InvalidAutomatonError(
                    "transition_destination",
                    t,
                    "Destination state of transition is not an element of the set of states",
                )

        for t in sorted(self.transitions):
            if t.symbol not in self.alphabet:
                raise InvalidAutomatonError(
                    "transition_symbol",
                    t,
                    "Symbol of transition is not in the alphabet",
                )

    @classmethod
    def from_transitions(
        cls,
        start_state: State,
        transitions: Iterable[Transition],
        accepting_states: Iterable[State],
    ) -> "Automaton":
        """Build an automaton whose states and alphabet are inferred from its transitions."""
        transitions = frozenset(transitions)
        accepting_states = frozenset(accepting_states)

        states = {start_state} | set(accepting_states)
        alphabet = set()
        for t in transitions:
            states.add(t.source)
            states.add(t.destination)
            alphabet.add(t.symbol)

        return cls(
            alphabet=alphabet,
            states=states,
            accepting_states=accepting_states,
            start_state=start_state,
            transitions=transitions,
        )

    @property
    def state_count(self) -> int:
        return len(self.states)

    # -------------------------------------------------------------------------
    # Transition helpers
    # -------------------------------------------------------------------------

    @cached_property
    def _transition_dict(self) -> Dict[Tuple[State, Symbol], FrozenSet[State]]:
        result = defaultdict(set)
        for t in self.transitions:
            result[(t.source, t.symbol)].add(t.destination)
        return {k: frozenset(v) for k, v in result.items()}

    def transitions_from(self, state: State) -> FrozenSet[Transition]:
        return frozenset(t for t in self.transitions if t.source == state)

    def next_states(self, states: StateInput, symbol: Symbol) -> FrozenSet[State]:
        """Destinations reachable from ``states`` by one transition on exactly ``symbol``."""
        trans_dict = self._transition_dict
        result = set()
        for state in _as_state_set(states):
            result.update(trans_dict.get((state, symbol), frozenset()))
        return frozenset(result)

    def epsilon_closure(self, states: StateInput) -> FrozenSet[State]:
        """
        The given states plus everything reachable from them through any number
        of epsilon moves.
        """
        closure = set(_as_state_set(states))
        stack = list(closure)
        while stack:
            s = stack.pop()
            for next_state in self._transition_dict.get((s, EPSILON), frozenset()):
                if next_state not in closure:
                    closure.add(next_state)
                    stack.append(next_state)
        return frozenset(closure)

    # -------------------------------------------------------------------------
    # Determinism
    # -------------------------------------------------------------------------

    def is_deterministic(self) -> bool:
        for state in self.states:
            for symbol in self.alphabet:
                targets = self.next_states(state, symbol)
                if symbol.is_empty() and targets:
                    return False
                if len(self.epsilon_closure(targets)) > 1:
                    return False
        return True

    def to_deterministic(self) -> "Automaton":
        """Convert to an equivalent deterministic automaton using subset construction."""
        start_closure = self.epsilon_closure(self.start_state)
        new_start = State.merge(start_closure)
        symbols = sorted(s for s in self.alphabet if not s.is_empty())

        new_relation = set()
        new_accepting = set()
        discovered: Set[FrozenSet[State]] = {start_closure}
        queue = [start_closure]

        while queue:
            S = queue.pop(0)
            combined = State.merge(S)

            if S & self.accepting_states:
                new_accepting.add(combined)

            for a in symbols:
                target = self.epsilon_closure(self.next_states(S, a))
                if not target:
                    continue

                new_relation.add(Transition(combined, a, State.merge(target)))

                if target not in discovered:
                    discovered.add(target)
                    queue.append(target)

        return Automaton.from_transitions(new_start, new_relation, new_accepting)

    def accepts(self, word: Union[str, Sequence[Union[str, Symbol]]]) -> bool:
        """
        Check whether the automaton accepts ``word``.

        A plain string is read character by character; a list or tuple is read
        element by element, so multi-character symbols can be used. Symbols
        are stripped of surrounding whitespace, so a blank item would read as
        the empty word and is rejected.
        """
        current = self.epsilon_closure(self.start_state)
        for item in word:
            symbol = item if isinstance(item, Symbol) else Symbol.of(item)
            if symbol.is_empty():
                raise ValueError(f"Word contains a blank symbol: {item!r}")
            current = self.epsilon_closure(self.next_states(current, symbol))
            if not current:
                return False
        return bool(current & self.accepting_states)

    # -------------------------------------------------------------------------
    # Textual notation
    # -------------------------------------------------------------------------

    @staticmethod
    def load_from_file(file_path: str) -> List["Automaton"]:
        with open(file_path, "r", encoding="utf-8") as f:
            content = f.read()

        automata = []
        for block in re.split(r"^\s*---\s*$", content, flags=re.MULTILINE):
            if not block.strip():
                continue
            automata.append(Automaton.from_string(block))

        return automata

    @staticmethod
    def from_string(text: str) -> "Automaton":
        """
        Parse an automaton, one state per line::

            -> q0 : "a" -> q1, "" -> q2
               q1 : "b" -> q2
             * q2
        """
        start_state = None
        states = set()
        accepting_states = set()
        transitions = set()

        for line in text.split("\n"):
            stripped = line.strip()

            if not stripped or stripped.startswith("#"):
                continue

            header, _, body = _partition_outside(stripped, ":")
            modifier, name = _parse_state_header(header.strip(), line)
            state = State.of(name)
            states.add(state)

            if modifier in ("->", "->*", "*->"):
                if start_state is not None:
                    raise FormatError("Multiple start states", line=line)
                start_state = state
            if modifier in ("*", "->*", "*->"):
                accepting_states.add(state)

            if not body.strip():
                continue

            for segment in _split_outside(body, ","):
                symbol, destination = _parse_transition(segment.strip(), line)
                states.add(destination)
                transitions.add(Transition(state, symbol, destination))

        if start_state is None:
            raise FormatError("No start state, mark exactly one state with '->'")

        return Automaton(
            alphabet={t.symbol for t in transitions},
            states=states,
            accepting_states=accepting_states,
            start_state=start_state,
            transitions=transitions,
        )

    def to_string(self) -> str:
        lines = []
        for state in sorted(self.states):
            if state == self.start_state:
                prefix = "->* " if state in self.accepting_states else "-> "
            elif state in self.accepting_states:
                prefix = " * "
            else:
                prefix = "   "

            line = f"{prefix}{state}"
            outgoing = sorted(self.transitions_from(state))
            if outgoing:
                line += " : " + ", ".join(
                    f'"{t.symbol}" -> {t.destination}' for t in outgoing
                )
            lines.append(line)

        return "\n".join(lines) + "\n"

    def __str__(self):
        return self.to_string()

    # -------------------------------------------------------------------------
    # Visualization
    # -------------------------------------------------------------------------

    def _get_state_id(self, state, state_to_id: dict) -> str:
        """Get or create a clean ID for a state."""
        if state not in state_to_id:
            state_to_id[state] = f"q{len(state_to_id)}"
        return state_to_id[state]

    def to_graphviz(self, filename: Optional[str] = None, view: bool = False) -> Digraph:
        """
        Build a Graphviz visualization for this automaton.

        The graph is only rendered to ``<filename>.png`` when a filename is given,
        which needs the Graphviz executables on the PATH.
        """
        label = "DFA" if self.is_deterministic() else "NFA"

        dot = Digraph(
            name=label,
            format="png",
            graph_attr={
                "rankdir": "LR",
                "splines": "true",
                "nodesep": "0.8",
                "ranksep": "1.2",
                "label": label,
                "labelloc": "t",
                "fontsize": "14",
                "fontname": "Arial",
                "bgcolor": "white",
                "pad": "0.5",
                "dpi": "300",
            },
            node_attr={
                "shape": "circle",
                "fontsize": "14",
                "fontname": "Arial",
                "style": "filled",
                "fillcolor": "lightblue",
                "color": "black",
                "penwidth": "2",
            },
            edge_attr={
                "fontsize": "12",
                "fontname": "Arial",
                "arrowsize": "0.8",
                "penwidth": "1.5",
                "color": "black",
            },
        )

        state_to_id: Dict[State, str] = {}

        dot.node("__start__", shape="point", width="0.01", style="invis")

        for state in sorted(self.states):
            node_id = self._get_state_id(state, state_to_id)
            if state in self.accepting_states:
                dot.node(
                    node_id,
                    label=state.name,
                    shape="doublecircle",
                    fillcolor="lightgreen",
                )
            else:
                dot.node(node_id, label=state.name)

        start_id = self._get_state_id(self.start_state, state_to_id)
        dot.edge("__start__", start_id, penwidth="2")

        edges = defaultdict(list)
        for t in sorted(self.transitions):
            edges[(t.source, t.destination)].append("ε" if t.is_epsilon() else t.symbol.identifier)

        for (src, tgt), symbols in edges.items():
            src_id = self._get_state_id(src, state_to_id)
            tgt_id = self._get_state_id(tgt, state_to_id)
            if src == tgt:
                dot.edge(src_id, tgt_id, label=", ".join(symbols), headport="n", tailport="n")
            else:
                dot.edge(src_id, tgt_id, label=", ".join(symbols))

        if filename is not None:
            dot.render(filename, view=view, cleanup=True)
        return dot


# -------------------------------------------------------------------------
# Parsing helpers
# -------------------------------------------------------------------------

_TRANSITION_PATTERN = re.compile(r'^"([^"]*)"$')


def _split_outside(text: str, separator: str) -> List[str]:
    """Split on ``separator`` wherever it is not inside quotes or braces."""
    parts = []
    current = []
    depth = 0
    quoted = False

    for ch in text:
        if ch == '"':
            quoted = not quoted
        elif not quoted and ch == "{":
            depth += 1
        elif not quoted and ch == "}":
            depth -= 1
            if depth < 0:
                raise FormatError("Unbalanced '}'", segment=text)
        elif ch == separator and not quoted and depth == 0:
            parts.append("".join(current))
            current = []
            continue
        current.append(ch)

    if quoted:
        raise FormatError("Unterminated quoted symbol", segment=text)
    if depth != 0:
        raise FormatError("Unbalanced '{'", segment=text)

    parts.append("".join(current))
    return parts


def _partition_outside(text: str, separator: str) -> Tuple[str, str, str]:
    parts = _split_outside(text, separator)
    if len(parts) == 1:
        return parts[0], "", ""
    return parts[0], separator, separator.join(parts[1:])


def _parse_state_header(header: str, line: str) -> Tuple[Optional[str], str]:
    modifier = None
    for candidate in ("->*", "*->", "->", "*"):
        if header.startswith(candidate):
            modifier = candidate
            header = header[len(candidate):].strip()
            break

    if not header:
        raise FormatError("Missing state name", line=line)

    if header.startswith("{"):
        if not header.endswith("}"):
            raise FormatError("Invalid state definition", line=line, segment=header)
    elif len(header.split()) != 1:
        raise FormatError("Invalid state modifier or name", line=line, segment=header)

    return modifier, header


def _parse_transition(segment: str, line: str) -> Tuple[Symbol, State]:
    if not segment:
        raise FormatError("Empty transition", line=line)

    left, sep, right = _partition_outside(segment, "-")
    if not sep or not right.startswith(">"):
        raise FormatError("Invalid transition format, missing '->'", line=line, segment=segment)

    match = _TRANSITION_PATTERN.match(left.strip())
    if match is None:
        raise FormatError("Invalid transition format, symbol must be quoted", line=line, segment=segment)

    destination = right[1:].strip()
    if not destination:
        raise FormatError("Invalid transition format, missing destination", line=line, segment=segment)
    if not destination.startswith("{") and len(destination.split()) != 1:
        raise FormatError("Invalid transition format", line=line, segment=segment)

    return Symbol.of(match.group(1)), State.of(destination)
