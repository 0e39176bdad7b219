from dataclasses import dataclass, field
from typing_extensions import *

from automaton import FormatError, Symbol


class InvalidGrammarError(ValueError):
    pass


@dataclass(frozen=True, order=True)
class ProductionRule:
    lhs: Symbol
    rhs: Tuple[Symbol, ...] = field(default_factory=tuple)

    def __post_init__(self):
        object.__setattr__(self, "rhs", tuple(self.rhs))

    @classmethod
    def of(cls, lhs: Symbol, *rhs: Symbol) -> "ProductionRule":
        return cls(lhs, rhs)

    def is_empty(self) -> bool:
        return not self.rhs

    def produced_symbols_string(self) -> str:
        if not self.rhs:
            return Grammar.EPSILON
        return ",".join(s.identifier for s in self.rhs)

    def __str__(self):
        return f"{self.lhs} -> {self.produced_symbols_string()}"

    @staticmethod
    def parse(expression: str) -> Set["ProductionRule"]:
        """
        Parse ``A -> a,S | ε`` into one rule per alternative.

        ``A -> ∅`` declares ``A`` without any rules and parses to an empty set.
        """
        lhs, sep, alternatives = expression.partition("->")
        lhs = lhs.strip()
        if not sep:
            raise FormatError("Invalid production, missing '->'", line=expression)
        if not lhs or len(lhs.split()) != 1:
            raise FormatError("Invalid production, bad left-hand side", line=expression)

        begin = Symbol.of(lhs)
        rules = set()
        if alternatives.strip() == Grammar.EMPTY:
            return rules
        for alternative in alternatives.split("|"):
            alternative = alternative.strip()
            if not alternative:
                raise FormatError("Invalid production, empty alternative", line=expression)
            if alternative in Grammar.EPSILON_VARIANTS:
                rules.add(ProductionRule.of(begin))
                continue
            names = [name.strip() for name in alternative.split(",")]
            if any(not name for name in names):
                raise FormatError("Invalid production, empty symbol", line=expression, segment=alternative)
            rules.add(ProductionRule(begin, tuple(Symbol.of(name) for name in names)))
        return rules


class Grammar:
    """Context-free grammar G = (N, Sigma, P, S)."""

    EPSILON = "ε"
    EPSILON_VARIANTS = {"ε", "epsilon", "EPSILON", "λ"}
    EMPTY = "∅"

    def __init__(
        self,
        N: Iterable[Symbol],
        Sigma: Iterable[Symbol],
        P: Iterable[ProductionRule],
        S: Symbol,
    ):
        self.N: FrozenSet[Symbol] = frozenset(N)  # Non-terminals
        self.Sigma: FrozenSet[Symbol] = frozenset(Sigma)  # Terminals
        self.P: FrozenSet[ProductionRule] = frozenset(P)  # Productions
        self.S: Symbol = S  # Start symbol
        self._validate()

    def _validate(self):
        if self.S not in self.N:
            raise InvalidGrammarError(
                f"Start symbol {self.S} must be an element of the set of non-terminals"
            )

        overlaps = self.N & self.Sigma
        if overlaps:
            raise InvalidGrammarError(
                f"Terminal and non-terminal symbols are overlapping: "
                f"{{{', '.join(sorted(s.identifier for s in overlaps))}}}"
            )

        for rule in sorted(self.P):
            if rule.lhs not in self.N:
                raise InvalidGrammarError(
                    f"Production rule {rule} must begin with a non-terminal"
                )
            for symbol in rule.rhs:
                if symbol not in self.N and symbol not in self.Sigma:
                    raise InvalidGrammarError(
                        f"Production rule {rule} produces unknown symbol '{symbol}'"
                    )

    # ------------------------------------------------------------------ #
    # Introspection / pretty-printing
    # ------------------------------------------------------------------ #

    def is_terminal(self, symbol: Symbol) -> bool:
        return symbol in self.Sigma

    def is_non_terminal(self, symbol: Symbol) -> bool:
        return symbol in self.N

    def rules_for(self, symbol: Symbol) -> Set[ProductionRule]:
        return {rule for rule in self.P if rule.lhs == symbol}

    def __eq__(self, other):
        if not isinstance(other, Grammar):
            return NotImplemented
        return (
            self.N == other.N
            and self.Sigma == other.Sigma
            and self.P == other.P
            and self.S == other.S
        )

    def __hash__(self):
        return hash((self.N, self.Sigma, self.P, self.S))

    def __str__(self):
        """
        Print the grammar in the notation ``from_string`` reads back, header
        lines first. A start symbol without rules is printed as ``S -> ∅``.
        """
        prod_dict: Dict[Symbol, List[str]] = {}
        for rule in sorted(self.P):
            prod_dict.setdefault(rule.lhs, []).append(rule.produced_symbols_string())

        # Start symbol first, the rest alphabetically
        order = [self.S] + sorted(lhs for lhs in prod_dict if lhs != self.S)

        result = f"START: {self.S}\n"
        result += f"NON_TERMINALS: {_symbol_list(self.N)}\n"
        result += f"TERMINALS: {_symbol_list(self.Sigma)}".rstrip() + "\n"
        for lhs in order:
            alternatives = prod_dict.get(lhs)
            result += f"{lhs} -> {' | '.join(alternatives) if alternatives else self.EMPTY}\n"
        return result

    # ------------------------------------------------------------------ #
    # Analysis
    # ------------------------------------------------------------------ #

    def is_symbol_recursive(self, symbol: Symbol) -> bool:
        """
        A non-terminal is recursive when, by following the non-terminals its
        rules produce, it is eventually produced again.
        """
        if symbol not in self.N:
            return False

        reachable: Set[Symbol] = set()
        queue = [symbol]

        while queue:
            current = queue.pop(0)
            for rule in self.rules_for(current):
                for produced in rule.rhs:
                    if produced == symbol:
                        return True
                    if produced in self.N and produced not in reachable:
                        reachable.add(produced)
                        queue.append(produced)

        return False

    def nullable_symbols(self) -> FrozenSet[Symbol]:
        nullable: Set[Symbol] = set()
        changed = True

        while changed:
            changed = False
            for rule in self.P:
                if rule.lhs in nullable:
                    continue
                if all(symbol in nullable for symbol in rule.rhs):
                    nullable.add(rule.lhs)
                    changed = True

        return frozenset(nullable)

    def productive_symbols(self) -> FrozenSet[Symbol]:
        """Non-terminals that derive at least one string of terminals."""
        productive: Set[Symbol] = set()
        changed = True

        while changed:
            changed = False
            for rule in self.P:
                if rule.lhs in productive:
                    continue
                if all(symbol in self.Sigma or symbol in productive for symbol in rule.rhs):
                    productive.add(rule.lhs)
                    changed = True

        return frozenset(productive)

    def to_productive_form(self) -> "Grammar":
        """
        Return an equivalent grammar without non-productive symbols.

        When the start symbol is recursive a fresh start symbol ``_T -> S`` is
        introduced first. The start symbol always survives, without rules if
        the language is empty.
        """
        N = set(self.N)
        P = set(self.P)
        S = self.S

        if self.is_symbol_recursive(self.S):
            S = Symbol.of("_T")
            while S in self.N or S in self.Sigma:
                S = Symbol.of(S.identifier + "'")
            N.add(S)
            P.add(ProductionRule.of(S, self.S))

        extended = Grammar(N, self.Sigma, P, S)
        productive = extended.productive_symbols()

        new_N = {nt for nt in N if nt in productive} | {S}
        new_P = {
            rule
            for rule in P
            if rule.lhs in productive
            and all(symbol in self.Sigma or symbol in productive for symbol in rule.rhs)
        }

        return Grammar(new_N, self.Sigma, new_P, S)

    # ------------------------------------------------------------------ #
    # Parsing from file / string
    # ------------------------------------------------------------------ #

    @classmethod
    def from_production_rules(
        cls, start: str, non_terminals: str, terminals: str, *rule_expressions: str
    ) -> "Grammar":
        rules: Set[ProductionRule] = set()
        for expression in rule_expressions:
            rules.update(ProductionRule.parse(expression))
        return cls(
            _symbol_set(non_terminals),
            _symbol_set(terminals),
            rules,
            Symbol.of(start),
        )

    @classmethod
    def from_file(cls, filename: str) -> "Grammar":
        with open(filename, "r", encoding="utf-8") as f:
            content = f.read()
        return cls.from_string(content)

    @classmethod
    def from_string(cls, content: str) -> "Grammar":
        """
        Parse a grammar from text::

            START: S
            NON_TERMINALS: S, A
            TERMINALS: a, b
            S -> A,b | ε
            A -> a,A | a

        The header lines are optional. Non-terminals default to the rule
        left-hand sides, terminals to every other produced symbol and the start
        symbol to the first rule's left-hand side. A line ``A -> ∅`` declares a
        non-terminal that has no rules.
        """
        start: Optional[str] = None
        non_terminals: Optional[Set[Symbol]] = None
        terminals: Optional[Set[Symbol]] = None
        rules: Set[ProductionRule] = set()
        declared: Set[Symbol] = set()
        first_lhs: Optional[Symbol] = None

        for line in content.split("\n"):
            if "#" in line:
                line = line[: line.index("#")]
            line = line.strip()

            if not line:
                continue

            if line.startswith("START:"):
                start = line[len("START:"):].strip()
            elif line.startswith(("NON_TERMINALS:", "NONTERMINALS:")):
                non_terminals = _symbol_set(line.split(":", 1)[1])
            elif line.startswith("TERMINALS:"):
                terminals = _symbol_set(line[len("TERMINALS:"):])
            else:
                line = line.replace("→", "->")
                rules.update(ProductionRule.parse(line))
                lhs = Symbol.of(line.partition("->")[0])
                declared.add(lhs)
                if first_lhs is None:
                    first_lhs = lhs

        if start is not None:
            start_symbol = Symbol.of(start)
        elif first_lhs is not None:
            start_symbol = first_lhs
        else:
            raise FormatError("No productions found or unable to determine start symbol")

        if non_terminals is None:
            non_terminals = declared | {start_symbol}
        if terminals is None:
            terminals = {
                symbol
                for rule in rules
                for symbol in rule.rhs
                if symbol not in non_terminals
            }

        return cls(non_terminals, terminals, rules, start_symbol)


def _symbol_set(names: str) -> Set[Symbol]:
    return {Symbol.of(name) for name in names.split(",") if name.strip()}


def _symbol_list(symbols: Iterable[Symbol]) -> str:
    return ", ".join(s.identifier for s in sorted(symbols))
