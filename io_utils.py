import logging
import os
import re
from typing_extensions import *

from automaton import Automaton
from grammar import Grammar

logger = logging.getLogger(__name__)

_GRAMMAR_HEADERS = ("START:", "NON_TERMINALS:", "NONTERMINALS:", "TERMINALS:")


def detect_automaton(content: str) -> bool:
    """
    Guess whether ``content`` describes an automaton rather than a grammar.

    Automaton lines carry quoted transition symbols or a start/accept marker
    in front of the state name; grammar rules never do.
    """
    lines = [
        line.strip()
        for line in content.strip().split("\n")
        if line.strip() and not line.strip().startswith("#")
    ]

    if any(line.startswith(_GRAMMAR_HEADERS) for line in lines):
        return False

    for line in lines:
        if '"' in line:
            return True
        if line.startswith("->") or line.startswith("*"):
            return True

    return False


def _load_definition(
    name: str,
    definition: str,
    automata: Dict[str, Automaton],
    grammars: Dict[str, Grammar],
):
    if detect_automaton(definition):
        try:
            automata[name] = Automaton.from_string(definition)
        except ValueError as e:
            logger.warning("Failed to load automaton '%s': %s", name, e)
    else:
        try:
            grammars[name] = Grammar.from_string(definition)
        except ValueError as e:
            logger.warning("Failed to load grammar '%s': %s", name, e)


def _starts_with_section(content: str, name_pattern: "re.Pattern[str]") -> bool:
    for line in content.split("\n"):
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue
        return name_pattern.match(line) is not None
    return False


def load_from_file(filename: str) -> Tuple[Dict[str, Automaton], Dict[str, Grammar]]:
    """
    Load automata and grammars from a file.

    Either the whole file is one definition named after the file, or it is
    split into sections headed by ``NAME:`` on a line of its own. A file is
    only split when its first line (ignoring blanks and comments) is such a
    header, so a state line like ``q1:`` inside an automaton is not a section.
    """
    automata: Dict[str, Automaton] = {}
    grammars: Dict[str, Grammar] = {}

    with open(filename, "r", encoding="utf-8") as f:
        content = f.read()

    name_pattern = re.compile(
        r"^(?!(?:START|NON_TERMINALS|NONTERMINALS|TERMINALS):)([A-Za-z]\w*):\s*$",
        re.MULTILINE,
    )

    if _starts_with_section(content, name_pattern):
        sections = name_pattern.split(content)

        for i in range(1, len(sections), 2):
            if i + 1 >= len(sections):
                continue

            name = sections[i].strip()
            definition = sections[i + 1].strip()

            if not definition:
                logger.warning("Section '%s' is empty, skipping", name)
                continue

            _load_definition(name, definition, automata, grammars)
    else:
        base_name = os.path.basename(filename).rsplit(".", 1)[0]
        _load_definition(base_name, content, automata, grammars)

    logger.debug(
        "Loaded %d automata and %d grammars from %s",
        len(automata),
        len(grammars),
        filename,
    )
    return automata, grammars
