import logging
import sys
from typing_extensions import *

from automaton import Automaton, Symbol
from grammar import Grammar
from io_utils import load_from_file

HELP = """
Commands:
  LOADING:
    load <file>                  - Load automata/grammars from file
    list                         - List all loaded items

  AUTOMATA OPERATIONS:
    show <name>                  - Show automaton info
    print <name>                 - Print automaton in text notation
    graph <name>                 - Visualize automaton (needs Graphviz)
    det <name>                   - Check whether automaton is deterministic
    accepts <name> <word>        - Check whether a word is accepted
    to_dfa <name> [result]       - Convert to deterministic automaton

  GRAMMAR OPERATIONS:
    show_grammar <name>          - Show grammar
    recursive <name> <symbol>    - Check whether a non-terminal is recursive
    nullable <name>              - List nullable non-terminals
    productive <name> [result]   - Convert to productive form

  GENERAL:
    delete <name>                - Delete item
    clear                        - Clear all
    exit                         - Exit
"""


def _names(symbols) -> str:
    return "{" + ", ".join(sorted(str(s) for s in symbols)) + "}"


def main():
    """Simple interactive terminal for automaton and grammar operations."""
    logging.basicConfig(
        level=logging.DEBUG if "-v" in sys.argv[1:] else logging.WARNING,
        format="%(levelname)s: %(message)s",
    )

    automata: Dict[str, Automaton] = {}
    grammars: Dict[str, Grammar] = {}

    print("Automaton & Grammar Terminal - Type 'help' for commands\n")

    while True:
        try:
            command = input("> ").strip()
            if not command:
                continue

            parts = command.split()
            cmd = parts[0].lower()

            # Exit
            if cmd in ["exit", "quit"]:
                break

            # Help
            elif cmd == "help":
                print(HELP)

            # Load
            elif cmd == "load":
                if len(parts) < 2:
                    print("Usage: load <filename>")
                    continue
                try:
                    loaded_automata, loaded_grammars = load_from_file(parts[1])
                    automata.update(loaded_automata)
                    grammars.update(loaded_grammars)

                    if loaded_automata or loaded_grammars:
                        msg = []
                        if loaded_automata:
                            msg.append(
                                f"{len(loaded_automata)} automata: {', '.join(loaded_automata.keys())}"
                            )
                        if loaded_grammars:
                            msg.append(
                                f"{len(loaded_grammars)} grammars: {', '.join(loaded_grammars.keys())}"
                            )
                        print(f"Loaded {' and '.join(msg)}")
                    else:
                        print("No items loaded")
                except OSError as e:
                    print(f"Error: {e}")

            # List
            elif cmd == "list":
                if automata or grammars:
                    if automata:
                        print("Automata:")
                        for name, aut in sorted(automata.items()):
                            kind = "DFA" if aut.is_deterministic() else "NFA"
                            print(f"  {name}: {kind}, {aut.state_count} states")
                    if grammars:
                        print("Grammars:")
                        for name, gram in sorted(grammars.items()):
                            print(
                                f"  {name}: {len(gram.N)} non-terminals, {len(gram.P)} productions"
                            )
                else:
                    print("Nothing loaded")

            # Delete item
            elif cmd == "delete":
                if len(parts) < 2:
                    print("Usage: delete <name>")
                else:
                    deleted = False
                    if parts[1] in automata:
                        del automata[parts[1]]
                        deleted = True
                    if parts[1] in grammars:
                        del grammars[parts[1]]
                        deleted = True
                    if deleted:
                        print(f"Deleted: {parts[1]}")
                    else:
                        print(f"Not found: {parts[1]}")

            # Clear all
            elif cmd == "clear":
                automata.clear()
                grammars.clear()
                print("Cleared all")

            # Show automaton info
            elif cmd == "show":
                if len(parts) < 2:
                    print("Usage: show <name>")
                elif parts[1] not in automata:
                    print(f"Automaton not found: {parts[1]}")
                else:
                    aut = automata[parts[1]]
                    print(f"\n{parts[1]}:")
                    print(f"  States: {aut.state_count}")
                    print(f"  Alphabet: {_names(aut.alphabet)}")
                    print(f"  Start: {aut.start_state}")
                    print(f"  Accepting: {_names(aut.accepting_states)}")
                    print(f"  Transitions: {len(aut.transitions)}\n")

            # Print automaton
            elif cmd == "print":
                if len(parts) < 2:
                    print("Usage: print <name>")
                elif parts[1] not in automata:
                    print(f"Automaton not found: {parts[1]}")
                else:
                    print(automata[parts[1]])

            # Graph automaton
            elif cmd == "graph":
                if len(parts) < 2:
                    print("Usage: graph <name>")
                elif parts[1] not in automata:
                    print(f"Automaton not found: {parts[1]}")
                else:
                    try:
                        automata[parts[1]].to_graphviz(filename=parts[1], view=True)
                        print(f"Created: {parts[1]}.png")
                    except Exception as e:
                        print(f"Error: {e}")

            # Determinism check
            elif cmd == "det":
                if len(parts) < 2:
                    print("Usage: det <name>")
                elif parts[1] not in automata:
                    print(f"Automaton not found: {parts[1]}")
                else:
                    if automata[parts[1]].is_deterministic():
                        print("DETERMINISTIC")
                    else:
                        print("NON-DETERMINISTIC")

            # Test word on automaton
            elif cmd == "accepts":
                if len(parts) < 2:
                    print("Usage: accepts <name> <word>")
                elif parts[1] not in automata:
                    print(f"Automaton not found: {parts[1]}")
                else:
                    word = parts[2] if len(parts) > 2 else ""
                    result = automata[parts[1]].accepts(word)
                    print("ACCEPTED" if result else "REJECTED")

            # Convert to DFA
            elif cmd == "to_dfa":
                if len(parts) < 2:
                    print("Usage: to_dfa <name> [result]")
                elif parts[1] not in automata:
                    print(f"Automaton not found: {parts[1]}")
                else:
                    result_name = parts[2] if len(parts) > 2 else f"{parts[1]}_dfa"
                    automata[result_name] = automata[parts[1]].to_deterministic()
                    print(f"Created: {result_name}")

            # Show grammar
            elif cmd == "show_grammar":
                if len(parts) < 2:
                    print("Usage: show_grammar <name>")
                elif parts[1] not in grammars:
                    print(f"Grammar not found: {parts[1]}")
                else:
                    print(grammars[parts[1]], end="")

            # Recursion check
            elif cmd == "recursive":
                if len(parts) < 3:
                    print("Usage: recursive <name> <symbol>")
                elif parts[1] not in grammars:
                    print(f"Grammar not found: {parts[1]}")
                else:
                    if grammars[parts[1]].is_symbol_recursive(Symbol.of(parts[2])):
                        print("RECURSIVE")
                    else:
                        print("NOT RECURSIVE")

            # Nullable symbols
            elif cmd == "nullable":
                if len(parts) < 2:
                    print("Usage: nullable <name>")
                elif parts[1] not in grammars:
                    print(f"Grammar not found: {parts[1]}")
                else:
                    print(_names(grammars[parts[1]].nullable_symbols()))

            # Productive form
            elif cmd == "productive":
                if len(parts) < 2:
                    print("Usage: productive <name> [result]")
                elif parts[1] not in grammars:
                    print(f"Grammar not found: {parts[1]}")
                else:
                    result_name = parts[2] if len(parts) > 2 else f"{parts[1]}_prod"
                    grammars[result_name] = grammars[parts[1]].to_productive_form()
                    print(f"Created: {result_name}")

            else:
                print(f"Unknown command: {cmd}")

        except KeyboardInterrupt:
            print("\nUse 'exit' to quit")
        except EOFError:
            break
        except ValueError as e:
            print(f"Error: {e}")

    print("Goodbye!")


if __name__ == "__main__":
    main()
