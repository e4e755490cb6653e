"""
aaim.utils.enums — Enumerations shared across the interpreter.
"""

from enum import Enum, auto


class ParameterSource(Enum):
    """Where the parameters of a configuration come from."""

    LITERAL = auto()  # list of values and ${...} references
    DERIVED = auto()  # nested service call configuration
    NONE = auto()  # nothing configured


class RunnerCommand(Enum):
    """Control words understood by the interactive runner."""

    RUN = "run"
    PAUSE = "pause"
    RESET = "reset"
    STATE = "state"
    QUIT = "quit"
    EXIT = "exit"

    @classmethod
    def parse(cls, text: str):
        """Return the command for ``text`` or None if it names an event."""
        try:
            return cls(text.strip().lower())
        except ValueError:
            return None
