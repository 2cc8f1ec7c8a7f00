from .terminal_state import TerminalState

__all__ = ["TerminalState"]
