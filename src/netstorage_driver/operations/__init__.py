"""
Operations package - CLI support between command parsing and the client.

Centralizes error mapping and output formatting while keeping CLI
commands thin and testable.
"""
from .mappers import exit_code_for, run_and_exit

__all__ = ["exit_code_for", "run_and_exit"]
