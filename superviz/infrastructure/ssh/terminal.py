"""
Terminal-backed password reader and yes/no prompter
"""
import getpass
from typing import Optional

from rich.console import Console
from rich.prompt import Prompt

from ...core.interfaces import PasswordReader, UserPrompter
from ...core.logging import get_stderr_console


class TerminalPasswordReader(PasswordReader):
    """Reads a password from the controlling terminal with echo disabled"""

    def read_password(self, prompt: str) -> str:
        return getpass.getpass(prompt)


class TerminalPrompter(UserPrompter):
    """
    Rich-based yes/no prompt.

    Only "yes" or "y" (any case) count as acceptance; anything else, including
    an empty answer, is a refusal.
    """

    def __init__(self, console: Optional[Console] = None):
        self.console = console or get_stderr_console()

    def prompt_yes_no(self, message: str) -> bool:
        response = Prompt.ask(message, console=self.console, default="", show_default=False)
        return response.strip().lower() in ("yes", "y")
