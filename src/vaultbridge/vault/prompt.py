# Interactive Master Key Prompt
#
# The resolver asks a CredentialPrompt for a key when a vault has no
# delegate and nothing is cached. ConsolePrompt reads from the terminal
# without echo. Returning None means the user cancelled.

import getpass
import sys
from abc import ABC, abstractmethod
from typing import Optional, TextIO

from ..models import Credential


class CredentialPrompt(ABC):
    """Source of interactively entered credentials."""

    @abstractmethod
    def prompt(self, message: str, username: str) -> Optional[Credential]:
        """Ask the user for a credential.

        Args:
            message: Text shown to the user (names the vault)
            username: Placeholder username the credential is seeded with

        Returns:
            The entered credential, or None if the user cancelled.
        """


class ConsolePrompt(CredentialPrompt):
    """Prompt on the controlling terminal (blocks the calling thread)."""

    def __init__(self, stream: Optional[TextIO] = None):
        self.stream = stream or sys.stderr

    def prompt(self, message: str, username: str) -> Optional[Credential]:
        print(message, file=self.stream)
        try:
            password = getpass.getpass(f"{username}: ", stream=self.stream)
        except (EOFError, KeyboardInterrupt):
            print(file=self.stream)
            return None
        return Credential(username=username, password=password)
