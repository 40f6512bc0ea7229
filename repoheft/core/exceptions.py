"""Error types raised by repoheft"""

from typing import List, Optional

from .models import printable


class RepoHeftError(Exception):
    """Base class for all repoheft errors"""


class InvalidLocationError(RepoHeftError, ValueError):
    """The location is missing or is neither a repository nor an account URL"""


class RepositoryListingError(RepoHeftError):
    """The hosting provider could not list an account's repositories"""


class InspectionError(RepoHeftError):
    """A git command failed while inspecting a repository"""

    def __init__(self, message: str, command: Optional[List[str]] = None, stderr: str = ""):
        super().__init__(message)
        self.command = command or []
        self.stderr = printable(stderr.strip())

    def __str__(self) -> str:
        message = super().__str__()
        if self.stderr:
            return f"{message}: {self.stderr}"
        return message
