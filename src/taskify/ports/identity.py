"""Identity interface."""

from typing import Protocol


class Identity(Protocol):
    """Interface for the signed-in user."""

    def current_user_id(self) -> str:
        """Id of the signed-in user. Raises AuthenticationError if nobody is."""
        ...

    def is_authenticated(self) -> bool:
        ...
