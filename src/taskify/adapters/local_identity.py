"""Local identity adapters - who owns the tasks."""

import re

from taskify.config import UserSession


class AuthenticationError(Exception):
    """Raised when no user is signed in."""

    pass


def user_id_for(username: str) -> str:
    """Stable user id derived from a username."""
    slug = re.sub(r"[^a-z0-9]+", "-", username.strip().lower()).strip("-")
    if not slug:
        raise ValueError(f"Invalid username: {username!r}")
    return f"user-{slug}"


class LocalIdentity:
    """
    Signed-in user persisted in the config directory.

    Implements Identity protocol. There are no passwords: whoever runs the CLI
    on this machine is trusted to pick a profile.
    """

    def __init__(self, session: UserSession | None = None):
        self.session = session or UserSession.load()

    def login(self, username: str) -> str:
        """Sign in as username. Returns the user id."""
        self.session = UserSession(user_id=user_id_for(username), username=username.strip())
        self.session.save()
        return self.session.user_id

    def logout(self) -> None:
        self.session = UserSession()
        UserSession.clear()

    def is_authenticated(self) -> bool:
        return bool(self.session.user_id)

    def current_user_id(self) -> str:
        if not self.session.user_id:
            raise AuthenticationError("Not signed in. Run 'taskify login <username>' first.")
        return self.session.user_id


class StaticIdentity:
    """Fixed user id, e.g. derived from a Telegram account."""

    def __init__(self, user_id: str):
        self.user_id = user_id

    def is_authenticated(self) -> bool:
        return True

    def current_user_id(self) -> str:
        return self.user_id
