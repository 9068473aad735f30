"""
Error taxonomy for the relay.

Every error is recoverable per event; none of them should take the bot down.
``DuplicateUser`` and ``DuplicateCodename`` are raised by the identity store
and absorbed by the router. The rest reach either the invoking moderator or
the log.
"""

from __future__ import annotations

from modmail.datatypes.discord_datatypes import UserID


class RelayError(Exception):
    """Base class for all relay errors."""


class DuplicateUser(RelayError):
    """An active conversation already exists for this user."""

    def __init__(self, user_id: UserID) -> None:
        super().__init__(f"User {user_id} already has an active conversation.")
        self.user_id = user_id


class DuplicateCodename(RelayError):
    """The codename is already held by an active conversation."""

    def __init__(self, codename: str) -> None:
        super().__init__(f"Codename '{codename}' is already in use.")
        self.codename = codename


class ExhaustedVocabulary(RelayError):
    """No free codename could be produced."""


class UnknownCodename(RelayError):
    """No active conversation holds this codename."""

    def __init__(self, codename: str) -> None:
        super().__init__(f"No open conversation is called '{codename}'.")
        self.codename = codename


class ConfigurationMissing(RelayError):
    """A required configuration value (inbox or block role) is unset."""

    HINTS = {
        "inbox": "Set one with `/inbox set`.",
        "blockrole": "Set one with `/blockrole set`.",
    }

    def __init__(self, key: str) -> None:
        label = "inbox channel" if key == "inbox" else "block role"
        hint = self.HINTS.get(key, "")
        super().__init__(f"No {label} is configured. {hint}".strip())
        self.key = key


class PlatformError(RelayError):
    """A chat platform call failed; the cause is opaque to the router."""

    def __init__(self, operation: str, cause: BaseException | str | None = None) -> None:
        detail = f": {cause}" if cause else ""
        super().__init__(f"Platform call '{operation}' failed{detail}")
        self.operation = operation
        self.cause = cause
