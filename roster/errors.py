"""Exceptions raised by the roster core."""


class RosterError(Exception):
    """Base class for roster errors."""


class ValidationError(RosterError):
    """Input rejected before any state change (blank name, bad interval...)."""


class NotFoundError(RosterError):
    """Mutation or lookup on a record that is not in the store."""


class AuthError(RosterError):
    """Sign-in failed or no user is signed in."""


class IdentityNotReadyError(AuthError):
    """Identity service used before it was initialized."""
