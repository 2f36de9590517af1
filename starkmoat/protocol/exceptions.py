"""
⚠️ DRAFT — requires crypto review before production use

Custom exceptions for the Starkmoat protocol.

These exceptions provide structured error handling for registry rotation,
nullifier replay detection and action submission. None of them is retried
internally; each is reported to the immediate caller.
"""


class StarkmoatError(Exception):
    """Base exception for Starkmoat errors."""

    pass


class FeltError(StarkmoatError, ValueError):
    """Value is not a well-formed STARK field element."""

    pass


class ConfigurationError(StarkmoatError):
    """Configuration error."""

    pass


# ============================================================================
# ROOT REGISTRY
# ============================================================================


class RegistryError(StarkmoatError):
    """Base error for root registry operations."""

    pass


class InvalidRoot(RegistryError):
    """A zero root was supplied to initialization or rotation."""

    pass


class NoOpRoot(RegistryError):
    """Rotation target equals the current root."""

    pass


class Unauthorized(RegistryError):
    """Caller is not the registry admin."""

    pass


class RegistryNotInitialized(RegistryError):
    """Registry has no admin and no accepted root yet."""

    pass


class RegistryAlreadyInitialized(RegistryError):
    """Registry was already initialized."""

    pass


class RootNotAccepted(RegistryError):
    """Root was never accepted by the registry."""

    pass


class RegistryStateError(RegistryError):
    """Persisted registry state or event log could not be read or written."""

    pass


# ============================================================================
# REPLAY GUARD
# ============================================================================


class ReplayError(StarkmoatError):
    """Base error for nullifier replay detection."""

    pass


class NullifierAlreadyUsed(ReplayError):
    """
    Nullifier was already spent by this guard.

    Callers must change the action context (e.g. the action label) rather
    than derive a new nullifier from the same secret and context.
    """

    def __init__(self, nullifier: int, message: str = "") -> None:
        self.nullifier = nullifier
        super().__init__(message or f"Nullifier already used: {hex(nullifier)}")


class NullifierInFlight(NullifierAlreadyUsed):
    """Nullifier is reserved by a submission that has not been confirmed yet."""

    def __init__(self, nullifier: int) -> None:
        super().__init__(
            nullifier, f"Nullifier reserved by a pending submission: {hex(nullifier)}"
        )


# ============================================================================
# SUBMISSION
# ============================================================================


class SubmissionError(StarkmoatError):
    """Action submission failed before confirmation (safe to retry)."""

    pass
