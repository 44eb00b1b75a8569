class ProviderUnavailable(RuntimeError):
    """Raised by a calendar provider adapter when its source cannot be read."""

    def __init__(self, provider: str, reason: str) -> None:
        super().__init__(f"{provider}: {reason}")
        self.provider = provider
        self.reason = reason


class ConflictCheckFailed(RuntimeError):
    """Raised when every calendar provider failed, so the calendar state is unknown."""
    pass


class ExecutionFailure(RuntimeError):
    """Raised when the action executor could not create the requested item."""
    pass


class ConversationExpired(LookupError):
    """Raised inside a turn when its conversation died while a collaborator was awaited."""
    pass


class NLUUpstreamError(RuntimeError):
    """Raised when the NLU provider fails (timeouts, network errors, service unavailable)."""
    pass


class NLUContractError(RuntimeError):
    """Raised when the NLU adapter violates contract (bad format or missing data)."""
    pass
