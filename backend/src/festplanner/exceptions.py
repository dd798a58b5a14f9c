"""Error taxonomy shared by the extractor, planner and API layers."""


class PlannerError(Exception):
    """Base class for all festplanner errors."""


class ValidationFailure(PlannerError):
    """Input rejected before any side effect (missing link, half-filled credentials...)."""


class RemoteSyncFailure(PlannerError):
    """A call to the remote database or share server failed.

    Local state stays authoritative; callers log and move on.
    """

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class DecodeFailure(PlannerError):
    """A share payload could not be decoded."""


class ExtractionFetchError(PlannerError):
    """The festival page itself could not be fetched."""


class ReadOnlyScheduleError(PlannerError):
    """A mutating operation was attempted on a shared (read-only) schedule."""


class ShareNotFound(PlannerError):
    """No shared schedule exists for the given token."""
