# Domain exceptions raised by the gallery's HTTP clients.
# The view catches these at the call site and rolls back or logs.


class BackendError(Exception):
    """A backend REST / RPC call failed."""

    def __init__(self, status_code: int | None, detail: str) -> None:
        self.status_code = status_code
        self.detail = detail
        super().__init__(detail if status_code is None else f"{status_code}: {detail}")


class RelayError(Exception):
    """An upload relay call failed."""

    def __init__(self, detail: str, status_code: int | None = None) -> None:
        self.status_code = status_code
        self.detail = detail
        super().__init__(detail)


class DurationProbeError(Exception):
    """The media file could not be probed for its duration."""
