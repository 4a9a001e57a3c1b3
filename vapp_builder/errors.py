"""Builder exceptions."""


class VAppBuilderError(Exception):
    """Base error for the vApp build step."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidNetworkConfig(VAppBuilderError):
    """Network configuration cannot produce a valid plan.

    Raised before any remote call is made.
    """


class ComposeVAppError(VAppBuilderError):
    """A compose/recompose/customization step failed remotely."""

    def __str__(self) -> str:
        return f"Failed to compose vApp: {self.message}"
