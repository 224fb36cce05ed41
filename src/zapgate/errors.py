"""Exception hierarchy shared by every build step."""


class ZapGateError(Exception):
    """Base class for zapgate failures."""


class ConfigurationError(ZapGateError):
    """A required job field is missing or invalid."""

    def __init__(self, field: str, provided: object = None, reason: str = "IS MISSING"):
        self.field = field
        self.provided = provided
        super().__init__(f"{field.upper()} {reason}, PROVIDED [ {provided} ]")


class ReadinessError(ZapGateError):
    """The scanner's control port never became reachable."""


class ProcessLaunchError(ZapGateError):
    """The scanner process could not be started."""


class ClientApiError(ZapGateError):
    """A control-API call failed."""

    def __init__(self, message: str, code: str = ""):
        self.code = code
        super().__init__(f"{code}: {message}" if code else message)


class HandoffMissingError(ZapGateError):
    """No handoff record exists for the requested stage."""


class PhaseTimeoutError(ZapGateError):
    """A scan phase polled longer than the configured limit."""


class ScanAborted(ZapGateError):
    """The build was aborted by a signal while a step was waiting."""
