"""Exception hierarchy for esboot.

All wrapper-specific exceptions inherit from EsBootError, allowing callers
to catch broad or narrow as needed. ConfigError aborts startup before the
server is launched; the rest are confined to the background unit.
"""


class EsBootError(Exception):
    """Base exception for all esboot errors."""


class ConfigError(EsBootError):
    """Invalid or missing configuration. Fatal before launch."""


class InvalidRamSpec(ConfigError):
    """INSTANCE_RAM does not look like `<digits><G|M>[i]`."""

    def __init__(self, spec: str | None) -> None:
        self.spec = spec
        super().__init__(f"INSTANCE_RAM env var is invalid: {spec or ''}")


class MemoryLimitUnavailable(ConfigError):
    """No readable cgroup memory limit on this host."""

    def __init__(self) -> None:
        super().__init__(
            "Unable to determine the maximum allowable RAM for this host "
            "in order to configure Elasticsearch"
        )


class InsufficientMemory(ConfigError):
    """Less memory than Elasticsearch needs after clamping."""

    def __init__(self, required_mb: int, available_mb: int) -> None:
        self.required_mb = required_mb
        self.available_mb = available_mb
        super().__init__(
            f"A minimum of {required_mb}m is required but only "
            f"{available_mb}m is available or was specified"
        )


class TemplatesNotFound(ConfigError):
    """The template directory holds no documents matching the pattern."""


class ReadinessTimeoutError(EsBootError, TimeoutError):
    """Elasticsearch did not answer 200 within the retry budget."""

    def __init__(self, base_url: str, attempts: int, last_response: str | None = None) -> None:
        self.base_url = base_url
        self.attempts = attempts
        self.last_response = last_response
        super().__init__(
            f"Timed out waiting for Elasticsearch to be ready at {base_url} "
            f"after {attempts} attempts"
        )


class PublishError(EsBootError):
    """A single index template could not be uploaded."""

    def __init__(self, name: str, reason: str, status_code: int | None = None) -> None:
        self.name = name
        self.reason = reason
        self.status_code = status_code
        super().__init__(f"Failed to upload index template '{name}': {reason}")
