"""Logger configuration."""

from dataclasses import dataclass

PUSH_PATH = "/loki/api/v1/push"
DEFAULT_TIMEOUT = 10.0


@dataclass(frozen=True)
class LoggerConfig:
    """Construction-time settings for a LokiLogger.

    Attributes:
        base_url: Root URL of the Loki service (e.g. http://loki:3100).
        service: Service name. Tags local output and labels the remote stream.
        environment: Environment tag for local output only.
        timeout: Per-request HTTP timeout in seconds.
    """

    base_url: str
    service: str
    environment: str = ""
    timeout: float = DEFAULT_TIMEOUT

    def __post_init__(self) -> None:
        if not self.base_url:
            raise ValueError("base_url must not be empty")
        if not self.service:
            raise ValueError("service must not be empty")
        if not self.timeout > 0:
            raise ValueError(f"timeout must be positive, got {self.timeout!r}")

    @property
    def push_url(self) -> str:
        """Full URL of the push endpoint."""
        return self.base_url.rstrip("/") + PUSH_PATH
