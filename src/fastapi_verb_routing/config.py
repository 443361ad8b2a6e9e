"""Router configuration.

RouterConfig is a frozen dataclass, immutable after creation::

    config = RouterConfig(routes_dir="api/routes", development=False)
"""

import os
from dataclasses import dataclass, field
from pathlib import Path

# Environment variable selecting the runtime environment
ENV_VAR = "APP_ENV"
# Environment variable overriding the routes directory
ROUTES_DIR_VAR = "ROUTES_DIR"

PRODUCTION = "production"
DEFAULT_ROUTES_DIR = "./routes"


def is_development() -> bool:
    """True unless ``APP_ENV`` is ``production``."""
    return os.environ.get(ENV_VAR, "development").strip().lower() != PRODUCTION


@dataclass(frozen=True)
class RouterConfig:
    """Settings for route discovery and registration.

    Attributes:
        routes_dir: Root directory of verb files.
        prefix: URL prefix for every registered route.
        development: Log a line per registered route. Defaults to
            True unless ``APP_ENV=production``.
    """

    routes_dir: str | Path = DEFAULT_ROUTES_DIR
    prefix: str = ""
    development: bool = field(default_factory=is_development)

    @classmethod
    def from_env(cls) -> "RouterConfig":
        """Build a config from ``ROUTES_DIR`` and ``APP_ENV``."""
        return cls(routes_dir=os.environ.get(ROUTES_DIR_VAR, DEFAULT_ROUTES_DIR))
