"""fast-deploy: deploy a local build directory to a server over SFTP."""

__version__ = "1.0.0"

from .config import DeployOptions, ServerConfig, load_config  # noqa: E402
from .errors import (  # noqa: E402
    ConfigurationError,
    FastDeployError,
    LocalPreconditionError,
    TeardownError,
    TransportError,
)
from .orchestrator import Deployer, DeployReport, deploy  # noqa: E402

__all__ = [
    "ConfigurationError",
    "DeployOptions",
    "DeployReport",
    "Deployer",
    "FastDeployError",
    "LocalPreconditionError",
    "ServerConfig",
    "TeardownError",
    "TransportError",
    "__version__",
    "deploy",
    "load_config",
]
