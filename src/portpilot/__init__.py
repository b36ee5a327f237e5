"""Find, inspect and terminate the process that owns a TCP listening port."""

__version__ = "0.1.0"

from .platform_selector import get_platform  # noqa: E402
from .port_actions import KillOutcome, kill_and_verify  # noqa: E402
from .process_models import LookupStatus, PortLookup, ProcessDescriptor  # noqa: E402

__all__ = [
    "KillOutcome",
    "LookupStatus",
    "PortLookup",
    "ProcessDescriptor",
    "__version__",
    "get_platform",
    "kill_and_verify",
]
