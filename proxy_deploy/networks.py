from enum import Enum
from typing import Optional

LOCAL_NETWORKS = ["local"]
FORK_SUFFIX = "-fork"


class EnvironmentClassification(Enum):
    LIVE = "live"
    EPHEMERAL = "ephemeral"

    @property
    def is_live(self) -> bool:
        return self is EnvironmentClassification.LIVE


def classify_network(
    network_name: str, override: Optional[str] = None
) -> EnvironmentClassification:
    """
    Maps an ape network name to its environment classification.
    Local and forked networks are resettable; everything else is live.
    """
    if override:
        return EnvironmentClassification(override.lower())
    if network_name in LOCAL_NETWORKS or network_name.endswith(FORK_SUFFIX):
        return EnvironmentClassification.EPHEMERAL
    return EnvironmentClassification.LIVE
