"""State containers for the Artisan bridge."""

from .cache import LatestValueCache
from .context import BridgeState, create_bridge_state

__all__ = ["BridgeState", "LatestValueCache", "create_bridge_state"]
