"""Route group exports."""

from . import analysis, clusters, health, lanes, rpc

__all__ = ["analysis", "clusters", "health", "lanes", "rpc"]
