from .settings import ResolverConfig, Settings, get_settings

__all__ = ["ResolverConfig", "Settings", "get_settings"]
