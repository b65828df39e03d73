from media_cache.config.loader import YamlConfigLoader
from media_cache.config.models import AppConfig, ConfigLoadRequest

__all__ = ["AppConfig", "ConfigLoadRequest", "YamlConfigLoader"]
