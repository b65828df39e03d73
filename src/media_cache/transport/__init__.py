from media_cache.transport.http import AiohttpTransport

__all__ = ["AiohttpTransport"]
