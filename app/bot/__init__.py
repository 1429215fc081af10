from .handlers import build_dispatcher, router

__all__ = ["build_dispatcher", "router"]
