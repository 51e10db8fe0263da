from .route import build_router, build_target_url, forward_to_target, get_settings

__all__ = [
    "build_router",
    "build_target_url",
    "forward_to_target",
    "get_settings",
]
