from .diagnostics import router as diagnostics_router
from .feeds import router as feeds_router
from .newsletter import router as newsletter_router
from .subscribers import router as subscribers_router

__all__ = [
    "diagnostics_router",
    "feeds_router",
    "newsletter_router",
    "subscribers_router",
]
