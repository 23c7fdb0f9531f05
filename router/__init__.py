from .api import router as api_router
from .misc import router as misc_router

__all__ = ["api_router", "misc_router"]
