from classboard.routers.users import router as users_router
from classboard.routers.diagrams import router as diagrams_router

__all__ = ["users_router", "diagrams_router"]
