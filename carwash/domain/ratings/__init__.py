from .router import reservation_rating_router, router

__all__ = ["router", "reservation_rating_router"]
