"""API routers for the shoplist application."""

from shoplist.routers.shopping_list import router as shopping_list_router

__all__ = [
    "shopping_list_router",
]
