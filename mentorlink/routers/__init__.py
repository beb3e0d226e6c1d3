# mentorlink/routers/__init__.py
from . import profile_router
from . import mentorship_router
from . import matching_router
from . import admin_router

__all__ = [
    "profile_router",
    "mentorship_router",
    "matching_router",
    "admin_router"
]
