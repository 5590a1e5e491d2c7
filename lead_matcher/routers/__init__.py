"""
API routers package
"""

from lead_matcher.routers.matching import router as matching_router
