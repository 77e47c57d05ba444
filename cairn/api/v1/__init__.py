"""
API v1 routes.
"""

from fastapi import APIRouter

from cairn.api.v1 import funding, projects, proofs, session

router = APIRouter()

router.include_router(session.router, tags=["Session"])
router.include_router(funding.router, tags=["Funding"])
router.include_router(projects.router, prefix="/projects", tags=["Projects"])
router.include_router(proofs.router, tags=["Proofs"])
