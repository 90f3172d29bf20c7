from fastapi import APIRouter

from .groups import groups_router
from .loans import loans_router
from .payments import payments_router
from .reports import reports_router

router = APIRouter()

router.include_router(groups_router, tags=["Groups"])
router.include_router(payments_router, tags=["Payments"])
router.include_router(loans_router, tags=["Loans"])
router.include_router(reports_router, tags=["Reports"])
