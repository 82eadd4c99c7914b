from fastapi import APIRouter

from expensehub.api.invoices import invoices_router
from expensehub.api.reports import reports_router
from expensehub.api.requests import requests_router
from expensehub.api.users import users_router

api_router = APIRouter()
api_router.include_router(users_router)
api_router.include_router(requests_router)
api_router.include_router(invoices_router)
api_router.include_router(reports_router)
