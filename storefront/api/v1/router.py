"""API v1 router: include all route modules."""

from fastapi import APIRouter

from storefront.api.v1 import accounts, oauth

api_router = APIRouter()

api_router.include_router(accounts.router)
api_router.include_router(oauth.router)
