"""Konnect API Router - aggregates all versioned API routes."""

from fastapi import APIRouter

from app.api import organizations, service_versions, services, users

# Main API router - all business routes are prefixed with /v1
api_router = APIRouter(prefix="/v1")

api_router.include_router(users.router)
api_router.include_router(organizations.router)
api_router.include_router(services.router)
api_router.include_router(service_versions.router)
