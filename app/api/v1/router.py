"""API v1 router aggregating all route modules."""

from fastapi import APIRouter

from app.api.v1.routes import (
    audit_logs,
    auth,
    classes,
    deleted_records,
    geography,
    observations,
    permissions,
    schools,
    students,
    training,
    users,
)

api_router = APIRouter()

api_router.include_router(auth.router)
api_router.include_router(users.router)
api_router.include_router(geography.router)
api_router.include_router(schools.router)
api_router.include_router(classes.router)
api_router.include_router(students.router)
api_router.include_router(observations.router)
api_router.include_router(training.router)
api_router.include_router(permissions.router)
api_router.include_router(audit_logs.router)
api_router.include_router(deleted_records.router)
