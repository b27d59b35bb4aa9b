from fastapi import APIRouter
from hackportal.api.v1.endpoints import problem_statements, registrations, events, teams, exports, health

api_router = APIRouter()

api_router.include_router(health.router)
api_router.include_router(problem_statements.router)
api_router.include_router(registrations.router)
api_router.include_router(events.router)
api_router.include_router(teams.router)
api_router.include_router(exports.router)
