from fastapi import APIRouter
from simulai.routes.endpoints.auth import router as auth_router
from simulai.routes.endpoints.users import router as users_router
from simulai.routes.endpoints.companies import router as companies_router
from simulai.routes.endpoints.conversations import router as conversations_router
from simulai.routes.endpoints.reports import router as reports_router
from simulai.routes.endpoints.scenarios import router as scenarios_router
from simulai.routes.endpoints.settings import router as settings_router
from simulai.routes.endpoints.email import router as email_router
from simulai.routes.endpoints.assistants import router as assistants_router

# MJ: This is our Main Router for all the routes

router = APIRouter()

router.include_router(auth_router, tags=["auth"])
router.include_router(users_router, tags=["users"])
router.include_router(companies_router, tags=["companies"])
# MJ: conversations before scenarios so /scenarios/conversations is not read as a scenario id
router.include_router(conversations_router, tags=["conversations"])
router.include_router(reports_router, tags=["reports"])
router.include_router(scenarios_router, tags=["scenarios"])
router.include_router(settings_router, tags=["settings"])
router.include_router(email_router, tags=["email"])
router.include_router(assistants_router, tags=["assistants"])
