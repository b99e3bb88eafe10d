from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from hrms.api.v1.auth.router import router as auth_router
from hrms.api.v1.employees.router import router as employees_router
from hrms.api.v1.leave_balances.router import router as leave_balances_router
from hrms.api.v1.leave_types.router import router as leave_types_router
from hrms.api.v1.leaves.router import router as leaves_router
from hrms.core.config import settings
from hrms.core.logging import setup_logging


def create_app() -> FastAPI:
    setup_logging()
    app = FastAPI(title="HRMS Leave Service")

    # CORS: comma-separated origins, "*" for any
    origins = [o.strip() for o in settings.cors_origins.split(",") if o.strip()] or ["*"]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Routers
    app.include_router(auth_router)
    app.include_router(employees_router)
    app.include_router(leave_types_router)
    app.include_router(leave_balances_router)
    app.include_router(leaves_router)

    return app


app = create_app()
