from dishka import AsyncContainer
from dishka.integrations.fastapi import FastapiProvider, setup_dishka
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError

from core.container import create_container
from core.exception_handler import custom_exception_handler, validation_exception_handler
from core.exceptions import BaseCustomException
from migration.router import router as migration_router

VERSION = "0.1.0"


def create_app(container: AsyncContainer | None = None) -> FastAPI:
    """
    Build the HTTP application.

    Parameters
    ----------
    container : AsyncContainer | None
        Dishka container, a default one is created when omitted

    Returns
    -------
    FastAPI
        Configured application
    """
    app = FastAPI(
        title="Escrow Migration Service",
        version=VERSION,
        description="Migrates escrow balances and vesting schedules between escrow ledgers",
    )

    setup_dishka(container or create_container(FastapiProvider()), app)

    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(BaseCustomException, custom_exception_handler)
    app.add_exception_handler(Exception, custom_exception_handler)

    app.include_router(migration_router)

    @app.get("/")
    async def root():
        """
        Root endpoint.

        Returns
        -------
        dict
            Application information
        """
        return {
            "name": "Escrow Migration Service",
            "version": VERSION,
            "endpoints": {
                "run": "/api/migration/run",
                "docs": "/docs"
            }
        }

    @app.get("/health")
    async def health():
        return {"status": "healthy", "version": VERSION}

    return app


app = create_app()
