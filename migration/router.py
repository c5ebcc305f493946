from fastapi import APIRouter
from dishka.integrations.fastapi import inject
from dishka import FromComponent
from typing import Annotated
from migration.entities import MigrationOptions
from migration.schemas import RunMigrationRequest, MigrationSummaryResponse
from migration.usecases import RunMigrationUseCase

router = APIRouter(
    prefix="/api/migration",
    tags=["Migration"]
)


@router.post("/run", response_model=MigrationSummaryResponse)
@inject
async def run_migration(
    request: RunMigrationRequest,
    use_case: Annotated[
        RunMigrationUseCase, FromComponent("migration")
    ]
) -> MigrationSummaryResponse:
    """
    Run the escrow migration once.

    Parameters
    ----------
    request : RunMigrationRequest
        Dry-run flag and optional page sizes
    use_case : RunMigrationUseCase
        Use case for running the migration

    Returns
    -------
    MigrationSummaryResponse
        Run summary
    """
    summary = await use_case(MigrationOptions(**request.model_dump()))
    return MigrationSummaryResponse.model_validate(summary, from_attributes=True)
