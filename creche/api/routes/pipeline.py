"""
Enrollment sales pipeline endpoints backed by the CRM.
"""

from typing import Any, Dict, List

from fastapi import APIRouter, Depends, HTTPException, status

from creche.api.schemas import StageMove
from creche.api.auth import require_admin
from creche.db.models import User
from creche.gateways import GhlClient, build_board


router = APIRouter()


def get_crm_client() -> GhlClient:
    """CRM client configured from the environment; overridable in tests."""
    return GhlClient()


@router.get("/pipelines")
def list_pipelines(
    current_user: User = Depends(require_admin),
    client: GhlClient = Depends(get_crm_client),
) -> List[Dict[str, Any]]:
    """Pipelines with their ordered stages."""
    return client.list_pipelines()


@router.get("/{pipeline_id}/board")
def get_board(
    pipeline_id: str,
    current_user: User = Depends(require_admin),
    client: GhlClient = Depends(get_crm_client),
) -> Dict[str, Any]:
    """Kanban view of a pipeline: one column per stage with its opportunities."""
    pipelines = {p["id"]: p for p in client.list_pipelines()}
    pipeline = pipelines.get(pipeline_id)
    if pipeline is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Pipeline {pipeline_id} not found",
        )
    result = client.search_opportunities(pipeline_id)
    return build_board(pipeline, result["opportunities"])


@router.put("/opportunities/{opportunity_id}/stage")
def move_opportunity(
    opportunity_id: str,
    move: StageMove,
    current_user: User = Depends(require_admin),
    client: GhlClient = Depends(get_crm_client),
) -> Dict[str, Any]:
    """Move an opportunity to another stage."""
    return client.move_opportunity(opportunity_id, move.stage_id, move.pipeline_id)
