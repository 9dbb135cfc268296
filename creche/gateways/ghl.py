"""
CRM pipeline client (LeadConnector / GHL API).

Only the sales pipeline endpoints are used: pipelines with their stages,
opportunity search and stage moves. Responses are mapped to flat dicts in
snake_case so the API never leaks the provider's field names.
"""

import os
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from creche.gateways.exceptions import CrmError, IntegrationNotConfigured
from creche.gateways.http import send

GHL_DEFAULT_BASE_URL = "https://services.leadconnectorhq.com"
GHL_API_VERSION = "2021-07-28"
SEARCH_LIMIT = 100


@dataclass
class GhlClient:
    """
    GHL API client.

    Attributes
    ----------
    api_key : str, optional
        Private integration token; read from GHL_API_KEY when omitted.
    location_id : str, optional
        Sub-account id; read from GHL_LOCATION_ID when omitted.
    base_url : str, optional
        API root; read from GHL_BASE_URL.
    """

    api_key: Optional[str] = None
    location_id: Optional[str] = None
    base_url: Optional[str] = None

    def _headers(self) -> Dict[str, str]:
        key = self.api_key or os.getenv("GHL_API_KEY")
        if not key:
            raise IntegrationNotConfigured("GHL_API_KEY is not configured")
        return {
            "Authorization": f"Bearer {key}",
            "Version": GHL_API_VERSION,
            "Accept": "application/json",
        }

    def _location(self) -> str:
        location = self.location_id or os.getenv("GHL_LOCATION_ID")
        if not location:
            raise IntegrationNotConfigured("GHL_LOCATION_ID is not configured")
        return location

    def _url(self, path: str) -> str:
        base = self.base_url or os.getenv("GHL_BASE_URL") or GHL_DEFAULT_BASE_URL
        return f"{base.rstrip('/')}/{path.lstrip('/')}"

    def _call(self, method: str, path: str, action: str, **kwargs) -> Any:
        return send(
            method,
            self._url(path),
            headers=self._headers(),
            error_cls=CrmError,
            action=action,
            **kwargs,
        )

    def list_pipelines(self) -> List[Dict[str, Any]]:
        data = self._call(
            "get",
            "/opportunities/pipelines",
            "list pipelines",
            params={"locationId": self._location()},
        )
        return [map_pipeline(p) for p in data.get("pipelines", [])]

    def search_opportunities(self, pipeline_id: str) -> Dict[str, Any]:
        payload = {"locationId": self._location(), "limit": SEARCH_LIMIT, "pipelineId": pipeline_id}
        data = self._call("post", "/opportunities/search", "search opportunities", json=payload)
        opportunities = [map_opportunity(o) for o in data.get("opportunities", [])]
        total = (data.get("meta") or {}).get("total", len(opportunities))
        return {"opportunities": opportunities, "total": total}

    def move_opportunity(self, opportunity_id: str, stage_id: str, pipeline_id: str) -> Dict[str, Any]:
        payload = {"pipelineStageId": stage_id, "pipelineId": pipeline_id}
        data = self._call("put", f"/opportunities/{opportunity_id}", "move opportunity", json=payload)
        return map_opportunity(data.get("opportunity", data))


def map_pipeline(raw: Dict[str, Any]) -> Dict[str, Any]:
    stages = [
        {"id": s.get("id"), "name": s.get("name"), "position": s.get("position", index)}
        for index, s in enumerate(raw.get("stages") or [])
    ]
    return {"id": raw.get("id"), "name": raw.get("name"), "stages": stages}


def map_opportunity(raw: Dict[str, Any]) -> Dict[str, Any]:
    contact = raw.get("contact") or {}
    return {
        "id": raw.get("id"),
        "name": raw.get("name"),
        "status": raw.get("status"),
        "monetary_value": float(raw.get("monetaryValue") or 0),
        "stage_id": raw.get("pipelineStageId"),
        "assigned_to": raw.get("assignedTo"),
        "contact": {
            "id": contact.get("id"),
            "name": contact.get("name"),
            "email": contact.get("email"),
            "phone": contact.get("phone"),
        },
        "created_at": raw.get("createdAt"),
        "updated_at": raw.get("updatedAt"),
    }


def build_board(pipeline: Dict[str, Any], opportunities: List[Dict[str, Any]]) -> Dict[str, Any]:
    """
    Group opportunities into stage columns ordered by stage position.

    Opportunities whose stage is not in the pipeline are returned under
    ``unassigned``.
    """
    columns = []
    stage_ids = set()
    for stage in sorted(pipeline.get("stages", []), key=lambda s: s.get("position") or 0):
        stage_ids.add(stage["id"])
        items = [o for o in opportunities if o.get("stage_id") == stage["id"]]
        columns.append({
            "stage_id": stage["id"],
            "name": stage["name"],
            "position": stage.get("position"),
            "count": len(items),
            "total_value": round(sum(o.get("monetary_value") or 0 for o in items), 2),
            "opportunities": items,
        })
    unassigned = [o for o in opportunities if o.get("stage_id") not in stage_ids]
    return {
        "pipeline_id": pipeline.get("id"),
        "name": pipeline.get("name"),
        "columns": columns,
        "unassigned": unassigned,
    }
