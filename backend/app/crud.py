import logging
from typing import Callable
from uuid import UUID

from fastapi import APIRouter, Depends, Response

from .persistence import Persistence
from .resources import Resource

logger = logging.getLogger(__name__)


def build_router(resource: Resource, persistence: Persistence, current_user: Callable[..., str]) -> APIRouter:
    """List/create/update/delete routes for one tracker table, scoped to the caller's user id."""
    router = APIRouter(prefix=resource.path, tags=[resource.name])
    response_model = resource.response_model

    @router.get("", response_model=list[response_model])
    async def list_entries(user_id: str = Depends(current_user)):
        rows = persistence.list_entries(resource, user_id)
        return [response_model.model_validate(row) for row in rows]

    @router.post("", response_model=response_model, status_code=201)
    async def create_entry(payload: resource.create_model, user_id: str = Depends(current_user)):
        row = persistence.create_entry(resource, user_id, payload.model_dump())
        logger.debug("%s entry created user=%s id=%s", resource.name, user_id, row["id"])
        return response_model.model_validate(row)

    if resource.update_model is not None:

        @router.put("/{entry_id}", response_model=response_model)
        async def update_entry(
            entry_id: UUID, payload: resource.update_model, user_id: str = Depends(current_user)
        ):
            updates = payload.model_dump(exclude_none=True)
            row = persistence.update_entry(resource, user_id, entry_id, updates)
            return response_model.model_validate(row)

    @router.delete("/{entry_id}", status_code=204)
    async def delete_entry(entry_id: UUID, user_id: str = Depends(current_user)) -> Response:
        if not persistence.delete_entry(resource, user_id, entry_id):
            logger.debug("%s delete ignored user=%s id=%s (not found)", resource.name, user_id, entry_id)
        return Response(status_code=204)

    return router

