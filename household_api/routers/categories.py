from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends

from household_api.core.responses import success
from household_api.routers.deps import get_category_service, require_permission
from household_api.schemas.category import (
    BatchDeleteRequest,
    CategoryCreate,
    CategoryUpdate,
    StatusToggle,
)
from household_api.services.category_service import CategoryService

router = APIRouter(
    prefix="/service-categories",
    tags=["service-categories"],
    dependencies=[Depends(require_permission("manage-services"))],
)


@router.get("")
def list_categories(
    include_disabled: bool = False,
    only_top_level: bool = False,
    level: Optional[int] = None,
    service: CategoryService = Depends(get_category_service),
):
    filters = {"include_disabled": include_disabled, "only_top_level": only_top_level, "level": level}
    listing = service.list_categories(filters)
    return success(listing.to_dict())


@router.post("")
def create_category(payload: CategoryCreate, service: CategoryService = Depends(get_category_service)):
    detail = service.create_category(payload)
    return success(detail.to_dict(), "Category created", 201)


@router.post("/batch-delete")
def batch_delete(payload: BatchDeleteRequest, service: CategoryService = Depends(get_category_service)):
    deleted = service.batch_delete(payload.ids)
    return success({"deleted": deleted}, f"Deleted {deleted} categories")


@router.get("/{category_id}")
def get_category(category_id: int, service: CategoryService = Depends(get_category_service)):
    return success(service.get_category(category_id).to_dict())


@router.put("/{category_id}")
def update_category(category_id: int, payload: CategoryUpdate, service: CategoryService = Depends(get_category_service)):
    detail = service.update_category(category_id, payload)
    return success(detail.to_dict(), "Category updated")


@router.delete("/{category_id}")
def delete_category(category_id: int, service: CategoryService = Depends(get_category_service)):
    service.delete_category(category_id)
    return success(None, "Category deleted")


@router.put("/{category_id}/status")
def toggle_status(category_id: int, payload: StatusToggle, service: CategoryService = Depends(get_category_service)):
    detail = service.toggle_status(category_id, payload.is_enabled)
    return success(detail.to_dict(), "Category enabled" if payload.is_enabled else "Category disabled")


@router.post("/{category_id}/restore")
def restore_category(category_id: int, service: CategoryService = Depends(get_category_service)):
    detail = service.restore_category(category_id)
    return success(detail.to_dict(), "Category restored")
