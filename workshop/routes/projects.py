from __future__ import annotations

from dataclasses import asdict
from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from ..errors import DatabaseError
from ..logs import LogContext
from ..models import Material, Project
from ..services.project_svc import ProjectService

router = APIRouter()


def get_project_service() -> ProjectService:
    return ProjectService()


class ProjectCreate(BaseModel):
    project_name: str = Field(..., min_length=1)
    estimated_hours: Optional[Decimal] = None
    actual_hours: Optional[Decimal] = None
    difficulty: Optional[int] = None
    notes: Optional[str] = None


class StepCreate(BaseModel):
    step_text: str = Field(..., min_length=1)


class MaterialCreate(BaseModel):
    material_name: str = Field(..., min_length=1)
    num_required: Optional[int] = None
    cost: Optional[Decimal] = None


class CategoryLink(BaseModel):
    category_name: str = Field(..., min_length=1)


@router.get("/api/project/list")
def api_project_list(svc: ProjectService = Depends(get_project_service)):
    try:
        return [asdict(p) for p in svc.fetch_all()]
    except DatabaseError as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/api/project/{project_id}")
def api_project_detail(project_id: int, svc: ProjectService = Depends(get_project_service)):
    try:
        project = svc.fetch_by_id(project_id)
    except DatabaseError as e:
        raise HTTPException(status_code=500, detail=str(e))
    if project is None:
        raise HTTPException(status_code=404, detail="project_not_found")
    return project.to_dict()


@router.post("/api/project/create", status_code=201)
def api_project_create(body: ProjectCreate, svc: ProjectService = Depends(get_project_service)):
    log = LogContext("CREATE_PROJECT")
    log.set_payload(body.model_dump(mode="json"))
    try:
        project = svc.insert(Project(**body.model_dump()))
    except DatabaseError as e:
        log.try_write("ERROR", str(e))
        raise HTTPException(status_code=500, detail=str(e))
    log.set_entity("PROJECT", str(project.project_id))
    log.set_after(project.to_dict())
    log.try_write("OK")
    return {"message": "ok", "project": project.to_dict()}


def _add_child(action: str, project_id: int, payload: dict, op):
    log = LogContext(action)
    log.set_entity("PROJECT", str(project_id))
    log.set_payload(payload)
    try:
        child = op()
    except ValueError as e:
        log.try_write("ERROR", str(e))
        raise HTTPException(status_code=404, detail=str(e))
    except DatabaseError as e:
        log.try_write("ERROR", str(e))
        raise HTTPException(status_code=500, detail=str(e))
    out = asdict(child)
    log.set_after(out)
    log.try_write("OK")
    return {"message": "ok", "item": out}


@router.post("/api/project/{project_id}/step", status_code=201)
def api_project_add_step(project_id: int, body: StepCreate, svc: ProjectService = Depends(get_project_service)):
    return _add_child(
        "ADD_STEP", project_id, body.model_dump(mode="json"),
        lambda: svc.add_step(project_id, body.step_text),
    )


@router.post("/api/project/{project_id}/material", status_code=201)
def api_project_add_material(project_id: int, body: MaterialCreate, svc: ProjectService = Depends(get_project_service)):
    return _add_child(
        "ADD_MATERIAL", project_id, body.model_dump(mode="json"),
        lambda: svc.add_material(project_id, Material(**body.model_dump())),
    )


@router.post("/api/project/{project_id}/category", status_code=201)
def api_project_add_category(project_id: int, body: CategoryLink, svc: ProjectService = Depends(get_project_service)):
    return _add_child(
        "ADD_CATEGORY", project_id, body.model_dump(mode="json"),
        lambda: svc.add_category(project_id, body.category_name),
    )


@router.get("/api/category/list")
def api_category_list(svc: ProjectService = Depends(get_project_service)):
    try:
        return [asdict(c) for c in svc.list_categories()]
    except DatabaseError as e:
        raise HTTPException(status_code=500, detail=str(e))
