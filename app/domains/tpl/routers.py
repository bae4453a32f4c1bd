# app/domains/tpl/routers.py

from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlmodel.ext.asyncio.session import AsyncSession

from app.core import dependencies as deps
from app.domains.tpl import crud as tpl_crud, schemas as tpl_schemas
from app.services.availability_service import AvailabilityReport, RequiredLine, check_availability

router = APIRouter(
    tags=["Product Templates"],
    responses={404: {"description": "Not found"}},
)


@router.post("/templates", response_model=tpl_schemas.ProductTemplateResponse, status_code=status.HTTP_201_CREATED)
async def create_template(
    template_create: tpl_schemas.ProductTemplateCreate,
    db: AsyncSession = Depends(deps.get_db_session),
):
    """Creates a template with its part lines."""
    return await tpl_crud.template.create_with_parts(db, obj_in=template_create)


@router.get("/templates", response_model=List[tpl_schemas.ProductTemplateListItem])
async def read_templates(db: AsyncSession = Depends(deps.get_db_session)):
    templates = await tpl_crud.template.get_active(db)
    return [
        tpl_schemas.ProductTemplateListItem(
            id=t.id,
            name=t.name,
            description=t.description,
            is_active=t.is_active,
            created_at=t.created_at,
            part_count=len(t.parts),
        )
        for t in templates
    ]


@router.get("/templates/{template_id}", response_model=tpl_schemas.ProductTemplateResponse)
async def read_template(template_id: int, db: AsyncSession = Depends(deps.get_db_session)):
    db_template = await tpl_crud.template.get_detail(db, id=template_id)
    if db_template is None:
        raise HTTPException(status_code=404, detail="Product template not found.")
    return db_template


@router.patch("/templates/{template_id}", response_model=tpl_schemas.ProductTemplateResponse)
async def update_template(
    template_id: int,
    template_update: tpl_schemas.ProductTemplateUpdate,
    db: AsyncSession = Depends(deps.get_db_session),
):
    """Updates a template. A `parts` list replaces every existing line."""
    db_template = await tpl_crud.template.get(db, id=template_id)
    if db_template is None:
        raise HTTPException(status_code=404, detail="Product template not found.")
    return await tpl_crud.template.update_with_parts(db, db_obj=db_template, obj_in=template_update)


@router.delete("/templates/{template_id}", response_model=tpl_schemas.ProductTemplateResponse)
async def delete_template(template_id: int, db: AsyncSession = Depends(deps.get_db_session)):
    """Deactivates a template."""
    db_template = await tpl_crud.template.get(db, id=template_id)
    if db_template is None:
        raise HTTPException(status_code=404, detail="Product template not found.")
    await tpl_crud.template.soft_delete(db, db_obj=db_template)
    return await tpl_crud.template.get_detail(db, id=template_id)


@router.get("/templates/{template_id}/availability", response_model=AvailabilityReport)
async def read_template_availability(template_id: int, db: AsyncSession = Depends(deps.get_db_session)):
    """Whether current stock covers one product built from this template."""
    db_template = await tpl_crud.template.get_detail(db, id=template_id)
    if db_template is None:
        raise HTTPException(status_code=404, detail="Product template not found.")
    lines = [
        RequiredLine(line.part_id, line.part.name if line.part else f"Part {line.part_id}", line.quantity)
        for line in db_template.parts
    ]
    return await check_availability(db, lines)
