# app/domains/prj/routers.py

from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlmodel.ext.asyncio.session import AsyncSession

from app.core import dependencies as deps
from app.domains.prj import crud as prj_crud, schemas as prj_schemas
from app.services.allocation_service import AllocationService, get_allocation_service

router = APIRouter(
    tags=["Project Management"],
    responses={404: {"description": "Not found"}},
)


async def _get_project_or_404(db: AsyncSession, project_id: int):
    db_project = await prj_crud.project.get(db, id=project_id)
    if db_project is None:
        raise HTTPException(status_code=404, detail="Project not found.")
    return db_project


# =============================================================================
# 1. prj.projects
# =============================================================================
@router.post("/projects", response_model=prj_schemas.ProjectDetailResponse, status_code=status.HTTP_201_CREATED)
async def create_project(
    project_create: prj_schemas.ProjectCreate,
    db: AsyncSession = Depends(deps.get_db_session),
    actor_name: str = Depends(deps.get_actor_name),
):
    """Creates a project (status 'in-progress') with its initial team."""
    return await prj_crud.project.create_with_team(db, obj_in=project_create, actor_name=actor_name)


@router.get("/projects", response_model=List[prj_schemas.ProjectListItem])
async def read_projects(db: AsyncSession = Depends(deps.get_db_session)):
    """Active projects, newest first, with product and team counts."""
    projects = await prj_crud.project.get_active(db)
    return [
        prj_schemas.ProjectListItem(
            **prj_schemas.ProjectResponse.model_validate(p).model_dump(),
            product_count=len(p.products),
            assignee_count=len(p.assignees),
        )
        for p in projects
    ]


@router.get("/projects/{project_id}", response_model=prj_schemas.ProjectDetailResponse)
async def read_project(project_id: int, db: AsyncSession = Depends(deps.get_db_session)):
    """Project with its team and every product's parts."""
    db_project = await prj_crud.project.get_detail(db, id=project_id)
    if db_project is None:
        raise HTTPException(status_code=404, detail="Project not found.")
    return db_project


@router.patch("/projects/{project_id}", response_model=prj_schemas.ProjectDetailResponse)
async def update_project(
    project_id: int,
    project_update: prj_schemas.ProjectUpdate,
    db: AsyncSession = Depends(deps.get_db_session),
):
    db_project = await _get_project_or_404(db, project_id)
    await prj_crud.project.update(db=db, db_obj=db_project, obj_in=project_update)
    return await prj_crud.project.get_detail(db, id=project_id)


@router.delete("/projects/{project_id}", response_model=prj_schemas.ProjectResponse)
async def delete_project(project_id: int, db: AsyncSession = Depends(deps.get_db_session)):
    """Deactivates a project. Its products and allocations are left untouched."""
    db_project = await _get_project_or_404(db, project_id)
    return await prj_crud.project.soft_delete(db, db_obj=db_project)


@router.patch("/projects/{project_id}/status", response_model=prj_schemas.ProjectDetailResponse)
async def update_project_status(
    project_id: int,
    status_update: prj_schemas.ProjectStatusUpdate,
    service: AllocationService = Depends(get_allocation_service),
):
    """Moves the project to a new status. 'dispatched' requires dispatch_details."""
    return await service.change_project_status(
        project_id, status_update.status, status_update.dispatch_details
    )


@router.patch("/projects/{project_id}/team", response_model=prj_schemas.ProjectDetailResponse)
async def update_project_team(
    project_id: int,
    team_update: prj_schemas.ProjectTeamUpdate,
    db: AsyncSession = Depends(deps.get_db_session),
    actor_name: str = Depends(deps.get_actor_name),
):
    """Replaces the project team with the given users."""
    db_project = await _get_project_or_404(db, project_id)
    return await prj_crud.project.update_team(
        db, db_obj=db_project, assignee_ids=team_update.assignee_ids, actor_name=actor_name
    )


@router.get("/projects/{project_id}/part-summary", response_model=prj_schemas.ProjectPartSummary)
async def read_project_part_summary(project_id: int, db: AsyncSession = Depends(deps.get_db_session)):
    """Total quantity of every part used by the project's products."""
    await _get_project_or_404(db, project_id)
    totals = await prj_crud.project.part_summary(db, project_id=project_id)
    return {"project_id": project_id, "totals": totals}


# =============================================================================
# 2. prj.products
# =============================================================================
@router.post(
    "/projects/{project_id}/products",
    response_model=prj_schemas.ProductResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_product(
    project_id: int,
    product_create: prj_schemas.ProductCreate,
    db: AsyncSession = Depends(deps.get_db_session),
    actor_name: str = Depends(deps.get_actor_name),
):
    """Creates an empty product in the project."""
    db_project = await _get_project_or_404(db, project_id)
    return await prj_crud.product.create_for_project(
        db, project=db_project, obj_in=product_create, actor_name=actor_name
    )


@router.post(
    "/projects/{project_id}/products-from-template",
    response_model=prj_schemas.ProductResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_product_from_template(
    project_id: int,
    from_template: prj_schemas.ProductFromTemplateCreate,
    service: AllocationService = Depends(get_allocation_service),
):
    """
    Creates a product from a template and allocates every template part.
    Returns 409 with the full shortage list when any part is short.
    """
    return await service.apply_template(project_id, from_template.template_id, from_template.product_name)


@router.patch("/products/{product_id}", response_model=prj_schemas.ProductResponse)
async def update_product(
    product_id: int,
    product_update: prj_schemas.ProductUpdate,
    db: AsyncSession = Depends(deps.get_db_session),
):
    db_product = await prj_crud.product.get(db, id=product_id)
    if db_product is None:
        raise HTTPException(status_code=404, detail="Product not found.")
    await prj_crud.product.update(db=db, db_obj=db_product, obj_in=product_update)
    return await prj_crud.product.get_detail(db, id=product_id)


@router.delete("/products/{product_id}", response_model=prj_schemas.ProductDeleteResponse)
async def delete_product(
    product_id: int,
    service: AllocationService = Depends(get_allocation_service),
):
    """Returns every allocated part to stock, then deletes the product."""
    returned = await service.delete_product(product_id)
    return {"product_id": product_id, "returned": returned}


# =============================================================================
# 3. prj.product_parts
# =============================================================================
@router.post(
    "/products/{product_id}/parts",
    response_model=prj_schemas.ProductResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_part_to_product(
    product_id: int,
    part_in: prj_schemas.ProductPartCreate,
    db: AsyncSession = Depends(deps.get_db_session),
    service: AllocationService = Depends(get_allocation_service),
):
    """Allocates a part to the product. 409 when stock is short or the part is already linked."""
    await service.add_part_to_product(product_id, part_in.part_id, part_in.quantity)
    return await prj_crud.product.get_detail(db, id=product_id)


@router.patch("/products/{product_id}/parts/{part_id}", response_model=prj_schemas.ProductResponse)
async def update_part_in_product(
    product_id: int,
    part_id: int,
    part_update: prj_schemas.ProductPartUpdate,
    db: AsyncSession = Depends(deps.get_db_session),
    service: AllocationService = Depends(get_allocation_service),
):
    await service.update_part_in_product(product_id, part_id, part_update.quantity)
    return await prj_crud.product.get_detail(db, id=product_id)


@router.delete("/products/{product_id}/parts/{part_id}", response_model=prj_schemas.ProductResponse)
async def remove_part_from_product(
    product_id: int,
    part_id: int,
    db: AsyncSession = Depends(deps.get_db_session),
    service: AllocationService = Depends(get_allocation_service),
):
    """Removes the part from the product and releases its quantity."""
    await service.remove_part_from_product(product_id, part_id)
    return await prj_crud.product.get_detail(db, id=product_id)
