# app/domains/usr/routers.py

from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlmodel.ext.asyncio.session import AsyncSession

from app.core import dependencies as deps
from app.domains.usr import crud as usr_crud, schemas as usr_schemas

router = APIRouter(
    tags=["User Management"],
    responses={404: {"description": "Not found"}},
)


@router.post("/users", response_model=usr_schemas.AppUserResponse, status_code=status.HTTP_201_CREATED)
async def create_user(
    user_create: usr_schemas.AppUserCreate,
    db: AsyncSession = Depends(deps.get_db_session),
):
    """Creates a new user."""
    return await usr_crud.user.create(db=db, obj_in=user_create)


@router.get("/users", response_model=List[usr_schemas.AppUserResponse])
async def read_users(db: AsyncSession = Depends(deps.get_db_session)):
    """Lists active users ordered by name."""
    return await usr_crud.user.get_active(db)


@router.get("/users/{user_id}", response_model=usr_schemas.AppUserResponse)
async def read_user(user_id: int, db: AsyncSession = Depends(deps.get_db_session)):
    db_user = await usr_crud.user.get(db, id=user_id)
    if db_user is None:
        raise HTTPException(status_code=404, detail="User not found.")
    return db_user


@router.patch("/users/{user_id}", response_model=usr_schemas.AppUserResponse)
async def update_user(
    user_id: int,
    user_update: usr_schemas.AppUserUpdate,
    db: AsyncSession = Depends(deps.get_db_session),
):
    db_user = await usr_crud.user.get(db, id=user_id)
    if db_user is None:
        raise HTTPException(status_code=404, detail="User not found.")
    return await usr_crud.user.update(db=db, db_obj=db_user, obj_in=user_update)


@router.delete("/users/{user_id}", response_model=usr_schemas.AppUserResponse)
async def delete_user(user_id: int, db: AsyncSession = Depends(deps.get_db_session)):
    """Deactivates a user. The row is kept."""
    db_user = await usr_crud.user.get(db, id=user_id)
    if db_user is None:
        raise HTTPException(status_code=404, detail="User not found.")
    return await usr_crud.user.soft_delete(db, db_obj=db_user)
