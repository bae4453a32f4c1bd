# tests/domains/test_prj_n.py

"""
API tests for the 'prj' domain: projects, teams, status changes, products and
product parts.
"""

from typing import Callable

import pytest
from httpx import AsyncClient
from sqlmodel.ext.asyncio.session import AsyncSession

from app.domains.inv import crud as inv_crud


DISPATCH_DETAILS = {
    "dispatch_datetime": "2026-03-01T10:00:00Z",
    "dispatch_from_location": "Main Warehouse",
    "dispatch_to_location": "North Plant",
    "receiving_person_name": "Omar Haddad",
}


async def _latest_activity(client: AsyncClient) -> dict:
    response = await client.get("/api/v1/inv/activities", params={"limit": 1})
    return response.json()["data"][0]


# =================================================================================
# 1. Projects
# =================================================================================
@pytest.mark.asyncio
async def test_create_project_with_team(client: AsyncClient, user_factory: Callable):
    """(success) a new project is in-progress and has its team"""
    abel = await user_factory("Abel")
    zoe = await user_factory("Zoe")

    response = await client.post(
        "/api/v1/prj/projects",
        json={"name": "Pump Station Retrofit", "assignee_ids": [abel.id, zoe.id, abel.id]},
        headers={"X-Actor-Name": "Ines"},
    )
    assert response.status_code == 201
    data = response.json()
    assert data["status"] == "in-progress"
    assert sorted(a["user_id"] for a in data["assignees"]) == sorted([abel.id, zoe.id])
    assert {a["user"]["name"] for a in data["assignees"]} == {"Abel", "Zoe"}
    assert data["products"] == []

    entry = await _latest_activity(client)
    assert entry["event_type"] == "project-created"
    assert entry["project_id"] == data["id"]
    assert entry["project"] == "Pump Station Retrofit"
    assert entry["actor_name"] == "Ines"


@pytest.mark.asyncio
async def test_create_project_unknown_assignee(client: AsyncClient):
    """(failure) every assignee must exist"""
    response = await client.post("/api/v1/prj/projects", json={"name": "Ghost Crew", "assignee_ids": [4242]})
    assert response.status_code == 404
    assert response.json()["data"] == {"user_ids": [4242]}


@pytest.mark.asyncio
async def test_read_projects_with_counts(
    client: AsyncClient, project_factory: Callable, product_factory: Callable
):
    project = await project_factory("Pump Station Retrofit")
    await product_factory(project, "Cabinet A")
    await product_factory(project, "Cabinet B")

    response = await client.get("/api/v1/prj/projects")
    assert response.status_code == 200
    listed = response.json()
    assert len(listed) == 1
    assert listed[0]["product_count"] == 2
    assert listed[0]["assignee_count"] == 0


@pytest.mark.asyncio
async def test_project_list_counts_follow_new_products(
    client: AsyncClient, project_factory: Callable, product_factory: Callable
):
    """The list reloads collections of projects the session already holds."""
    project = await project_factory("Pump Station Retrofit")

    first = (await client.get("/api/v1/prj/projects")).json()
    assert first[0]["product_count"] == 0

    await product_factory(project, "Cabinet A")

    second = (await client.get("/api/v1/prj/projects")).json()
    assert second[0]["product_count"] == 1


@pytest.mark.asyncio
async def test_read_nonexistent_project(client: AsyncClient):
    response = await client.get("/api/v1/prj/projects/9999")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_update_project(client: AsyncClient, project_factory: Callable):
    project = await project_factory()
    response = await client.patch(f"/api/v1/prj/projects/{project.id}", json={"description": "Phase 2"})
    assert response.status_code == 200
    assert response.json()["description"] == "Phase 2"


@pytest.mark.asyncio
async def test_delete_project_is_soft(client: AsyncClient, project_factory: Callable):
    project = await project_factory()
    response = await client.delete(f"/api/v1/prj/projects/{project.id}")
    assert response.status_code == 200
    assert response.json()["is_active"] is False
    assert (await client.get("/api/v1/prj/projects")).json() == []
    assert (await client.get(f"/api/v1/prj/projects/{project.id}")).status_code == 200


# =================================================================================
# 2. Status and team
# =================================================================================
@pytest.mark.asyncio
async def test_dispatch_requires_details(client: AsyncClient, project_factory: Callable):
    project = await project_factory()
    response = await client.patch(f"/api/v1/prj/projects/{project.id}/status", json={"status": "dispatched"})
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_dispatch_records_details(client: AsyncClient, project_factory: Callable):
    project = await project_factory()
    response = await client.patch(
        f"/api/v1/prj/projects/{project.id}/status",
        json={"status": "dispatched", "dispatch_details": DISPATCH_DETAILS},
    )
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "dispatched"
    assert data["dispatched_at"] is not None
    assert data["dispatch_to_location"] == "North Plant"
    assert data["receiving_person_name"] == "Omar Haddad"

    entry = await _latest_activity(client)
    assert entry["event_type"] == "project-status-change"
    assert 'changed to "dispatched"' in entry["notes"]
    assert "Dispatched to: North Plant" in entry["notes"]


@pytest.mark.asyncio
async def test_cancel_project(client: AsyncClient, project_factory: Callable):
    project = await project_factory()
    response = await client.patch(f"/api/v1/prj/projects/{project.id}/status", json={"status": "cancelled"})
    assert response.status_code == 200
    assert response.json()["status"] == "cancelled"
    assert response.json()["cancelled_at"] is not None


@pytest.mark.asyncio
async def test_unknown_status_value(client: AsyncClient, project_factory: Callable):
    project = await project_factory()
    response = await client.patch(f"/api/v1/prj/projects/{project.id}/status", json={"status": "archived"})
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_status_change_unknown_project(client: AsyncClient):
    response = await client.patch("/api/v1/prj/projects/9999/status", json={"status": "cancelled"})
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_replace_team(client: AsyncClient, user_factory: Callable):
    abel = await user_factory("Abel")
    zoe = await user_factory("Zoe")
    mira = await user_factory("Mira")
    created = await client.post(
        "/api/v1/prj/projects", json={"name": "Retrofit", "assignee_ids": [abel.id, zoe.id]}
    )
    project_id = created.json()["id"]

    response = await client.patch(
        f"/api/v1/prj/projects/{project_id}/team", json={"assignee_ids": [zoe.id, mira.id]}
    )
    assert response.status_code == 200
    assert sorted(a["user_id"] for a in response.json()["assignees"]) == sorted([zoe.id, mira.id])

    entry = await _latest_activity(client)
    assert entry["event_type"] == "project-team-change"


# =================================================================================
# 3. Products and product parts
# =================================================================================
@pytest.mark.asyncio
async def test_create_product(client: AsyncClient, project_factory: Callable):
    project = await project_factory()
    response = await client.post(f"/api/v1/prj/projects/{project.id}/products", json={"name": "Cabinet A"})
    assert response.status_code == 201
    assert response.json()["project_id"] == project.id
    assert response.json()["parts"] == []

    entry = await _latest_activity(client)
    assert entry["event_type"] == "product-created"
    assert entry["product_id"] == response.json()["id"]


@pytest.mark.asyncio
async def test_create_product_unknown_project(client: AsyncClient):
    response = await client.post("/api/v1/prj/projects/9999/products", json={"name": "Cabinet A"})
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_rename_product(client: AsyncClient, project_factory: Callable, product_factory: Callable):
    project = await project_factory()
    product = await product_factory(project)
    response = await client.patch(f"/api/v1/prj/products/{product.id}", json={"name": "Cabinet Z"})
    assert response.status_code == 200
    assert response.json()["name"] == "Cabinet Z"


@pytest.mark.asyncio
async def test_add_update_remove_part(
    client: AsyncClient,
    project_factory: Callable,
    product_factory: Callable,
    part_factory: Callable,
    balance_of: Callable,
):
    """(success) allocation follows the link quantity through add, increase, decrease and remove"""
    project = await project_factory()
    product = await product_factory(project)
    part = await part_factory("Hex Bolt M8", "HB-M8", stock=10)
    product_id, part_id = product.id, part.id

    response = await client.post(
        f"/api/v1/prj/products/{product_id}/parts", json={"part_id": part_id, "quantity": 4}
    )
    assert response.status_code == 201
    assert response.json()["parts"] == [
        {"product_id": product_id, "part_id": part_id, "quantity": 4,
         "part": {"id": part_id, "name": "Hex Bolt M8", "sku": "HB-M8"}}
    ]
    assert await balance_of(part_id) == {"on_hand": 10, "allocated": 4, "available": 6}

    response = await client.patch(f"/api/v1/prj/products/{product_id}/parts/{part_id}", json={"quantity": 7})
    assert response.status_code == 200
    assert response.json()["parts"][0]["quantity"] == 7
    assert await balance_of(part_id) == {"on_hand": 10, "allocated": 7, "available": 3}

    response = await client.patch(f"/api/v1/prj/products/{product_id}/parts/{part_id}", json={"quantity": 2})
    assert response.status_code == 200
    assert await balance_of(part_id) == {"on_hand": 10, "allocated": 2, "available": 8}

    response = await client.delete(f"/api/v1/prj/products/{product_id}/parts/{part_id}")
    assert response.status_code == 200
    assert response.json()["parts"] == []
    assert await balance_of(part_id) == {"on_hand": 10, "allocated": 0, "available": 10}


@pytest.mark.asyncio
async def test_add_part_insufficient_stock(
    client: AsyncClient,
    project_factory: Callable,
    product_factory: Callable,
    part_factory: Callable,
    balance_of: Callable,
):
    """(failure) 409 with the shortage; nothing is allocated"""
    project = await project_factory()
    product = await product_factory(project)
    part = await part_factory("Hex Bolt M8", "HB-M8", stock=3)
    project_id, product_id, part_id = project.id, product.id, part.id

    response = await client.post(
        f"/api/v1/prj/products/{product_id}/parts", json={"part_id": part_id, "quantity": 5}
    )
    assert response.status_code == 409
    assert response.json()["data"]["shortages"] == [
        {"part_id": part_id, "part_name": "Hex Bolt M8", "needed": 5, "available": 3}
    ]
    assert await balance_of(part_id) == {"on_hand": 3, "allocated": 0, "available": 3}
    assert (await client.get(f"/api/v1/prj/projects/{project_id}")).json()["products"][0]["parts"] == []


@pytest.mark.asyncio
async def test_add_part_twice_conflicts(
    client: AsyncClient, project_factory: Callable, product_factory: Callable, part_factory: Callable
):
    project = await project_factory()
    product = await product_factory(project)
    part = await part_factory("Hex Bolt M8", "HB-M8", stock=10)
    product_id, part_id = product.id, part.id

    first = await client.post(f"/api/v1/prj/products/{product_id}/parts", json={"part_id": part_id, "quantity": 1})
    assert first.status_code == 201
    second = await client.post(f"/api/v1/prj/products/{product_id}/parts", json={"part_id": part_id, "quantity": 1})
    assert second.status_code == 409
    assert second.json()["data"] == {"product_id": product_id, "part_id": part_id}


@pytest.mark.asyncio
async def test_add_part_zero_quantity(
    client: AsyncClient, project_factory: Callable, product_factory: Callable, part_factory: Callable
):
    project = await project_factory()
    product = await product_factory(project)
    part = await part_factory("Hex Bolt M8", "HB-M8", stock=10)
    response = await client.post(
        f"/api/v1/prj/products/{product.id}/parts", json={"part_id": part.id, "quantity": 0}
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_remove_part_not_in_product(
    client: AsyncClient, project_factory: Callable, product_factory: Callable, part_factory: Callable
):
    project = await project_factory()
    product = await product_factory(project)
    part = await part_factory("Hex Bolt M8", "HB-M8", stock=10)
    response = await client.delete(f"/api/v1/prj/products/{product.id}/parts/{part.id}")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_delete_product_returns_parts(
    client: AsyncClient,
    project_factory: Callable,
    product_factory: Callable,
    part_factory: Callable,
    balance_of: Callable,
):
    project = await project_factory()
    product = await product_factory(project)
    bolt = await part_factory("Hex Bolt M8", "HB-M8", stock=10)
    nut = await part_factory("Hex Nut M8", "HN-M8", stock=10)
    product_id, bolt_id, nut_id = product.id, bolt.id, nut.id

    for part_id, qty in ((bolt_id, 4), (nut_id, 2)):
        response = await client.post(
            f"/api/v1/prj/products/{product_id}/parts", json={"part_id": part_id, "quantity": qty}
        )
        assert response.status_code == 201

    response = await client.delete(f"/api/v1/prj/products/{product_id}")
    assert response.status_code == 200
    assert response.json() == {
        "product_id": product_id,
        "returned": [{"part_id": bolt_id, "quantity": 4}, {"part_id": nut_id, "quantity": 2}],
    }
    assert await balance_of(bolt_id) == {"on_hand": 10, "allocated": 0, "available": 10}
    assert await balance_of(nut_id) == {"on_hand": 10, "allocated": 0, "available": 10}

    response = await client.patch(f"/api/v1/prj/products/{product_id}", json={"name": "gone"})
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_part_summary(
    client: AsyncClient,
    db_session: AsyncSession,
    project_factory: Callable,
    product_factory: Callable,
    part_factory: Callable,
):
    project = await project_factory()
    cabinet_a = await product_factory(project, "Cabinet A")
    cabinet_b = await product_factory(project, "Cabinet B")
    bolt = await part_factory("Hex Bolt M8", "HB-M8", stock=20)
    nut = await part_factory("Hex Nut M8", "HN-M8", stock=20)
    project_id = project.id

    for product_id, part_id, qty in (
        (cabinet_a.id, bolt.id, 3),
        (cabinet_b.id, bolt.id, 5),
        (cabinet_b.id, nut.id, 2),
    ):
        response = await client.post(
            f"/api/v1/prj/products/{product_id}/parts", json={"part_id": part_id, "quantity": qty}
        )
        assert response.status_code == 201

    response = await client.get(f"/api/v1/prj/projects/{project_id}/part-summary")
    assert response.status_code == 200
    assert response.json() == {"project_id": project_id, "totals": {str(bolt.id): 8, str(nut.id): 2}}

    balance = await inv_crud.balance.get(db_session, part_id=bolt.id)
    assert balance.allocated == 8


@pytest.mark.asyncio
async def test_product_from_template(
    client: AsyncClient,
    project_factory: Callable,
    part_factory: Callable,
    template_factory: Callable,
    balance_of: Callable,
):
    project = await project_factory()
    bolt = await part_factory("Hex Bolt M8", "HB-M8", stock=10)
    nut = await part_factory("Hex Nut M8", "HN-M8", stock=10)
    template = await template_factory("Standard Cabinet", [(bolt.id, 4), (nut.id, 2)])
    project_id, bolt_id, nut_id = project.id, bolt.id, nut.id

    response = await client.post(
        f"/api/v1/prj/projects/{project_id}/products-from-template",
        json={"template_id": template.id},
    )
    assert response.status_code == 201
    data = response.json()
    assert data["name"] == "Standard Cabinet"
    assert {(p["part_id"], p["quantity"]) for p in data["parts"]} == {(bolt_id, 4), (nut_id, 2)}
    assert await balance_of(bolt_id) == {"on_hand": 10, "allocated": 4, "available": 6}
    assert await balance_of(nut_id) == {"on_hand": 10, "allocated": 2, "available": 8}


@pytest.mark.asyncio
async def test_product_from_template_shortage(
    client: AsyncClient,
    project_factory: Callable,
    part_factory: Callable,
    template_factory: Callable,
):
    project = await project_factory()
    bolt = await part_factory("Hex Bolt M8", "HB-M8", stock=10)
    nut = await part_factory("Hex Nut M8", "HN-M8", stock=1)
    template = await template_factory("Standard Cabinet", [(bolt.id, 4), (nut.id, 2)])
    project_id, nut_id = project.id, nut.id

    response = await client.post(
        f"/api/v1/prj/projects/{project_id}/products-from-template",
        json={"template_id": template.id, "product_name": "Cabinet 7"},
    )
    assert response.status_code == 409
    assert response.json()["data"]["shortages"] == [
        {"part_id": nut_id, "part_name": "Hex Nut M8", "needed": 2, "available": 1}
    ]
    assert (await client.get(f"/api/v1/prj/projects/{project_id}")).json()["products"] == []
