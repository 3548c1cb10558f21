import pytest


async def test_make_kit_endpoint(client, warehouse, service_kit):
    s = service_kit
    resp = await client.post(
        "/parts-management/makeKit",
        json={"kit_id": s["kit_id"], "store_id": s["store_id"], "in_flow": 3, "out_flow": 0},
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "ok"
    assert body["message"] == "Kit created successfully"
    assert body["kit_stock"]["quantity"] == 3
    assert body["kit_stock"]["kit_id"] == s["kit_id"]

    assert await warehouse.quantities(s["part_a"], s["store_id"]) == [4]
    assert await warehouse.quantities(s["part_b"], s["store_id"]) == [0]


async def test_make_kit_insufficient_returns_conflict(client, warehouse, service_kit):
    s = service_kit
    resp = await client.post(
        "/parts-management/makeKit",
        json={"kit_id": s["kit_id"], "store_id": s["store_id"], "in_flow": 4},
    )
    assert resp.status_code == 409
    assert resp.json() == {"error": "Failed to create kit: Insufficient quantity for PartB"}
    assert await warehouse.quantities(s["part_a"], s["store_id"]) == [10]
    assert await warehouse.quantities(s["part_b"], s["store_id"]) == [3]


async def test_make_kit_missing_placement_is_user_visible(client, warehouse):
    store_id, _ = await warehouse.store("Bare", shelves=())
    other_id, other_placements = await warehouse.store("Other")
    part = await warehouse.part("Bolt")
    kit_id = await warehouse.kit("K", [(part, 1)])
    await warehouse.stock(part, store_id, other_placements[0], 3)

    resp = await client.post(
        "/parts-management/makeKit",
        json={"kit_id": kit_id, "store_id": store_id, "in_flow": 1},
    )
    assert resp.status_code == 409
    assert resp.json()["error"] == "Failed to create kit: No default rack/shelf found for the store"
    assert await warehouse.quantities(part, store_id) == [3]


async def test_make_kit_unknown_kit(client, warehouse):
    store_id, _ = await warehouse.store("S")
    resp = await client.post(
        "/parts-management/makeKit",
        json={"kit_id": 404, "store_id": store_id, "in_flow": 1},
    )
    assert resp.status_code == 404
    assert resp.json() == {"error": "Failed to create kit: Kit not found"}


@pytest.mark.parametrize(
    "payload",
    [
        {"store_id": 1, "in_flow": 1},
        {"kit_id": 1, "in_flow": 1},
        {"kit_id": 1, "store_id": 1},
        {"kit_id": 1, "store_id": 1, "in_flow": 0},
        {"kit_id": 1, "store_id": 1, "in_flow": -5},
        {"kit_id": 1, "store_id": 1, "in_flow": 1.5},
        {"kit_id": 1, "store_id": 1, "in_flow": True},
        {"kit_id": True, "store_id": 1, "in_flow": 1},
        {"kit_id": 2**31, "store_id": 1, "in_flow": 1},
        {"kit_id": 1, "store_id": 0, "in_flow": 1},
    ],
)
async def test_make_kit_validation(client, payload):
    resp = await client.post("/parts-management/makeKit", json=payload)
    assert resp.status_code == 400
    assert "error" in resp.json()


async def test_break_kit_endpoint(client, warehouse, service_kit):
    s = service_kit
    await warehouse.stock(s["kit_id"], s["store_id"], s["placements"][0], 2)

    resp = await client.post(
        "/parts-management/breakKit",
        json={"kit_id": s["kit_id"], "store_id": s["store_id"], "out_flow": 2},
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body == {
        "status": "ok",
        "message": "Kit broken successfully",
        "kit_stock": body["kit_stock"],
    }
    assert body["kit_stock"]["quantity"] == 0
    assert await warehouse.quantities(s["part_a"], s["store_id"]) == [14]
    assert await warehouse.quantities(s["part_b"], s["store_id"]) == [5]


async def test_break_kit_insufficient(client, service_kit):
    s = service_kit
    resp = await client.post(
        "/parts-management/breakKit",
        json={"kit_id": s["kit_id"], "store_id": s["store_id"], "out_flow": 1},
    )
    assert resp.status_code == 409
    assert resp.json() == {"error": "Failed to break kit: Insufficient kit quantity available"}


async def test_break_kit_requires_out_flow(client, service_kit):
    s = service_kit
    resp = await client.post(
        "/parts-management/breakKit",
        json={"kit_id": s["kit_id"], "store_id": s["store_id"], "in_flow": 1},
    )
    assert resp.status_code == 400
    assert "out_flow" in resp.json()["error"]


async def test_view_kits(client, warehouse, service_kit):
    s = service_kit
    resp = await client.get(
        "/parts-management/viewKits",
        params={"id": s["kit_id"], "store_id": s["store_id"]},
    )
    assert resp.status_code == 200
    recipe = resp.json()["kitRecipe"]
    assert recipe["id"] == s["kit_id"]
    assert recipe["existing_kit_quantity"] == 0
    assert [c["existing_quantity"] for c in recipe["components"]] == [10, 3]
    assert [c["name"] for c in recipe["components"]] == ["PartA", "PartB"]
    assert recipe["max_buildable"] == 3


async def test_view_kits_not_found(client, warehouse):
    store_id, _ = await warehouse.store("S")
    resp = await client.get("/parts-management/viewKits", params={"id": 77, "store_id": store_id})
    assert resp.status_code == 404
    assert resp.json() == {"error": "Kit not found"}


async def test_view_kits_requires_store(client, service_kit):
    resp = await client.get("/parts-management/viewKits", params={"id": service_kit["kit_id"]})
    assert resp.status_code == 400


async def test_inventory_flows_lists_newest_first(client, warehouse, service_kit):
    s = service_kit
    await client.post(
        "/parts-management/makeKit",
        json={"kit_id": s["kit_id"], "store_id": s["store_id"], "in_flow": 2},
    )
    await client.post(
        "/parts-management/breakKit",
        json={"kit_id": s["kit_id"], "store_id": s["store_id"], "out_flow": 1},
    )

    resp = await client.get("/parts-management/inventoryFlows", params={"item_id": s["kit_id"]})
    assert resp.status_code == 200
    flows = resp.json()
    assert [(f["reason"], f["in_flow"], f["out_flow"]) for f in flows] == [
        ("break_kit", 0, 1),
        ("make_kit", 2, 0),
    ]

    resp = await client.get("/parts-management/inventoryFlows", params={"reason": "make_kit"})
    assert [f["reason"] for f in resp.json()] == ["make_kit"]


async def test_inventory_flows_rejects_unknown_reason(client):
    resp = await client.get("/parts-management/inventoryFlows", params={"reason": "restock"})
    assert resp.status_code == 400


async def test_get_items_inventory_filters(client, warehouse):
    store_id, placements = await warehouse.store("S", shelves=(2,))
    other_id, other_placements = await warehouse.store("Other")
    bolt = await warehouse.part("Bolt")
    nut = await warehouse.part("Nut")
    kit_id = await warehouse.kit("K", [(bolt, 1)])
    r1 = await warehouse.stock(bolt, store_id, placements[0], 3)
    r2 = await warehouse.stock(nut, store_id, placements[1], 4)
    r3 = await warehouse.stock(kit_id, store_id, placements[1], 1)
    r4 = await warehouse.stock(bolt, other_id, other_placements[0], 9)

    resp = await client.get("/parts-management/getItemsInventory")
    assert [r["id"] for r in resp.json()] == [r1, r2, r3, r4]

    resp = await client.get("/parts-management/getItemsInventory", params={"store_id": store_id})
    assert [r["id"] for r in resp.json()] == [r1, r2, r3]

    resp = await client.get("/parts-management/getItemsInventory", params={"item_id": bolt})
    assert [r["id"] for r in resp.json()] == [r1, r4]

    resp = await client.get(
        "/parts-management/getItemsInventory",
        params={"store_id": store_id, "shelf_id": placements[1][1]},
    )
    assert [r["id"] for r in resp.json()] == [r2, r3]

    resp = await client.get("/parts-management/getItemsInventory", params={"item_type": "kit"})
    body = resp.json()
    assert [r["id"] for r in body] == [r3]
    assert body[0]["item"]["item_type"] == "KIT"
    assert body[0]["rack"]["rack_number"] == "R1"
    assert body[0]["shelf"]["shelf_number"] == "S2"


async def test_get_items_inventory_rejects_unknown_item_type(client):
    resp = await client.get("/parts-management/getItemsInventory", params={"item_type": "gadget"})
    assert resp.status_code == 400
    assert resp.json() == {"error": "item_type must be PART or KIT"}


async def test_make_kit_boolean_quantity_leaves_stock_alone(client, warehouse, service_kit):
    s = service_kit
    resp = await client.post(
        "/parts-management/makeKit",
        json={"kit_id": s["kit_id"], "store_id": s["store_id"], "in_flow": True},
    )
    assert resp.status_code == 400
    assert "in_flow" in resp.json()["error"]
    assert await warehouse.quantities(s["part_a"], s["store_id"]) == [10]
    assert await warehouse.quantities(s["part_b"], s["store_id"]) == [3]
    assert await warehouse.quantities(s["kit_id"], s["store_id"]) == []


@pytest.mark.parametrize(
    "out_flow",
    [True, 0, -1, 2.5, 2**31],
)
async def test_break_kit_validation(client, warehouse, service_kit, out_flow):
    s = service_kit
    await warehouse.stock(s["kit_id"], s["store_id"], s["placements"][0], 2)

    resp = await client.post(
        "/parts-management/breakKit",
        json={"kit_id": s["kit_id"], "store_id": s["store_id"], "out_flow": out_flow},
    )
    assert resp.status_code == 400
    assert "out_flow" in resp.json()["error"]
    assert await warehouse.quantities(s["kit_id"], s["store_id"]) == [2]
    assert await warehouse.flows() == []


async def test_break_kit_missing_placement_rolls_back(client, warehouse):
    store_id, _ = await warehouse.store("Bare", shelves=())
    other_id, other_placements = await warehouse.store("Other")
    part_a = await warehouse.part("PartA")
    part_b = await warehouse.part("PartB")
    kit_id = await warehouse.kit("K", [(part_a, 1), (part_b, 1)])
    # stock sits in the bare store on another store's shelf; PartB has no record
    await warehouse.stock(part_a, store_id, other_placements[0], 5)
    await warehouse.stock(kit_id, store_id, other_placements[0], 2)

    resp = await client.post(
        "/parts-management/breakKit",
        json={"kit_id": kit_id, "store_id": store_id, "out_flow": 1},
    )
    assert resp.status_code == 409
    assert resp.json() == {"error": "Failed to break kit: No default rack/shelf found for the store"}

    assert await warehouse.quantities(kit_id, store_id) == [2]
    assert await warehouse.quantities(part_a, store_id) == [5]
    assert await warehouse.quantities(part_b, store_id) == []
    assert await warehouse.flows() == []


@pytest.mark.parametrize(
    "params",
    [
        {"id": 1, "store_id": 10**30},
        {"id": 2**31, "store_id": 1},
        {"id": 0, "store_id": 1},
    ],
)
async def test_view_kits_rejects_out_of_range_ids(client, params):
    resp = await client.get("/parts-management/viewKits", params=params)
    assert resp.status_code == 400


async def test_listing_routes_reject_out_of_range_ids(client):
    resp = await client.get("/parts-management/getItemsInventory", params={"store_id": 10**30})
    assert resp.status_code == 400
    resp = await client.get("/parts-management/inventoryFlows", params={"item_id": 2**31})
    assert resp.status_code == 400


async def test_make_kit_unexpected_failure_hides_details(client, monkeypatch, service_kit):
    s = service_kit

    async def broken_make_kit(*args, **kwargs):
        raise RuntimeError("connection reset by peer: SELECT ... FROM item_inventories")

    monkeypatch.setattr("routers.parts_management.make_kit", broken_make_kit)

    resp = await client.post(
        "/parts-management/makeKit",
        json={"kit_id": s["kit_id"], "store_id": s["store_id"], "in_flow": 1},
    )
    assert resp.status_code == 500
    assert resp.json() == {"error": "Failed to create kit"}
