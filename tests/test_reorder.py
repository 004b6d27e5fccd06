from conftest import create_category, create_menu, create_product, register_and_login


def test_reorder_categories(client, owner, services):
    menu = create_menu(client, owner)
    a = create_category(client, owner, menu["id"], name="A")
    b = create_category(client, owner, menu["id"], name="B")
    c = create_category(client, owner, menu["id"], name="C")

    r = client.post(
        f"/api/menus/{menu['id']}/categories/reorder",
        json={"categories": [
            {"id": c["id"], "sortOrder": 0},
            {"id": a["id"], "sortOrder": 1},
            {"id": b["id"], "sortOrder": 2},
        ]},
        headers=owner,
    )
    assert r.status_code == 200
    assert [cat["nameKa"] for cat in r.json()["data"]] == ["C", "A", "B"]

    listed = client.get(f"/api/menus/{menu['id']}/categories", headers=owner).json()["data"]
    assert [cat["id"] for cat in listed] == [c["id"], a["id"], b["id"]]
    assert services.broadcaster.events_named("category:reordered")


def test_reorder_with_foreign_id_changes_nothing(client, owner):
    menu = create_menu(client, owner)
    a = create_category(client, owner, menu["id"], name="A")
    b = create_category(client, owner, menu["id"], name="B")

    other = register_and_login(client, "other@example.com")
    foreign_menu = create_menu(client, other, slug="elsewhere")
    foreign = create_category(client, other, foreign_menu["id"], name="X")

    r = client.post(
        f"/api/menus/{menu['id']}/categories/reorder",
        json={"categories": [
            {"id": b["id"], "sortOrder": 0},
            {"id": foreign["id"], "sortOrder": 1},
        ]},
        headers=owner,
    )
    assert r.status_code == 400
    error = r.json()["error"]
    assert error["code"] == "CATEGORY_NOT_FOUND"
    assert error["details"] == {"ids": [foreign["id"]]}

    listed = client.get(f"/api/menus/{menu['id']}/categories", headers=owner).json()["data"]
    assert [cat["id"] for cat in listed] == [a["id"], b["id"]]


def test_reorder_rejects_duplicate_ids(client, owner):
    menu = create_menu(client, owner)
    a = create_category(client, owner, menu["id"])

    r = client.post(
        f"/api/menus/{menu['id']}/categories/reorder",
        json={"categories": [{"id": a["id"], "sortOrder": 0}, {"id": a["id"], "sortOrder": 1}]},
        headers=owner,
    )
    assert r.status_code == 400
    assert r.json()["error"]["details"] == {"categories": ["Each id may appear only once"]}


def test_reorder_products(client, owner):
    menu = create_menu(client, owner)
    category = create_category(client, owner, menu["id"])
    first = create_product(client, owner, menu["id"], category["id"], name="First")
    second = create_product(client, owner, menu["id"], category["id"], name="Second")

    r = client.post(
        f"/api/menus/{menu['id']}/products/reorder",
        json={"products": [{"id": first["id"], "sortOrder": 5}, {"id": second["id"], "sortOrder": 1}]},
        headers=owner,
    )
    assert r.status_code == 200
    assert [p["nameKa"] for p in r.json()["data"]] == ["Second", "First"]

    other = register_and_login(client, "other@example.com")
    foreign_menu = create_menu(client, other, slug="elsewhere")
    foreign_category = create_category(client, other, foreign_menu["id"])
    foreign = create_product(client, other, foreign_menu["id"], foreign_category["id"], name="Foreign")

    r = client.post(
        f"/api/menus/{menu['id']}/products/reorder",
        json={"products": [{"id": first["id"], "sortOrder": 0}, {"id": foreign["id"], "sortOrder": 9}]},
        headers=owner,
    )
    assert r.status_code == 400
    error = r.json()["error"]
    assert error["code"] == "PRODUCT_NOT_FOUND"
    assert error["details"] == {"ids": [foreign["id"]]}

    listed = client.get(f"/api/menus/{menu['id']}/products", headers=owner).json()["data"]
    assert [p["nameKa"] for p in listed] == ["Second", "First"]


def test_reorder_variations(client, owner):
    menu = create_menu(client, owner)
    category = create_category(client, owner, menu["id"])
    product = create_product(client, owner, menu["id"], category["id"])
    base = f"/api/menus/{menu['id']}/products/{product['id']}/variations"
    small = client.post(base, json={"nameKa": "S", "price": 10}, headers=owner).json()["data"]
    large = client.post(base, json={"nameKa": "L", "price": 15}, headers=owner).json()["data"]

    r = client.post(
        f"{base}/reorder",
        json={"variations": [{"id": large["id"], "sortOrder": 0}, {"id": small["id"], "sortOrder": 1}]},
        headers=owner,
    )
    assert r.status_code == 200
    assert [v["nameKa"] for v in r.json()["data"]] == ["L", "S"]


def test_reorder_variations_with_sibling_product_id_changes_nothing(client, owner):
    menu = create_menu(client, owner)
    category = create_category(client, owner, menu["id"])
    product = create_product(client, owner, menu["id"], category["id"])
    sibling = create_product(client, owner, menu["id"], category["id"], name="Quattro Formaggi")
    base = f"/api/menus/{menu['id']}/products/{product['id']}/variations"
    small = client.post(base, json={"nameKa": "S", "price": 10}, headers=owner).json()["data"]
    large = client.post(base, json={"nameKa": "L", "price": 15}, headers=owner).json()["data"]
    stray = client.post(
        f"/api/menus/{menu['id']}/products/{sibling['id']}/variations",
        json={"nameKa": "XL", "price": 20},
        headers=owner,
    ).json()["data"]

    r = client.post(
        f"{base}/reorder",
        json={"variations": [{"id": large["id"], "sortOrder": 0}, {"id": stray["id"], "sortOrder": 1}]},
        headers=owner,
    )
    assert r.status_code == 400
    error = r.json()["error"]
    assert error["code"] == "VALIDATION_ERROR"
    assert error["details"] == {"ids": [stray["id"]]}

    listed = client.get(base, headers=owner).json()["data"]
    assert [v["id"] for v in listed] == [small["id"], large["id"]]
