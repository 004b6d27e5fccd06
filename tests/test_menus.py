from conftest import (
    create_category,
    create_menu,
    create_product,
    register_and_login,
    set_plan,
)
from digital_menu.models import Plan


def test_create_and_list_menus(client, owner):
    menu = create_menu(client, owner)
    assert menu["status"] == "DRAFT"
    assert menu["publishedAt"] is None
    assert menu["_count"] == {"categories": 0, "views": 0}

    r = client.get("/api/menus", headers=owner)
    assert r.status_code == 200
    body = r.json()
    assert [m["id"] for m in body["data"]] == [menu["id"]]
    assert body["pagination"] == {"page": 1, "limit": 10, "total": 1, "totalPages": 1}


def test_list_menus_filters_by_status_and_paginates(client, owner):
    set_plan(client, "owner@example.com", Plan.PRO)
    for i in range(3):
        create_menu(client, owner, slug=f"menu-{i}", name=f"Menu {i}")

    r = client.get("/api/menus", params={"limit": 2, "page": 2}, headers=owner)
    body = r.json()
    assert len(body["data"]) == 1
    assert body["pagination"]["totalPages"] == 2

    r = client.get("/api/menus", params={"status": "PUBLISHED"}, headers=owner)
    assert r.json()["data"] == []
    assert r.json()["pagination"]["total"] == 0


def test_invalid_slug_rejected(client, owner):
    r = client.post("/api/menus", json={"name": "Bad", "slug": "Bad Slug!"}, headers=owner)
    assert r.status_code == 400
    assert "slug" in r.json()["error"]["details"]


def test_duplicate_slug_is_conflict(client, owner):
    create_menu(client, owner)
    other = register_and_login(client, "other@example.com")
    r = client.post("/api/menus", json={"name": "Copy", "slug": "cafe-roma"}, headers=other)
    assert r.status_code == 409
    assert r.json()["error"]["code"] == "SLUG_EXISTS"


def test_menu_detail_includes_tree(client, owner):
    menu = create_menu(client, owner)
    category = create_category(client, owner, menu["id"])
    product = create_product(client, owner, menu["id"], category["id"])

    r = client.get(f"/api/menus/{menu['id']}", headers=owner)
    assert r.status_code == 200
    data = r.json()["data"]
    assert data["_count"]["categories"] == 1
    assert data["categories"][0]["id"] == category["id"]
    assert data["categories"][0]["products"][0]["id"] == product["id"]
    assert data["categories"][0]["_count"]["products"] == 1


def test_update_menu(client, owner):
    menu = create_menu(client, owner)
    r = client.put(
        f"/api/menus/{menu['id']}",
        json={"name": "Roma Bistro", "primaryColor": "#FF5500"},
        headers=owner,
    )
    assert r.status_code == 200
    data = r.json()["data"]
    assert data["name"] == "Roma Bistro"
    assert data["primaryColor"] == "#FF5500"
    assert data["slug"] == "cafe-roma"


def test_update_menu_slug_conflict(client, owner):
    set_plan(client, "owner@example.com", Plan.STARTER)
    create_menu(client, owner, slug="taken-slug")
    menu = create_menu(client, owner)
    r = client.put(f"/api/menus/{menu['id']}", json={"slug": "taken-slug"}, headers=owner)
    assert r.status_code == 409


def test_other_owner_is_forbidden_and_unknown_is_not_found(client, owner):
    menu = create_menu(client, owner)
    intruder = register_and_login(client, "intruder@example.com")

    r = client.get(f"/api/menus/{menu['id']}", headers=intruder)
    assert r.status_code == 403
    assert r.json()["error"]["code"] == "FORBIDDEN"

    r = client.delete(f"/api/menus/{menu['id']}", headers=intruder)
    assert r.status_code == 403
    assert r.json()["error"]["message"] == "You do not have permission to delete this menu"

    r = client.get("/api/menus/does-not-exist", headers=owner)
    assert r.status_code == 404
    assert r.json()["error"]["code"] == "MENU_NOT_FOUND"


def test_delete_menu_cascades(client, owner):
    menu = create_menu(client, owner)
    category = create_category(client, owner, menu["id"])
    create_product(client, owner, menu["id"], category["id"])

    r = client.delete(f"/api/menus/{menu['id']}", headers=owner)
    assert r.status_code == 200
    assert r.json()["data"] == {"deleted": True}

    assert client.get(f"/api/menus/{menu['id']}", headers=owner).status_code == 404
    # The freed quota lets a FREE owner create a menu again
    create_menu(client, owner, slug="second-menu")


def test_category_crud(client, owner):
    menu = create_menu(client, owner)
    first = create_category(client, owner, menu["id"], name="Salads")
    second = create_category(client, owner, menu["id"], name="Soups", nameEn="Soups")
    assert first["sortOrder"] == 0
    assert second["sortOrder"] == 1

    r = client.put(
        f"/api/menus/{menu['id']}/categories/{first['id']}",
        json={"nameEn": "Fresh salads", "nameKa": None},
        headers=owner,
    )
    assert r.status_code == 200
    assert r.json()["data"]["nameEn"] == "Fresh salads"
    assert r.json()["data"]["nameKa"] == "Salads"

    r = client.delete(f"/api/menus/{menu['id']}/categories/{second['id']}", headers=owner)
    assert r.status_code == 200

    r = client.get(f"/api/menus/{menu['id']}/categories", headers=owner)
    assert [c["id"] for c in r.json()["data"]] == [first["id"]]

    r = client.get(f"/api/menus/{menu['id']}/categories/{second['id']}", headers=owner)
    assert r.status_code == 404
    assert r.json()["error"]["code"] == "CATEGORY_NOT_FOUND"


def test_product_crud_and_filters(client, owner):
    menu = create_menu(client, owner)
    pizza = create_category(client, owner, menu["id"], name="Pizza")
    drinks = create_category(client, owner, menu["id"], name="Drinks")
    margherita = create_product(client, owner, menu["id"], pizza["id"])
    create_product(client, owner, menu["id"], drinks["id"], name="Lemonade", price=6, isAvailable=False)

    assert margherita["category"]["id"] == pizza["id"]
    assert margherita["currency"] == "GEL"
    assert margherita["_count"] == {"variations": 0}

    r = client.get(f"/api/menus/{menu['id']}/products", params={"isAvailable": "false"}, headers=owner)
    assert [p["nameKa"] for p in r.json()["data"]] == ["Lemonade"]

    r = client.get(f"/api/menus/{menu['id']}/products", params={"categoryId": pizza["id"]}, headers=owner)
    assert r.json()["pagination"]["total"] == 1

    r = client.put(
        f"/api/menus/{menu['id']}/products/{margherita['id']}",
        json={"price": 20, "categoryId": drinks["id"]},
        headers=owner,
    )
    assert r.status_code == 200
    assert r.json()["data"]["price"] == 20
    assert r.json()["data"]["category"]["id"] == drinks["id"]

    r = client.delete(f"/api/menus/{menu['id']}/products/{margherita['id']}", headers=owner)
    assert r.status_code == 200
    r = client.get(f"/api/menus/{menu['id']}/products/{margherita['id']}", headers=owner)
    assert r.status_code == 404


def test_product_rejects_foreign_category_and_bad_price(client, owner):
    menu = create_menu(client, owner)
    create_category(client, owner, menu["id"])

    r = client.post(
        f"/api/menus/{menu['id']}/products",
        json={"categoryId": "nope", "nameKa": "Ghost", "price": 5},
        headers=owner,
    )
    assert r.status_code == 400
    assert r.json()["error"]["code"] == "CATEGORY_NOT_FOUND"

    r = client.post(
        f"/api/menus/{menu['id']}/products",
        json={"categoryId": "nope", "nameKa": "Cheap", "price": 1.005},
        headers=owner,
    )
    assert r.status_code == 400
    assert "price" in r.json()["error"]["details"]


def test_variations(client, owner):
    menu = create_menu(client, owner)
    category = create_category(client, owner, menu["id"])
    product = create_product(client, owner, menu["id"], category["id"])
    base = f"/api/menus/{menu['id']}/products/{product['id']}/variations"

    small = client.post(base, json={"nameKa": "Small", "price": 12}, headers=owner).json()["data"]
    large = client.post(base, json={"nameKa": "Large", "price": 22}, headers=owner).json()["data"]
    assert (small["sortOrder"], large["sortOrder"]) == (0, 1)

    r = client.put(f"{base}/{small['id']}", json={"price": 13.5}, headers=owner)
    assert r.json()["data"]["price"] == 13.5

    r = client.get(f"/api/menus/{menu['id']}/products/{product['id']}", headers=owner)
    assert r.json()["data"]["_count"]["variations"] == 2

    r = client.delete(f"{base}/{large['id']}", headers=owner)
    assert r.status_code == 200
    assert [v["id"] for v in client.get(base, headers=owner).json()["data"]] == [small["id"]]
