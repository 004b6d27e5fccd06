from conftest import create_category, create_menu, create_product, set_plan
from digital_menu.core.plans import (
    PLAN_FEATURES,
    PLAN_LIMITS,
    can_create,
    get_limit,
    get_remaining,
    has_feature,
)
from digital_menu.models import Plan


def test_limits_are_monotonic_across_tiers():
    order = [Plan.FREE, Plan.STARTER, Plan.PRO]
    for resource in ("menu", "category", "product"):
        limits = [get_limit(plan, resource) for plan in order]
        for lower, higher in zip(limits, limits[1:]):
            assert higher is None or (lower is not None and lower <= higher)


def test_can_create_and_remaining():
    assert can_create(Plan.FREE, "menu", 0)
    assert not can_create(Plan.FREE, "menu", 1)
    assert can_create(Plan.PRO, "menu", 10_000)
    assert get_remaining(Plan.FREE, "category", 1) == 2
    assert get_remaining(Plan.FREE, "category", 7) == 0
    assert get_remaining(Plan.STARTER, "product", 500) is None


def test_features():
    assert has_feature(Plan.FREE, "basicQR")
    assert not has_feature(Plan.FREE, "promotions")
    assert has_feature(Plan.STARTER, "promotions")
    assert not has_feature(Plan.STARTER, "allergens")
    assert all(PLAN_FEATURES[Plan.PRO].values())


def test_plan_endpoint(client, owner):
    create_menu(client, owner)
    r = client.get("/api/plan", headers=owner)
    assert r.status_code == 200
    data = r.json()["data"]
    assert data["plan"] == "FREE"
    assert data["limits"] == PLAN_LIMITS[Plan.FREE]
    assert data["features"]["promotions"] is False
    assert data["usage"] == {"menu": 1}
    assert data["remaining"] == {"menu": 0}


def test_free_menu_limit(client, owner):
    create_menu(client, owner)
    r = client.post("/api/menus", json={"name": "Second", "slug": "second"}, headers=owner)
    assert r.status_code == 403
    error = r.json()["error"]
    assert error["code"] == "PLAN_LIMIT_REACHED"
    assert error["message"] == "Your FREE plan allows up to 1 menus. Upgrade your plan to create more."


def test_quota_checked_before_body(client, owner):
    create_menu(client, owner)
    r = client.post("/api/menus", json={"name": ""}, headers=owner)
    assert r.status_code == 403


def test_free_category_limit(client, owner):
    menu = create_menu(client, owner)
    for name in ("A", "B", "C"):
        create_category(client, owner, menu["id"], name=name)

    r = client.post(f"/api/menus/{menu['id']}/categories", json={"nameKa": "D"}, headers=owner)
    assert r.status_code == 403
    assert r.json()["error"]["message"].endswith("3 categories per menu. Upgrade your plan to create more.")

    set_plan(client, "owner@example.com", Plan.STARTER)
    create_category(client, owner, menu["id"], name="D")


def test_free_product_limit(client, owner):
    menu = create_menu(client, owner)
    category = create_category(client, owner, menu["id"])
    for i in range(15):
        create_product(client, owner, menu["id"], category["id"], name=f"Item {i}")

    r = client.post(
        f"/api/menus/{menu['id']}/products",
        json={"categoryId": category["id"], "nameKa": "One too many", "price": 1},
        headers=owner,
    )
    assert r.status_code == 403
    assert r.json()["error"]["code"] == "PLAN_LIMIT_REACHED"


def test_allergens_need_pro(client, owner):
    menu = create_menu(client, owner)
    category = create_category(client, owner, menu["id"])

    r = client.post(
        f"/api/menus/{menu['id']}/products",
        json={"categoryId": category["id"], "nameKa": "Khachapuri", "price": 14, "allergens": ["GLUTEN", "DAIRY"]},
        headers=owner,
    )
    assert r.status_code == 403
    assert r.json()["error"]["code"] == "FEATURE_NOT_AVAILABLE"

    set_plan(client, "owner@example.com", Plan.PRO)
    product = create_product(
        client, owner, menu["id"], category["id"], name="Khachapuri", allergens=["GLUTEN", "DAIRY"]
    )
    assert product["allergens"] == ["GLUTEN", "DAIRY"]
