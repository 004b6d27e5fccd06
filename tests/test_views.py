from conftest import create_category, create_menu, publish, register_and_login

IPHONE = (
    "Mozilla/5.0 (iPhone; CPU iPhone OS 17_0 like Mac OS X) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/17.0 Mobile/15E148 Safari/604.1"
)
DESKTOP_CHROME = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)
IPAD = "Mozilla/5.0 (iPad; CPU OS 17_0 like Mac OS X) AppleWebKit/605.1.15 Version/17.0 Mobile Safari/604.1"


def _published_menu(client, headers):
    menu = create_menu(client, headers)
    create_category(client, headers, menu["id"])
    assert publish(client, headers, menu["id"]).status_code == 200
    return menu


def test_track_view_requires_published_menu(client, owner):
    menu = create_menu(client, owner)

    r = client.post(f"/api/menus/{menu['id']}/views")
    assert r.status_code == 403
    assert r.json()["error"]["message"] == "Cannot track views for unpublished menus"

    create_category(client, owner, menu["id"])
    assert publish(client, owner, menu["id"]).status_code == 200
    r = client.get(f"/api/menus/{menu['id']}", headers=owner)
    assert r.json()["data"]["_count"]["views"] == 0

    r = client.post("/api/menus/unknown/views")
    assert r.status_code == 404


def test_track_view_is_public(client, owner):
    menu = _published_menu(client, owner)

    r = client.post(
        f"/api/menus/{menu['id']}/views",
        headers={"User-Agent": IPHONE, "X-Forwarded-For": "203.0.113.7, 10.0.0.1"},
    )
    assert r.status_code == 201
    data = r.json()["data"]
    assert data["tracked"] is True
    assert data["viewId"]

    r = client.get(f"/api/menus/{menu['id']}", headers=owner)
    assert r.json()["data"]["_count"]["views"] == 1


def test_analytics_report(client, owner):
    menu = _published_menu(client, owner)
    for agent in (IPHONE, IPHONE, DESKTOP_CHROME, IPAD):
        assert client.post(f"/api/menus/{menu['id']}/views", headers={"User-Agent": agent}).status_code == 201

    r = client.get(f"/api/menus/{menu['id']}/analytics", params={"period": "7d"}, headers=owner)
    assert r.status_code == 200
    report = r.json()["data"]

    overview = report["overview"]
    assert overview["totalViews"] == 4
    assert overview["viewsToday"] == 4
    assert overview["viewsThisWeek"] == 4
    assert overview["viewsThisMonth"] == 4
    assert overview["averageDaily"] == round(4 / 7, 1)

    assert len(report["dailyViews"]) == 7
    assert report["dailyViews"][-1]["views"] == 4
    assert sum(day["views"] for day in report["dailyViews"]) == 4
    assert report["period"]["days"] == 7

    devices = {d["device"]: (d["count"], d["percentage"]) for d in report["deviceBreakdown"]}
    assert devices == {"mobile": (2, 50.0), "desktop": (1, 25.0), "tablet": (1, 25.0)}

    browsers = {b["browser"]: b["count"] for b in report["browserBreakdown"]}
    assert browsers == {"Safari": 3, "Chrome": 1}


def test_analytics_custom_period_and_errors(client, owner):
    menu = _published_menu(client, owner)
    url = f"/api/menus/{menu['id']}/analytics"

    r = client.get(
        url,
        params={"period": "custom", "startDate": "2024-01-01", "endDate": "2024-01-10"},
        headers=owner,
    )
    assert r.status_code == 200
    report = r.json()["data"]
    assert report["period"] == {"start": "2024-01-01", "end": "2024-01-10", "days": 10}
    assert len(report["dailyViews"]) == 10
    assert report["deviceBreakdown"] == []

    r = client.get(
        url,
        params={"period": "custom", "startDate": "2024-02-01", "endDate": "2024-01-01"},
        headers=owner,
    )
    assert r.status_code == 400

    r = client.get(url, params={"period": "1y"}, headers=owner)
    assert r.status_code == 400
    assert "period" in r.json()["error"]["details"]

    intruder = register_and_login(client, "intruder@example.com")
    r = client.get(url, headers=intruder)
    assert r.status_code == 403
    assert r.json()["error"]["message"] == "You do not have permission to view analytics for this menu"
