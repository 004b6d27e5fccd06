PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


def test_upload_image(client, owner, services):
    r = client.post(
        "/api/upload",
        files={"file": ("dish.png", PNG_BYTES, "image/png")},
        data={"preset": "productThumbnail"},
        headers=owner,
    )
    assert r.status_code == 201
    data = r.json()["data"]
    user_id = client.get("/api/auth/me", headers=owner).json()["data"]["id"]
    assert data["publicId"].startswith(f"digital-menu/{user_id}/")
    assert data["url"].startswith("https://res.cloudinary.com/")
    assert services.images.uploads[data["publicId"]] == PNG_BYTES


def test_upload_custom_folder(client, owner):
    r = client.post(
        "/api/upload",
        files={"file": ("logo.webp", b"RIFF....WEBP", "image/webp")},
        data={"preset": "logo", "folder": "brand"},
        headers=owner,
    )
    assert r.status_code == 201
    assert r.json()["data"]["publicId"].startswith("brand/")


def test_upload_rejections(client, owner):
    r = client.post("/api/upload", data={"preset": "product"}, headers=owner)
    assert r.status_code == 400
    assert r.json()["error"]["message"] == "No file provided"

    r = client.post(
        "/api/upload",
        files={"file": ("notes.txt", b"hello", "text/plain")},
        headers=owner,
    )
    assert r.status_code == 400
    assert "image/png" in r.json()["error"]["details"]["allowed"]

    r = client.post(
        "/api/upload",
        files={"file": ("dish.png", PNG_BYTES, "image/png")},
        data={"preset": "poster"},
        headers=owner,
    )
    assert r.status_code == 400
    assert r.json()["error"]["message"].startswith("Invalid preset")

    r = client.post("/api/upload", files={"file": ("dish.png", PNG_BYTES, "image/png")})
    assert r.status_code == 401


def test_upload_too_large(client, owner, monkeypatch):
    from digital_menu.core.config import get_settings

    monkeypatch.setattr(get_settings(), "upload_max_bytes", 1024 * 1024)
    r = client.post(
        "/api/upload",
        files={"file": ("big.png", b"\x00" * (1024 * 1024 + 1), "image/png")},
        headers=owner,
    )
    assert r.status_code == 400
    assert r.json()["error"]["message"] == "File too large. Maximum size is 1MB"


def test_oversized_upload_is_not_read(client, owner, monkeypatch):
    from starlette.datastructures import UploadFile

    from digital_menu.core.config import get_settings

    reads = []

    async def tracking_read(self, size=-1):
        reads.append(self.filename)
        return b""

    monkeypatch.setattr(get_settings(), "upload_max_bytes", 1024 * 1024)
    monkeypatch.setattr(UploadFile, "read", tracking_read)
    r = client.post(
        "/api/upload",
        files={"file": ("huge.png", b"\x00" * (2 * 1024 * 1024), "image/png")},
        headers=owner,
    )
    assert r.status_code == 400
    assert r.json()["error"]["message"] == "File too large. Maximum size is 1MB"
    assert reads == []
