"""
tests/test_upload.py -- Integration tests for POST /upload.

Coverage:
  - Gated like any other write (401 without a token, nothing written)
  - 201 with a fully-qualified URL; the file is then served from the site root
  - 400 when the multipart "file" field is missing
  - Stored names keep only the client's extension
"""

from __future__ import annotations

from pathlib import Path

from auth.gate import AccessPolicy
from resources.uploads import stored_name


def test_upload_requires_token(api_client) -> None:
    client, state = api_client
    before = set(Path(state["uploads"].folder).iterdir())
    resp = client.post("/upload", files={"file": ("a.txt", b"hello", "text/plain")})
    assert resp.status_code == 401
    assert resp.json() == {"status": 401, "message": "Wrong access token"}
    assert set(Path(state["uploads"].folder).iterdir()) == before


def test_upload_stores_and_serves_file(api_client, register_and_login) -> None:
    client, state = api_client
    token = register_and_login(client)
    resp = client.post(
        "/upload",
        files={"file": ("photo.png", b"\x89PNG-bytes", "image/png")},
        headers={"Authorization": f"Bearer {token}"},
    )
    assert resp.status_code == 201
    path = resp.json()["path"]
    assert path.startswith("http://testserver/file-")
    assert path.endswith(".png")

    name = path.rsplit("/", 1)[1]
    assert (Path(state["uploads"].folder) / name).read_bytes() == b"\x89PNG-bytes"
    served = client.get(f"/{name}")
    assert served.status_code == 200
    assert served.content == b"\x89PNG-bytes"


def test_upload_without_file_field(api_client, register_and_login) -> None:
    client, _ = api_client
    token = register_and_login(client)
    resp = client.post("/upload", data={"other": "x"}, headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 400
    assert resp.json() == {"message": "file field is required"}


def test_upload_open_when_write_gating_off(gateway) -> None:
    client, _ = gateway(AccessPolicy(require_auth_on_read=False, require_auth_on_write=False))
    resp = client.post("/upload", files={"file": ("notes.txt", b"hi", "text/plain")})
    assert resp.status_code == 201


def test_stored_name_keeps_only_extension() -> None:
    assert stored_name("file", "holiday.jpeg", 1700000000000) == "file-1700000000000.jpeg"
    assert stored_name("file", "../../etc/passwd", 1) == "file-1"
    assert stored_name("file", "..\\evil.exe", 2) == "file-2.exe"
    assert stored_name("file", None, 3) == "file-3"
