from __future__ import annotations

import functools
from pathlib import Path
from typing import Any

import httpx
import pytest

from pancloud.config import PanConfig
from pancloud.models import AppLoginToken, WebLoginToken
from pancloud.user import PanUser, setup_user_by_tokens


class FakePan:
    """In-memory stand-in for the pan service, served through httpx.MockTransport."""

    def __init__(self) -> None:
        self.accounts: dict[str, dict[str, Any]] = {}
        self.files: dict[tuple[int, str], dict[str, Any]] = {}
        self.requests: list[httpx.Request] = []
        self.renames: list[tuple[str, dict[str, str]]] = []
        self.rename_response: dict[str, Any] | None = None

    def add_account(self, uid: int, name: str, nickname: str = "", sex: str = "F") -> tuple[WebLoginToken, AppLoginToken]:
        web = WebLoginToken(cookie_login_user=f"cookie-{uid}")
        app = AppLoginToken(
            session_key=f"key-{uid}",
            session_secret=f"secret-{uid}",
            family_session_key=f"fkey-{uid}",
            family_session_secret=f"fsecret-{uid}",
        )
        self.accounts[app.session_key] = {
            "userId": uid,
            "loginName": name,
            "nickname": nickname or name.title(),
            "sex": sex,
        }
        return web, app

    def add_file(self, path: str, file_id: str, family_id: int = 0, is_folder: bool = False) -> None:
        self.files[(family_id, path)] = {
            "id": file_id,
            "name": path.rsplit("/", 1)[-1],
            "isFolder": is_folder,
            "path": path,
        }

    def paths(self) -> list[str]:
        return [r.url.path for r in self.requests]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        params = request.url.params

        if path == "/getUserInfo.action":
            account = self.accounts.get(request.headers.get("SessionKey", ""))
            if account is None:
                return httpx.Response(200, json={"res_code": 11, "res_message": "InvalidSessionKey"})
            return httpx.Response(200, json={"res_code": 0, **account})

        if path in ("/getFileInfo.action", "/family/file/getFileInfo.action"):
            family_id = int(params.get("familyId", "0"))
            entry = self.files.get((family_id, params["filePath"]))
            if entry is None:
                return httpx.Response(200, json={"res_code": "FileNotFound", "res_message": "file not found"})
            return httpx.Response(200, json={"res_code": 0, **entry})

        if path in ("/renameFile.action", "/family/file/renameFile.action"):
            self.renames.append((path, dict(params)))
            if self.rename_response is not None:
                return httpx.Response(200, json=self.rename_response)
            file_id = params.get("fileId") or params.get("resourceId")
            return httpx.Response(200, json={"res_code": 0, "id": file_id, "name": params["destFileName"]})

        return httpx.Response(404, text="no such endpoint")


@pytest.fixture
def pan() -> FakePan:
    return FakePan()


@pytest.fixture
def setup_user(pan: FakePan):
    return functools.partial(setup_user_by_tokens, transport=httpx.MockTransport(pan.handler))


@pytest.fixture
def config_path(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> str:
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    return str(tmp_path / "conf" / "pancloud_config.json")


@pytest.fixture
def config(config_path: str, setup_user):
    cfg = PanConfig(config_path, setup_user=setup_user)
    cfg.init()
    yield cfg
    cfg.close()


def stored_user(pan: FakePan, uid: int, name: str, workdir: str = "/") -> PanUser:
    """A record as it comes back from disk: tokens known, no live session."""
    web, app = pan.add_account(uid, name)
    return PanUser(uid=uid, account_name=name, nickname=name.title(), web_token=web, app_token=app, workdir=workdir)
