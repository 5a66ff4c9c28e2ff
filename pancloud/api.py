from typing import Any, Dict, Optional

import httpx

from endpoints import FAMILY_FILES, FILES, USER
from .client import CloudClient
from .errors import RemoteOperationError
from .models import FileEntity, UserInfo


def _json_or_raise(resp: httpx.Response) -> Dict[str, Any]:
    try:
        payload = resp.json()
    except ValueError as exc:
        raise RemoteOperationError(f"Non-JSON response: {resp.text[:200]}", status_code=resp.status_code) from exc
    if not isinstance(payload, dict):
        raise RemoteOperationError(f"Unexpected response: {payload!r}", status_code=resp.status_code)
    code = payload.get("res_code")
    if code not in (None, 0, "0"):
        msg = payload.get("res_message") or "Unknown error"
        raise RemoteOperationError(msg, code=str(code), status_code=resp.status_code)
    return payload


def _call(client: CloudClient, endpoint: Dict[str, str], family: bool = False, **kwargs: Any) -> Dict[str, Any]:
    try:
        resp = client.request(endpoint["method"], endpoint["path"], family=family, **kwargs)
    except httpx.HTTPStatusError as exc:
        raise RemoteOperationError(
            f"HTTP {exc.response.status_code}: {exc.response.text[:200]}",
            status_code=exc.response.status_code,
        ) from exc
    except httpx.HTTPError as exc:
        raise RemoteOperationError(f"request failed: {exc}") from exc
    return _json_or_raise(resp)


def is_family_cloud(family_id: int) -> bool:
    return family_id > 0


def get_user_info(client: CloudClient) -> UserInfo:
    payload = _call(client, USER["info"])
    info = UserInfo.from_api(payload)
    if not info.user_id:
        raise RemoteOperationError("user info response carries no user id")
    return info


def file_info_by_path(client: CloudClient, family_id: int, path: str) -> FileEntity:
    if is_family_cloud(family_id):
        params = {"familyId": family_id, "filePath": path}
        payload = _call(client, FAMILY_FILES["info_by_path"], family=True, params=params)
    else:
        payload = _call(client, FILES["info_by_path"], params={"filePath": path})
    entity = FileEntity.from_api(payload)
    if not entity.file_id:
        raise RemoteOperationError(f"file not found: {path}")
    if not entity.path:
        entity.path = path
    return entity


def _entity_or_none(payload: Dict[str, Any]) -> Optional[FileEntity]:
    entity = FileEntity.from_api(payload)
    if not entity.file_id:
        return None
    return entity


def rename_file(client: CloudClient, file_id: str, new_name: str) -> Optional[FileEntity]:
    params = {"fileId": file_id, "destFileName": new_name}
    payload = _call(client, FILES["rename"], params=params)
    return _entity_or_none(payload)


def family_rename_file(client: CloudClient, family_id: int, file_id: str, new_name: str) -> Optional[FileEntity]:
    params = {"familyId": family_id, "resourceId": file_id, "destFileName": new_name}
    payload = _call(client, FAMILY_FILES["rename"], family=True, params=params)
    return _entity_or_none(payload)
