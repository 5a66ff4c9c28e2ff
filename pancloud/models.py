from dataclasses import asdict, dataclass
from typing import Any, Dict

ROOT_DIR_FILE_ID = "-11"


def to_str(value: Any) -> str:
    return "" if value is None else str(value)


def to_int(value: Any) -> int:
    return int(value) if value not in (None, "") else 0


@dataclass
class FileEntity:
    file_id: str = ""
    parent_id: str = ""
    name: str = ""
    path: str = ""
    is_folder: bool = False
    size_bytes: int = 0
    last_op_time: str = ""

    @classmethod
    def root(cls) -> "FileEntity":
        return cls(file_id=ROOT_DIR_FILE_ID, name="/", path="/", is_folder=True)

    @classmethod
    def from_api(cls, payload: Dict[str, Any]) -> "FileEntity":
        return cls(
            file_id=to_str(payload.get("id") or payload.get("fileId")),
            parent_id=to_str(payload.get("parentId")),
            name=to_str(payload.get("name") or payload.get("fileName")),
            path=to_str(payload.get("path")),
            is_folder=bool(payload.get("isFolder", False)),
            size_bytes=to_int(payload.get("size")),
            last_op_time=to_str(payload.get("lastOpTime")),
        )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FileEntity":
        return cls(
            file_id=to_str(data.get("file_id")),
            parent_id=to_str(data.get("parent_id")),
            name=to_str(data.get("name")),
            path=to_str(data.get("path")),
            is_folder=bool(data.get("is_folder", False)),
            size_bytes=to_int(data.get("size_bytes")),
            last_op_time=to_str(data.get("last_op_time")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class UserInfo:
    user_id: int
    login_name: str
    nickname: str = ""
    sex: str = ""

    @classmethod
    def from_api(cls, payload: Dict[str, Any]) -> "UserInfo":
        return cls(
            user_id=to_int(payload.get("userId")),
            login_name=to_str(payload.get("loginName")),
            nickname=to_str(payload.get("nickname")),
            sex=to_str(payload.get("sex")),
        )


@dataclass
class WebLoginToken:
    cookie_login_user: str = ""

    @property
    def is_empty(self) -> bool:
        return not self.cookie_login_user

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "WebLoginToken":
        return cls(cookie_login_user=to_str(data.get("cookie_login_user")))

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class AppLoginToken:
    session_key: str = ""
    session_secret: str = ""
    family_session_key: str = ""
    family_session_secret: str = ""
    access_token: str = ""
    expires_in: int = 0

    @property
    def is_empty(self) -> bool:
        return not (self.session_key and self.session_secret)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AppLoginToken":
        return cls(
            session_key=to_str(data.get("session_key")),
            session_secret=to_str(data.get("session_secret")),
            family_session_key=to_str(data.get("family_session_key")),
            family_session_secret=to_str(data.get("family_session_secret")),
            access_token=to_str(data.get("access_token")),
            expires_in=to_int(data.get("expires_in")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
