import posixpath
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional, Union

import httpx

from .api import get_user_info, is_family_cloud
from .client import CloudClient
from .errors import RemoteOperationError, RestorationFailed
from .models import AppLoginToken, FileEntity, WebLoginToken, to_int, to_str


def _nested(data: Dict[str, Any], key: str) -> Dict[str, Any]:
    value = data.get(key)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise TypeError(f"{key} must be an object, got {type(value).__name__}")
    return value


@dataclass(frozen=True)
class Disconnected:
    """Only the stored credentials are known."""


@dataclass(frozen=True)
class Connected:
    client: CloudClient


SessionState = Union[Disconnected, Connected]


@dataclass
class PanUser:
    uid: int = 0
    account_name: str = ""
    nickname: str = ""
    sex: str = ""
    web_token: WebLoginToken = field(default_factory=WebLoginToken)
    app_token: AppLoginToken = field(default_factory=AppLoginToken)
    workdir: str = "/"
    workdir_file_entity: FileEntity = field(default_factory=FileEntity.root)
    session: SessionState = field(default_factory=Disconnected, repr=False, compare=False)

    @property
    def is_connected(self) -> bool:
        return isinstance(self.session, Connected)

    @property
    def client(self) -> Optional[CloudClient]:
        if isinstance(self.session, Connected):
            return self.session.client
        return None

    @property
    def has_credentials(self) -> bool:
        return not self.app_token.is_empty

    def path_join(self, family_id: int, p: str) -> str:
        if not p.startswith("/"):
            base = "/" if is_family_cloud(family_id) else (self.workdir or "/")
            p = posixpath.join(base, p)
        return "/" + posixpath.normpath(p).lstrip("/")

    def disconnect(self) -> None:
        client = self.client
        self.session = Disconnected()
        if client is not None:
            client.close()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PanUser":
        if not isinstance(data, dict):
            raise TypeError(f"user entry must be an object, got {type(data).__name__}")
        entity = _nested(data, "workdir_file_entity")
        return cls(
            uid=to_int(data.get("uid")),
            account_name=to_str(data.get("account_name")),
            nickname=to_str(data.get("nickname")),
            sex=to_str(data.get("sex")),
            web_token=WebLoginToken.from_dict(_nested(data, "web_token")),
            app_token=AppLoginToken.from_dict(_nested(data, "app_token")),
            workdir=to_str(data.get("workdir")) or "/",
            workdir_file_entity=FileEntity.from_dict(entity) if entity else FileEntity.root(),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "uid": self.uid,
            "account_name": self.account_name,
            "nickname": self.nickname,
            "sex": self.sex,
            "web_token": self.web_token.to_dict(),
            "app_token": self.app_token.to_dict(),
            "workdir": self.workdir,
            "workdir_file_entity": self.workdir_file_entity.to_dict(),
        }


Authenticator = Callable[[WebLoginToken, AppLoginToken], PanUser]


def setup_user_by_tokens(
    web_token: WebLoginToken,
    app_token: AppLoginToken,
    transport: Optional[httpx.BaseTransport] = None,
) -> PanUser:
    if app_token.is_empty:
        raise RestorationFailed("login tokens are empty")
    client = CloudClient(web_token=web_token, app_token=app_token, transport=transport)
    try:
        info = get_user_info(client)
    except RemoteOperationError as exc:
        client.close()
        raise RestorationFailed(f"login tokens were rejected: {exc}") from exc
    return PanUser(
        uid=info.user_id,
        account_name=info.login_name,
        nickname=info.nickname,
        sex=info.sex,
        web_token=web_token,
        app_token=app_token,
        session=Connected(client),
    )


def restore_session(user: PanUser, setup_user: Authenticator) -> PanUser:
    """Replay the stored tokens of ``user`` and return the authenticated record.

    ``user`` itself is left untouched; the caller decides what to copy over.
    Raises RestorationFailed if the service does not accept the tokens as
    this account's.
    """
    if not user.has_credentials:
        raise RestorationFailed(f"account {user.account_name or user.uid} has no stored tokens")
    restored = setup_user(user.web_token, user.app_token)
    if not restored.is_connected:
        raise RestorationFailed(f"account {user.account_name or user.uid} did not connect")
    if restored.uid != user.uid:
        restored.disconnect()
        raise RestorationFailed(
            f"stored tokens of account {user.uid} authenticate account {restored.uid}"
        )
    return restored
