import json
import os
import sys
import tempfile
import threading
from typing import Any, BinaryIO, Dict, List, Optional, Tuple

from .api import file_info_by_path
from .errors import (
    ConfigFileNotExist,
    ConfigParseError,
    ConfigPathMissing,
    PermissionDenied,
    RemoteOperationError,
    RestorationFailed,
    UserNotFound,
)
from .models import FileEntity, to_int, to_str
from .user import Authenticator, PanUser, restore_session, setup_user_by_tokens
from .utils import executable_dir, executable_path_join, get_logger

ENV_CONFIG_DIR = "PANCLOUD_CONFIG_DIR"
CONFIG_NAME = "pancloud_config.json"

logger = get_logger("pancloud.config")


def get_config_dir() -> str:
    config_dir = os.environ.get(ENV_CONFIG_DIR)
    if config_dir is not None:
        if os.path.isabs(config_dir):
            return config_dir
        return executable_path_join(config_dir)
    return executable_dir()


def config_file_path() -> str:
    return os.path.join(get_config_dir(), CONFIG_NAME)


def default_save_dir() -> str:
    if sys.platform.startswith("win"):
        return executable_path_join("Downloads")
    if sys.platform == "android" or hasattr(sys, "getandroidapilevel"):
        return "/sdcard/Download"
    home = os.environ.get("HOME")
    if home is None:
        logger.warning("Environment HOME not set")
        return executable_path_join("Downloads")
    return os.path.join(home, "Downloads")


class PanConfig:
    """Accounts known to this client, which one is active, and where they live on disk.

    The store is bound to one JSON file for its whole lifetime. Call ``init()``
    once, mutate through the user-management methods, persist with ``save()``
    and release the file with ``close()``.
    """

    def __init__(
        self,
        config_file_path: Optional[str],
        setup_user: Authenticator = setup_user_by_tokens,
    ) -> None:
        self.active_uid = 0
        self.user_list: List[PanUser] = []
        self.save_dir = ""

        self._config_file_path = config_file_path or ""
        self._config_file: Optional[BinaryIO] = None
        self._file_mu = threading.Lock()
        self._active_user: Optional[PanUser] = None
        self.setup_user = setup_user

    @property
    def config_file_path(self) -> str:
        return self._config_file_path

    def init(self) -> None:
        self._init()

    def reload(self) -> None:
        self._init()

    def close(self) -> None:
        for u in self.user_list:
            u.disconnect()
        self._active_user = None
        self._close_config_file()

    def _close_config_file(self) -> None:
        with self._file_mu:
            if self._config_file is not None:
                config_file = self._config_file
                self._config_file = None
                config_file.close()

    def save(self) -> None:
        self._fix()
        self._lazy_open_config_file()

        with self._file_mu:
            # TypeError/ValueError here means the in-memory state is broken; let it propagate.
            data = json.dumps(self.to_dict(), indent=2, ensure_ascii=False).encode("utf-8")
            self._replace_config_file(data)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "active_uid": self.active_uid,
            "user_list": [u.to_dict() for u in self.user_list],
            "save_dir": self.save_dir,
        }

    def _init(self) -> None:
        if not self._config_file_path:
            raise ConfigPathMissing()

        save_dir = default_save_dir()
        # Another writer may have replaced the file; read through a fresh handle.
        self._close_config_file()
        self._lazy_open_config_file()

        with self._file_mu:
            self._config_file.seek(0)
            contents = self._config_file.read()

        if not contents:
            self.save_dir = save_dir
            self.save()
            return

        try:
            active_uid, user_list, loaded_save_dir = self._parse(contents, save_dir)
        except (ValueError, TypeError) as exc:
            raise ConfigParseError(f"cannot parse config file {self._config_file_path}: {exc}") from exc

        for u in self.user_list:
            u.disconnect()
        self.active_uid = active_uid
        self.user_list = user_list
        self.save_dir = loaded_save_dir
        self._active_user = None

    @staticmethod
    def _parse(contents: bytes, default_dir: str) -> Tuple[int, List[PanUser], str]:
        data = json.loads(contents)
        if not isinstance(data, dict):
            raise ValueError("top level must be an object")
        raw_users = data.get("user_list") or []
        if not isinstance(raw_users, list):
            raise ValueError("user_list must be an array")
        user_list = [PanUser.from_dict(item) for item in raw_users]
        return to_int(data.get("active_uid")), user_list, to_str(data.get("save_dir")) or default_dir

    def _lazy_open_config_file(self) -> None:
        if self._config_file is not None:
            return

        with self._file_mu:
            directory = os.path.dirname(self._config_file_path)
            try:
                if directory:
                    os.makedirs(directory, mode=0o700, exist_ok=True)
                fd = os.open(
                    self._config_file_path,
                    os.O_CREAT | os.O_RDWR | getattr(os, "O_BINARY", 0),
                    0o600,
                )
            except PermissionError as exc:
                raise PermissionDenied(f"no permission to open {self._config_file_path}") from exc
            except OSError as exc:
                raise ConfigFileNotExist(f"cannot open or create {self._config_file_path}: {exc}") from exc
            self._config_file = os.fdopen(fd, "r+b")

    def _replace_config_file(self, data: bytes) -> None:
        # Caller holds _file_mu.
        directory = os.path.dirname(os.path.abspath(self._config_file_path))
        fd, tmp_path = tempfile.mkstemp(prefix=f".{CONFIG_NAME}.", suffix=".tmp", dir=directory)
        try:
            with os.fdopen(fd, "wb") as tmp:
                tmp.write(data)
                tmp.flush()
                os.fsync(tmp.fileno())
            if self._config_file is not None:
                self._config_file.close()
                self._config_file = None
            os.replace(tmp_path, self._config_file_path)
        finally:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
        self._config_file = open(self._config_file_path, "r+b")

    def _fix(self) -> None:
        # Normalization hook for invalid or legacy values; valid data passes through.
        pass

    def active_user(self) -> Optional[PanUser]:
        """None only when there are no logins; a dangling active_uid gives an empty PanUser.

        A stored account without a live session is reconnected first, which
        raises RestorationFailed if its tokens no longer work.
        """
        if self._active_user is not None:
            return self._active_user
        if not self.user_list:
            return None

        for u in self.user_list:
            if u.uid == self.active_uid:
                if not u.is_connected:
                    self._restore(u)
                self._active_user = u
                return u
        return PanUser()

    def _restore(self, u: PanUser) -> None:
        restored = restore_session(u, self.setup_user)
        u.session = restored.session
        u.nickname = restored.nickname

        try:
            u.workdir_file_entity = file_info_by_path(u.client, 0, u.workdir)
        except RemoteOperationError as exc:
            logger.warning("workdir %s is not reachable (%s), back to /", u.workdir, exc)
            u.workdir = "/"
            u.workdir_file_entity = FileEntity.root()

    def set_active_user(self, user: PanUser) -> Optional[PanUser]:
        for u in self.user_list:
            if u.uid == user.uid:
                if u is not user:
                    tokens_changed = u.web_token != user.web_token or u.app_token != user.app_token
                    u.nickname = user.nickname
                    u.sex = user.sex
                    u.web_token = user.web_token
                    u.app_token = user.app_token
                    if user.is_connected:
                        if u.client is not user.client:
                            u.disconnect()
                        u.session = user.session
                    elif tokens_changed:
                        u.disconnect()
                break
        else:
            self.user_list.append(user)

        self.active_uid = user.uid
        self._active_user = None
        return self.active_user()

    def num_logins(self) -> int:
        return len(self.user_list)

    def switch_user(self, uid: int, username: str) -> Optional[PanUser]:
        for u in self.user_list:
            if u.uid == uid or (username and u.account_name == username):
                return self.set_active_user(u)
        raise UserNotFound(f"account not found: {username or uid}")

    def delete_user(self, uid: int) -> PanUser:
        """Remove an account; the first remaining account becomes active."""
        for idx, u in enumerate(self.user_list):
            if u.uid != uid:
                continue
            del self.user_list[idx]
            u.disconnect()
            self.active_uid = 0
            self._active_user = None
            if self.user_list:
                first = self.user_list[0]
                try:
                    self.switch_user(first.uid, "")
                except RestorationFailed as exc:
                    logger.warning("account %s is active but could not reconnect: %s", first.uid, exc)
            return u
        raise UserNotFound(f"account not found: {uid}")
