import posixpath
from typing import Any, Dict, List, Optional, Tuple

from .api import family_rename_file, file_info_by_path, is_family_cloud, rename_file
from .config import PanConfig
from .errors import RemoteOperationError, ValidationError
from .models import AppLoginToken, WebLoginToken
from .user import PanUser
from .utils import FILE_NAME_SPECIAL_CHARS, check_file_name_valid, get_logger

logger = get_logger('pancloud')


def connected_user(config: PanConfig) -> PanUser:
    """Active account with a live session, or ValidationError when nobody is logged in."""
    user = config.active_user()
    if user is None or not user.is_connected:
        raise ValidationError("not logged in, use the login command first")
    return user


def login(config: PanConfig, web_token: WebLoginToken, app_token: AppLoginToken) -> PanUser:
    user = config.setup_user(web_token, app_token)
    active = config.set_active_user(user)
    config.save()
    logger.debug("logged in uid=%s", user.uid)
    return active or user


def who(config: PanConfig) -> PanUser:
    return connected_user(config)


def loglist(config: PanConfig) -> List[Tuple[bool, PanUser]]:
    return [(u.uid == config.active_uid, u) for u in config.user_list]


def su(config: PanConfig, target: str) -> PanUser:
    target = target.strip()
    if not target:
        raise ValidationError("specify the account id or name to switch to")
    uid = int(target) if target.isdigit() else 0
    user = config.switch_user(uid, target)
    config.save()
    return user


def logout(config: PanConfig, uid: Optional[int] = None) -> PanUser:
    if uid is None:
        uid = config.active_uid
    if not uid:
        raise ValidationError("not logged in")
    removed = config.delete_user(uid)
    config.save()
    return removed


def show_config(config: PanConfig) -> Dict[str, Any]:
    return {
        "config_file": config.config_file_path,
        "save_dir": config.save_dir,
        "active_uid": config.active_uid,
        "logins": config.num_logins(),
    }


def rename(config: PanConfig, family_id: int, old_name: str, new_name: str) -> Tuple[str, str]:
    """Rename a file inside its own directory and return both base names.

    ``family_id`` greater than zero selects the family space, anything else the
    personal space. Cached working-directory state is not touched.
    """
    if not old_name or not old_name.strip():
        raise ValidationError("specify the file to rename")
    if not new_name or not new_name.strip():
        raise ValidationError("specify the new file name")

    user = connected_user(config)
    old_path = user.path_join(family_id, old_name.strip())
    new_path = user.path_join(family_id, new_name.strip())
    if posixpath.dirname(old_path) != posixpath.dirname(new_path):
        raise ValidationError("only files in the same directory can be renamed")

    new_base = posixpath.basename(new_path)
    if not new_base or not check_file_name_valid(new_base):
        raise ValidationError(f"file name must not contain any of: {FILE_NAME_SPECIAL_CHARS}")

    try:
        source = file_info_by_path(user.client, family_id, old_path)
    except RemoteOperationError as exc:
        raise RemoteOperationError(
            f"source file not found: {old_path}, {exc.message}",
            code=exc.code,
            status_code=exc.status_code,
        ) from exc

    if is_family_cloud(family_id):
        result = family_rename_file(user.client, family_id, source.file_id, new_base)
    else:
        result = rename_file(user.client, source.file_id, new_base)
    if result is None:
        raise RemoteOperationError("rename failed")

    logger.debug("renamed file_id=%s %s -> %s", source.file_id, old_path, new_path)
    return posixpath.basename(old_path), new_base
