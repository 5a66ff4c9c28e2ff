import argparse
import json
from pathlib import Path
from typing import List, Optional

from . import commands
from .config import PanConfig, config_file_path
from .errors import PanError
from .models import AppLoginToken, WebLoginToken
from .user import PanUser

_APP_TOKEN_KEYS = {
    'sessionKey': 'session_key',
    'sessionSecret': 'session_secret',
    'familySessionKey': 'family_session_key',
    'familySessionSecret': 'family_session_secret',
    'accessToken': 'access_token',
    'expiresIn': 'expires_in',
}


def load_app_token_from_json(path: str) -> AppLoginToken:
    data = json.loads(Path(path).read_text(encoding='utf-8'))
    if not isinstance(data, dict):
        raise ValueError('Tokens file must be a JSON object')
    normalized = {_APP_TOKEN_KEYS.get(k, k): v for k, v in data.items()}
    return AppLoginToken.from_dict(normalized)


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog='pancloud')
    p.add_argument('--config', help='config file (default: $PANCLOUD_CONFIG_DIR/pancloud_config.json)')
    sub = p.add_subparsers(dest='cmd', required=True)

    login = sub.add_parser('login')
    login.add_argument('--cookie', default='', help='COOKIE_LOGIN_USER value of a web session')
    login.add_argument('--tokens', required=True, help='JSON file with the app session tokens')

    sub.add_parser('who')
    sub.add_parser('loglist')

    su = sub.add_parser('su')
    su.add_argument('target', help='account id or account name')

    logout = sub.add_parser('logout')
    logout.add_argument('--uid', type=int)

    rename = sub.add_parser('rename')
    rename.add_argument('old_name')
    rename.add_argument('new_name')
    rename.add_argument('--family-id', type=int, default=0)

    config = sub.add_parser('config')
    config.add_argument('--json', action='store_true')

    return p


def _describe(user: PanUser) -> str:
    return f"{user.uid}\t{user.account_name}\t{user.nickname}"


def run(config: PanConfig, args: argparse.Namespace) -> int:
    if args.cmd == 'login':
        try:
            app_token = load_app_token_from_json(args.tokens)
        except (OSError, ValueError) as exc:
            print(f'Error: cannot read tokens file {args.tokens}: {exc}')
            return 1
        user = commands.login(config, WebLoginToken(cookie_login_user=args.cookie), app_token)
        print(f'OK: logged in as {user.account_name} ({user.nickname})')
        return 0

    if args.cmd == 'who':
        user = commands.who(config)
        print(f'Current account: {user.account_name}, uid: {user.uid}, nickname: {user.nickname}, workdir: {user.workdir}')
        return 0

    if args.cmd == 'loglist':
        for active, user in commands.loglist(config):
            marker = '*' if active else ' '
            print(f"{marker} {_describe(user)}")
        return 0

    if args.cmd == 'su':
        user = commands.su(config, args.target)
        print(f'OK: switched to {user.account_name}')
        return 0

    if args.cmd == 'logout':
        removed = commands.logout(config, args.uid)
        print(f'OK: logged out {removed.account_name}')
        for active, user in commands.loglist(config):
            if active:
                print(f'Current account: {user.account_name}')
        return 0

    if args.cmd == 'rename':
        old_base, new_base = commands.rename(config, args.family_id, args.old_name, args.new_name)
        print(f'OK: {old_base} -> {new_base}')
        return 0

    if args.cmd == 'config':
        info = commands.show_config(config)
        if args.json:
            print(json.dumps(info, indent=2))
        else:
            for key, value in info.items():
                print(f"{key}\t{value}")
        return 0

    return 1


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    config = PanConfig(args.config or config_file_path())
    try:
        config.init()
        return run(config, args)
    except (PanError, OSError) as exc:
        print(f'Error: {exc}')
        return 1
    finally:
        config.close()


if __name__ == '__main__':
    raise SystemExit(main())
