from typing import Any, Dict, Optional
from email.utils import formatdate
import hashlib
import hmac
import json
import os
import uuid

import httpx

from endpoints import API_URL
from .models import AppLoginToken, WebLoginToken
from .utils import append_log_line, get_logger, redact_payload, redacted_headers, truncate_text

WEB_COOKIE_NAME = "COOKIE_LOGIN_USER"


class CloudClient:
    def __init__(
        self,
        web_token: Optional[WebLoginToken] = None,
        app_token: Optional[AppLoginToken] = None,
        base_url: str = API_URL,
        timeout: float = 30.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.base_url = base_url.rstrip('/')
        self.web_token = web_token or WebLoginToken()
        self.app_token = app_token or AppLoginToken()
        self.timeout = timeout
        self.logger = get_logger('pancloud.http')
        cookies = httpx.Cookies()
        if not self.web_token.is_empty:
            cookies.set(WEB_COOKIE_NAME, self.web_token.cookie_login_user)
        self._client = httpx.Client(
            base_url=self.base_url,
            cookies=cookies,
            timeout=self.timeout,
            transport=transport,
        )
        self.http_log_path = os.getenv("PANCLOUD_HTTP_LOG") or None

    def _signature(self, secret: str, session_key: str, method: str, uri: str, date: str) -> str:
        raw = f"SessionKey={session_key}&Operate={method}&RequestURI={uri}&Date={date}"
        return hmac.new(secret.encode("utf-8"), raw.encode("utf-8"), hashlib.sha1).hexdigest().upper()

    def _default_headers(self, method: str, path: str, family: bool) -> Dict[str, str]:
        if family:
            session_key = self.app_token.family_session_key
            secret = self.app_token.family_session_secret
        else:
            session_key = self.app_token.session_key
            secret = self.app_token.session_secret
        date = formatdate(usegmt=True)
        headers: Dict[str, str] = {
            "Accept": "application/json;charset=UTF-8",
            "Date": date,
            "SessionKey": session_key,
            "Signature": self._signature(secret, session_key, method, path, date),
            "X-Request-ID": str(uuid.uuid4()),
        }
        return headers

    def request(self, method: str, path: str, family: bool = False, **kwargs: Any) -> httpx.Response:
        url = path if path.startswith('http') else f"{self.base_url}{path}"
        uri = httpx.URL(url).path
        headers = dict(self._default_headers(method, uri, family))
        headers.update(kwargs.get('headers', {}) or {})
        kwargs['headers'] = headers
        redacted = redacted_headers(headers)
        self.logger.debug('HTTP %s %s headers=%s', method, url, redacted)
        if self.http_log_path:
            params = redact_payload(kwargs.get("params"))
            append_log_line(self.http_log_path, f"{method} {url} headers={redacted} params={params}")
        resp = self._client.request(method, url, **kwargs)
        if self.http_log_path:
            try:
                response_body: Any = redact_payload(resp.json())
            except ValueError:
                response_body = truncate_text(resp.text or "")
            append_log_line(
                self.http_log_path,
                f"{method} {url} status={resp.status_code} response={json.dumps(response_body, ensure_ascii=True)}",
            )
        resp.raise_for_status()
        return resp

    def close(self) -> None:
        self._client.close()
