# muirgen/client/api.py

from dataclasses import dataclass
from typing import Dict, List, Optional

import requests

from ..errors import AuthError, DatabaseError, ValidationError


DEFAULT_API_URL = "http://localhost:5000"


@dataclass(frozen=True)
class InitInfo:
    user_required: bool
    vessel_required: bool
    is_logged_in: bool


class ApiClient:
    """
    Thin wrapper around the REST endpoints.
    ``http`` may be any object with requests-style ``get``/``post`` methods.
    """

    def __init__(self, base_url: str = DEFAULT_API_URL, http=None, timeout: float = 5.0):
        self.base_url = base_url.rstrip("/")
        self.http = http or requests.Session()
        self.timeout = timeout

    # -------------------------------
    # Transport helpers
    # -------------------------------

    def _headers(self, token: Optional[str]) -> Dict[str, str]:
        return {"Authorization": f"Bearer {token}"} if token else {}

    def _request(self, method: str, path: str, token: Optional[str] = None, json=None):
        url = f"{self.base_url}{path}"
        kwargs = {"headers": self._headers(token), "timeout": self.timeout}
        if json is not None:
            kwargs["json"] = json
        try:
            res = getattr(self.http, method)(url, **kwargs)
        except requests.RequestException as exc:
            raise DatabaseError("Offline") from exc

        try:
            data = res.json()
        except ValueError:
            data = {}
        error = data.get("error") if isinstance(data, dict) else None

        if res.status_code == 401:
            raise AuthError(error)
        if 400 <= res.status_code < 500:
            raise ValidationError(error)
        if res.status_code >= 500:
            raise DatabaseError(error)
        return data

    # -------------------------------
    # Endpoints
    # -------------------------------

    def test_db(self) -> Dict[str, str]:
        """Returns ``{"status", "serverTime"}``; raises DatabaseError when offline."""
        return self._request("get", "/api/test-db")

    def check_init(self, token: Optional[str] = None) -> InitInfo:
        data = self._request("get", "/api/check-init", token=token)
        return InitInfo(
            user_required=bool(data.get("userRequired")),
            vessel_required=bool(data.get("vesselRequired")),
            is_logged_in=bool(data.get("isLoggedIn")),
        )

    def login(self, handle: str, password: str) -> str:
        """Returns the session token for valid credentials."""
        data = self._request(
            "post", "/api/login", json={"userHandle": handle, "userPassword": password}
        )
        token = data.get("token")
        if not token:
            raise AuthError()
        return token

    def save_user(
        self,
        handle: str,
        name: str,
        password: str,
        is_admin: bool = False,
        vessel_uuid: Optional[str] = None,
        token: Optional[str] = None,
    ) -> None:
        body = {
            "userHandle": handle,
            "userName": name,
            "userPassword": password,
            "userIsAdmin": is_admin,
        }
        if vessel_uuid:
            body["userVesselUuid"] = vessel_uuid
        self._request("post", "/api/save-user", token=token, json=body)

    def get_vessel(self, token: Optional[str] = None) -> Optional[Dict[str, object]]:
        """Returns the vessel fields, or ``None`` while setup is required."""
        data = self._request("get", "/api/get-vessel", token=token)
        if data.get("setupRequired"):
            return None
        return data

    def save_vessel(self, fields: Dict[str, object], token: Optional[str] = None) -> None:
        self._request("post", "/api/save-vessel", token=token, json=fields)

    def get_active_vessels(self) -> List[Dict[str, str]]:
        data = self._request("get", "/api/vessels/get-active")
        return data if isinstance(data, list) else []
