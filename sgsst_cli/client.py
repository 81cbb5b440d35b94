from __future__ import annotations

import json
from typing import Any, Dict, List, Optional

import requests

from sgsst_cli import __version__
from sgsst_cli.exceptions import ApiError, AuthenticationError
from sgsst_cli.models.config import AppConfig


class SgsstClient:
    """Client for the SG-SST web-app dispatcher.

    The backend exposes a single endpoint; each call sends the action name
    and its parameters as one JSON ``payload`` query parameter and receives
    an envelope of the form ``{"success": ..., "data": ..., "error": ...}``.
    """

    def __init__(self, config: AppConfig) -> None:
        self._base_url = config.api_url
        self._timeout = config.timeout
        self._session = requests.Session()
        self._session.headers.update({
            "User-Agent": f"sgsst-cli/{__version__}",
            "Accept": "application/json",
        })

    def call(self, action: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        payload = json.dumps(
            {"action": action, "params": params or {}},
            ensure_ascii=False,
        )
        envelope = self._request("GET", action, params={"payload": payload})

        if not isinstance(envelope, dict):
            raise ApiError(
                f"Invalid response from SG-SST backend for {action}. Expected a JSON object."
            )
        if not envelope.get("success"):
            error = envelope.get("error") or "unknown error"
            raise ApiError(f"SG-SST backend rejected {action}: {error}")
        return envelope

    def get_company(self, empresa_id: str) -> Dict[str, Any]:
        data = self.call("getEmpresa", {"empresaId": empresa_id}).get("data")
        return data if isinstance(data, dict) else {}

    def get_risk_matrix(self, empresa_id: str) -> List[Dict[str, Any]]:
        data = self.call("getMatrizRiesgos", {"empresaId": empresa_id}).get("data")
        return data if isinstance(data, list) else []

    def get_standards(self, empresa_id: str) -> Dict[str, Any]:
        return self.call("getEstandares", {"empresaId": empresa_id})

    def update_company(self, empresa_id: str, fields: Dict[str, Any]) -> Dict[str, Any]:
        params = dict(fields)
        params["empresa_id"] = empresa_id
        return self.call("updateEmpresa", params)

    def _request(self, method: str, action: str, **kwargs: Any) -> Any:
        try:
            response = self._session.request(
                method, self._base_url, timeout=self._timeout, **kwargs,
            )
        except requests.Timeout as exc:
            raise ApiError(
                f"Timeout: the SG-SST backend did not answer {action} "
                f"within {self._timeout:g} seconds."
            ) from exc
        except requests.ConnectionError as exc:
            raise ApiError(
                f"Cannot connect to {self._base_url}. "
                "Check your network connection and deployment URL."
            ) from exc
        except requests.RequestException as exc:
            raise ApiError(
                f"Cannot connect to {self._base_url}. "
                "Check your network connection and deployment URL."
            ) from exc

        if response.status_code in (401, 403):
            raise AuthenticationError(
                "Access denied by the SG-SST deployment. "
                "Make sure the web app is published with access for anyone."
            )
        if response.status_code == 404:
            raise ApiError(
                f"Deployment not found at {self._base_url}. "
                "Run sgsst-cli --init with the current deployment URL."
            )
        if response.status_code >= 500:
            raise ApiError(
                f"SG-SST backend error ({response.status_code}). "
                "Please try again later."
            )

        try:
            response.raise_for_status()
        except requests.HTTPError as exc:
            raise ApiError(
                f"SG-SST request failed ({response.status_code}) for {action}. "
                "Please verify the request and try again."
            ) from exc

        try:
            return response.json()
        except ValueError as exc:
            raise ApiError(
                f"Invalid response from SG-SST backend for {action}. Expected JSON data."
            ) from exc
