from __future__ import annotations

from typing import Any, Dict, Optional

import httpx
import typer

from cli.config import CLIConfig


class ApiClient:
    """Minimal HTTP client for the compliance service."""

    def __init__(self, config: CLIConfig) -> None:
        self._config = config
        self._client = httpx.Client(base_url=config.base_url, timeout=config.timeout)

    def close(self) -> None:
        self._client.close()

    def record_reading(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("POST", "/temperatures", json=payload)

    def list_alerts(self, params: Dict[str, Any]) -> Dict[str, Any]:
        query = {key: value for key, value in params.items() if value is not None}
        return self._request("GET", "/temperatures/alerts", params=query)

    def acknowledge_alert(
        self, alert_id: str, acknowledged_by: str, note: Optional[str] = None
    ) -> Dict[str, Any]:
        return self._request(
            "POST",
            f"/temperatures/alerts/{alert_id}/acknowledge",
            json={"acknowledged_by": acknowledged_by, "note": note},
            not_found=f"Alert {alert_id} was not found.",
        )

    def resolve_alert(
        self,
        alert_id: str,
        resolved_by: str,
        resolution: Optional[str] = None,
        note: Optional[str] = None,
    ) -> Dict[str, Any]:
        return self._request(
            "POST",
            f"/temperatures/alerts/{alert_id}/resolve",
            json={"resolved_by": resolved_by, "resolution": resolution, "note": note},
            not_found=f"Alert {alert_id} was not found.",
        )

    def equipment_history(self, equipment_id: str, period: Optional[str] = None) -> Dict[str, Any]:
        params = {"period": period} if period else {}
        return self._request("GET", f"/temperatures/equipment/{equipment_id}", params=params)

    def _request(
        self,
        method: str,
        url: str,
        not_found: Optional[str] = None,
        **kwargs: Any,
    ) -> Dict[str, Any]:
        try:
            response = self._client.request(method, url, **kwargs)
            if response.status_code == 404 and not_found:
                raise typer.BadParameter(not_found)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            self._handle_http_error(exc)
        return response.json()

    @staticmethod
    def _handle_http_error(exc: httpx.HTTPStatusError) -> None:
        detail: Any = None
        try:
            data = exc.response.json()
            detail = data.get("detail")
        except Exception:  # noqa: BLE001 - best effort parsing
            detail = exc.response.text.strip()
        message = (
            f"Request failed with status {exc.response.status_code}: {detail or 'no detail provided.'}"
        )
        typer.secho(message, fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
