from __future__ import annotations

from typing import Any, Dict, List

import httpx
import typer

from cli.config import CLIConfig


class ApiClient:
    """Minimal HTTP client for the playback API."""

    def __init__(self, config: CLIConfig) -> None:
        self._config = config
        self._client = httpx.Client(base_url=config.base_url, timeout=config.timeout)

    def close(self) -> None:
        self._client.close()

    def get_info(self) -> Dict[str, Any]:
        return self._get("/api/data/info")

    def get_record(self, index: int) -> Dict[str, Any]:
        return self._get(f"/api/data/by-index/{index}")

    def find_index(self, time: str) -> Dict[str, Any]:
        return self._get("/api/data/by-timestamp", params={"time": time})

    def get_history(
        self, device_id: str, end_index: int, seconds: int, mode: str = "records"
    ) -> List[Dict[str, Any]]:
        return self._get(
            "/api/data/history",
            params={
                "deviceId": device_id,
                "endIndex": end_index,
                "seconds": seconds,
                "mode": mode,
            },
        )

    def list_attacks(self) -> List[Dict[str, Any]]:
        return self._get("/api/attacks")

    def _get(self, path: str, params: Dict[str, Any] | None = None) -> Any:
        try:
            response = self._client.get(path, params=params)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            self._handle_http_error(exc)
        except httpx.TransportError as exc:
            typer.secho(
                f"Could not reach {self._config.base_url}: {exc}",
                fg=typer.colors.RED,
                err=True,
            )
            raise typer.Exit(code=1) from exc
        return response.json()

    @staticmethod
    def _handle_http_error(exc: httpx.HTTPStatusError) -> None:
        detail: str | None = None
        try:
            data = exc.response.json()
            detail = data.get("error") or data.get("detail")
        except Exception:  # noqa: BLE001 - best effort parsing
            detail = exc.response.text.strip()
        message = (
            f"Request failed with status {exc.response.status_code}: {detail or 'no detail provided.'}"
        )
        typer.secho(message, fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
