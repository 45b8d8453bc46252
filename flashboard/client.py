from __future__ import annotations

from typing import Any, Optional, Sequence

import httpx


class ApiError(Exception):
    """A call to the board API failed.

    ``status`` is the HTTP status, or ``None`` when the request never got a
    response.
    """

    def __init__(self, status: Optional[int], message: str) -> None:
        super().__init__(f"API error ({status}): {message}")
        self.status = status
        self.message = message


class KanbanClient:
    """Thin client for the board API.

    The device id is passed in explicitly; see :class:`flashboard.identity.DeviceIdentity`
    for a way to obtain a stable one.
    """

    def __init__(
        self,
        device_id: str,
        http: Optional[httpx.Client] = None,
        base_url: str = "http://localhost:8000",
        api_root: str = "/api/kb",
        timeout: float = 10.0,
    ) -> None:
        self.device_id = device_id
        self.api_root = api_root.rstrip("/")
        self.http = http or httpx.Client(base_url=base_url, timeout=timeout)

    def _call(self, method: str, path: str, json: Any = None) -> dict:
        try:
            response = self.http.request(
                method,
                f"{self.api_root}{path}",
                json=json,
                headers={"X-Device-Id": self.device_id},
            )
        except httpx.HTTPError as exc:
            raise ApiError(None, str(exc)) from exc
        if response.is_error:
            raise ApiError(response.status_code, response.text)
        return response.json()

    def boot(self) -> dict:
        return self._call("GET", "/boot")

    def get_board(self) -> dict:
        return self._call("GET", "/board")

    def create_column(self, title: str) -> dict:
        return self._call("POST", "/columns", {"title": title})

    def rename_column(self, column_id: str, title: str) -> dict:
        return self._call("PATCH", f"/columns/{column_id}", {"title": title})

    def delete_column(self, column_id: str) -> dict:
        return self._call("DELETE", f"/columns/{column_id}")

    def create_task(self, column_id: str, title: str, description: Optional[str] = None) -> dict:
        body = {"columnId": column_id, "title": title}
        if description is not None:
            body["description"] = description
        return self._call("POST", "/tasks", body)

    def update_task(
        self,
        task_id: str,
        title: Optional[str] = None,
        description: Optional[str] = None,
        column_id: Optional[str] = None,
    ) -> dict:
        body = {}
        if title is not None:
            body["title"] = title
        if description is not None:
            body["description"] = description
        if column_id is not None:
            body["columnId"] = column_id
        return self._call("PATCH", f"/tasks/{task_id}", body)

    def delete_task(self, task_id: str) -> dict:
        return self._call("DELETE", f"/tasks/{task_id}")

    def reorder_columns(self, ordered_ids: Sequence[str]) -> dict:
        return self._call("PATCH", "/columns/reorder", {"ordered_ids": list(ordered_ids)})

    def reorder_tasks(self, column_id: str, ordered_ids: Sequence[str]) -> dict:
        return self._call(
            "PATCH",
            "/tasks/reorder",
            {"column_id": column_id, "ordered_ids": list(ordered_ids)},
        )
