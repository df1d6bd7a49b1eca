import json
import requests
from typing import Optional

class ExerciseClient:
    """Simple REST client for the exercise API."""

    def __init__(self, base_url: str = "http://localhost:8000", timeout: float = 10) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def create_exercise(self, **fields) -> dict:
        resp = requests.post(f"{self.base_url}/exercises", json=fields, timeout=self.timeout)
        resp.raise_for_status()
        return resp.json()

    def list_exercises(self, **params: str) -> list[dict]:
        resp = requests.get(f"{self.base_url}/exercises", params=params, timeout=self.timeout)
        resp.raise_for_status()
        return resp.json()

    def get_exercise(self, exercise_id: str) -> Optional[dict]:
        resp = requests.get(f"{self.base_url}/exercises/{exercise_id}", timeout=self.timeout)
        if resp.status_code == 404:
            return None
        resp.raise_for_status()
        return resp.json()

    def update_exercise(self, exercise_id: str, **fields) -> dict:
        resp = requests.put(
            f"{self.base_url}/exercises/{exercise_id}", json=fields, timeout=self.timeout
        )
        resp.raise_for_status()
        return resp.json()

    def delete_exercise(self, exercise_id: str) -> bool:
        resp = requests.delete(f"{self.base_url}/exercises/{exercise_id}", timeout=self.timeout)
        if resp.status_code == 404:
            return False
        resp.raise_for_status()
        return True

    def stats(self) -> dict:
        resp = requests.get(f"{self.base_url}/stats", timeout=self.timeout)
        resp.raise_for_status()
        return resp.json()

    def export_data(self) -> dict:
        resp = requests.get(f"{self.base_url}/export", timeout=self.timeout)
        resp.raise_for_status()
        return resp.json()

    def import_data(self, payload: dict | str) -> dict:
        body = payload if isinstance(payload, str) else json.dumps(payload)
        resp = requests.post(
            f"{self.base_url}/import",
            data=body,
            headers={"Content-Type": "application/json"},
            timeout=self.timeout,
        )
        if resp.status_code == 400:
            return {"success": False, "message": resp.json().get("detail", "")}
        resp.raise_for_status()
        return resp.json()
