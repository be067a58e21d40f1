"""
Test helpers for the ReBAC authorization core.

FakeOpenFGA is an in-memory stand-in for the tuple store HTTP API, served
through ``httpx.MockTransport``. Check and list-objects answer from directly
stored tuples only; computed relations are not evaluated.
"""

import json
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

import httpx

TupleDict = Dict[str, str]


class FakeOpenFGA:
    """In-memory tuple store emulator."""

    def __init__(self, list_stores_page_size: int = 100):
        self.stores: Dict[str, Dict[str, Any]] = {}
        self.list_stores_page_size = list_stores_page_size
        self.calls: List[Tuple[str, Optional[Dict[str, Any]]]] = []
        self._failures: Dict[str, List[Tuple[int, str]]] = {}

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    # ------------------------------------------------------------------
    # Test setup / inspection
    # ------------------------------------------------------------------

    def create_store(self, name: str, store_id: Optional[str] = None) -> str:
        store_id = store_id or uuid.uuid4().hex
        self.stores[store_id] = {"id": store_id, "name": name, "tuples": [], "models": []}
        return store_id

    def add_model(self, store_id: str, model: Optional[Dict[str, Any]] = None) -> str:
        model_id = uuid.uuid4().hex
        # Newest first, like the real API.
        self.stores[store_id]["models"].insert(0, {"id": model_id, **(model or {})})
        return model_id

    def seed(self, store_id: str, *tuples: Tuple[str, str, str]):
        for user, relation, obj in tuples:
            self.stores[store_id]["tuples"].append({"user": user, "relation": relation, "object": obj})

    def tuples(self, store_id: str) -> List[Tuple[str, str, str]]:
        return [(t["user"], t["relation"], t["object"]) for t in self.stores[store_id]["tuples"]]

    def fail(self, operation: str, status_code: int = 500, body: str = "internal error", times: int = 1):
        """Make the next ``times`` calls of ``operation`` return an error."""
        self._failures.setdefault(operation, []).extend([(status_code, body)] * times)

    def calls_for(self, operation: str) -> List[Optional[Dict[str, Any]]]:
        return [body for op, body in self.calls if op == operation]

    # ------------------------------------------------------------------
    # HTTP handling
    # ------------------------------------------------------------------

    def handle(self, request: httpx.Request) -> httpx.Response:
        parts = [p for p in request.url.path.split("/") if p]
        body = json.loads(request.content) if request.content else None
        operation = self._operation(request.method, parts)
        self.calls.append((operation, body))

        if operation == "unknown":
            return httpx.Response(404, json={"code": "undefined_endpoint", "message": "not found"})

        queued = self._failures.get(operation)
        if queued:
            status_code, text = queued.pop(0)
            return httpx.Response(status_code, text=text)

        if operation == "list_stores":
            return self._list_stores(request)
        if operation == "create_store":
            store_id = self.create_store(body["name"])
            return httpx.Response(201, json={"id": store_id, "name": body["name"]})

        store = self.stores.get(parts[1])
        if store is None:
            return httpx.Response(404, json={"code": "store_id_not_found", "message": "store not found"})

        handler = getattr(self, f"_{operation}")
        return handler(store, body or {})

    @staticmethod
    def _operation(method: str, parts: List[str]) -> str:
        if parts == ["stores"]:
            return "list_stores" if method == "GET" else "create_store"
        if len(parts) == 3 and parts[0] == "stores":
            if parts[2] == "authorization-models":
                return "read_models" if method == "GET" else "write_model"
            return {
                "check": "check",
                "write": "write",
                "read": "read",
                "list-objects": "list_objects",
            }.get(parts[2], "unknown")
        return "unknown"

    def _list_stores(self, request: httpx.Request) -> httpx.Response:
        stores = [{"id": s["id"], "name": s["name"]} for s in self.stores.values()]
        start = int(request.url.params.get("continuation_token") or 0)
        end = start + self.list_stores_page_size
        token = str(end) if end < len(stores) else ""
        return httpx.Response(200, json={"stores": stores[start:end], "continuation_token": token})

    def _check(self, store: Dict[str, Any], body: Dict[str, Any]) -> httpx.Response:
        return httpx.Response(200, json={"allowed": body["tuple_key"] in store["tuples"]})

    def _write(self, store: Dict[str, Any], body: Dict[str, Any]) -> httpx.Response:
        writes = (body.get("writes") or {}).get("tuple_keys") or []
        deletes = (body.get("deletes") or {}).get("tuple_keys") or []

        for key in writes:
            if key in store["tuples"]:
                return self._invalid(f"cannot write a tuple which already exists: {key}")
        for key in deletes:
            if key not in store["tuples"]:
                return self._invalid(f"cannot delete a tuple which does not exist: {key}")

        for key in deletes:
            store["tuples"].remove(key)
        store["tuples"].extend(dict(key) for key in writes)
        return httpx.Response(200, json={})

    def _read(self, store: Dict[str, Any], body: Dict[str, Any]) -> httpx.Response:
        key_filter = body.get("tuple_key")
        if key_filter and not key_filter.get("object"):
            return self._invalid("the 'object' field is required when a tuple_key is provided")

        matched = [
            t for t in store["tuples"]
            if not key_filter or all(t[field] == value for field, value in key_filter.items())
        ]

        page_size = body.get("page_size", 50)
        start = int(body.get("continuation_token") or 0)
        end = start + page_size
        timestamp = datetime.now(timezone.utc).isoformat()
        return httpx.Response(200, json={
            "tuples": [{"key": t, "timestamp": timestamp} for t in matched[start:end]],
            "continuation_token": str(end) if end < len(matched) else "",
        })

    def _list_objects(self, store: Dict[str, Any], body: Dict[str, Any]) -> httpx.Response:
        prefix = f"{body['type']}:"
        objects = []
        for t in store["tuples"]:
            if t["user"] == body["user"] and t["relation"] == body["relation"] and t["object"].startswith(prefix):
                if t["object"] not in objects:
                    objects.append(t["object"])
        return httpx.Response(200, json={"objects": objects})

    def _write_model(self, store: Dict[str, Any], body: Dict[str, Any]) -> httpx.Response:
        model_id = self.add_model(store["id"], body)
        return httpx.Response(201, json={"authorization_model_id": model_id})

    def _read_models(self, store: Dict[str, Any], body: Dict[str, Any]) -> httpx.Response:
        return httpx.Response(200, json={"authorization_models": store["models"]})

    @staticmethod
    def _invalid(message: str) -> httpx.Response:
        return httpx.Response(400, json={"code": "validation_error", "message": message})
