"""
Tuple store gateway.

Sole network boundary to the tuple store (OpenFGA HTTP API). Every other
component reaches the backend through this client.
"""

import time
from typing import Any, Dict, Iterable, List, Optional

import httpx

from shared.errors import (
    BackendError,
    BackendUnavailableError,
    InternalError,
    ModelNotFoundError,
    StoreNotFoundError,
)
from shared.logging import get_logger
from shared.metrics import MetricsCollector

from .schema import get_authorization_model, get_initial_tuples
from ..tuples.models import Store, StoreState, Tuple, TupleKey, TupleKeyFilter, TupleKeys

DEFAULT_PAGE_SIZE = 100
DEFAULT_BOOTSTRAP_BATCH_SIZE = 50


class TupleStoreClient:
    """Client for the tuple store HTTP protocol."""

    def __init__(
        self,
        api_url: str,
        store_name: str = "openobserve",
        timeout: float = 30.0,
        store_id: str = "",
        model_id: Optional[str] = None,
        page_size: int = DEFAULT_PAGE_SIZE,
        bootstrap_batch_size: int = DEFAULT_BOOTSTRAP_BATCH_SIZE,
        http_client: Optional[httpx.AsyncClient] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        metrics: Optional[MetricsCollector] = None,
    ):
        self.base_url = api_url.rstrip('/')
        self.store_name = store_name
        self.page_size = page_size
        self.bootstrap_batch_size = bootstrap_batch_size
        self.metrics = metrics
        self.logger = get_logger("rebac.store")

        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout,
            transport=transport
        )

        # Replaced as a whole, never mutated.
        self._state: Optional[StoreState] = (
            StoreState(store_id=store_id, model_id=model_id) if store_id else None
        )

    @property
    def state(self) -> Optional[StoreState]:
        return self._state

    @property
    def store_id(self) -> Optional[str]:
        return self._state.store_id if self._state else None

    @property
    def model_id(self) -> Optional[str]:
        return self._state.model_id if self._state else None

    async def close(self):
        """Release the HTTP client if this gateway created it."""
        if self._owns_client:
            await self._client.aclose()

    # ------------------------------------------------------------------
    # Bootstrap
    # ------------------------------------------------------------------

    async def bootstrap(
        self,
        store_name: Optional[str] = None,
        model: Optional[Dict[str, Any]] = None,
        initial_tuples: Optional[List[TupleKey]] = None,
        root_user_email: str = "root@example.com",
        default_org: str = "default",
        meta_org: str = "_meta",
    ) -> StoreState:
        """Resolve (or create) the store and model, seeding a new store once.

        Initial tuples are only written into a store created by this call so
        that live permission state in an existing store is never touched.
        """
        store_name = store_name or self.store_name
        is_new_store = False

        if self._state is not None:
            store_id = self._state.store_id
            self.logger.info("Using configured store", store_id=store_id)
        else:
            existing = next((s for s in await self.list_stores() if s.name == store_name), None)
            if existing is not None:
                store_id = existing.id
                self.logger.info("Using existing store", store_id=store_id, store_name=store_name)
            else:
                created = await self.create_store(store_name)
                store_id = created.id
                is_new_store = True
                self.logger.info("Created new store", store_id=store_id, store_name=store_name)

        model_id = await self._latest_model_id(store_id)
        if model_id is None:
            self.logger.info("No authorization model found, writing default model", store_id=store_id)
            model_id = await self._write_model(store_id, model or get_authorization_model())
        else:
            self.logger.info("Using existing authorization model", model_id=model_id)

        if is_new_store:
            if initial_tuples is None:
                initial_tuples = get_initial_tuples(root_user_email, default_org, meta_org)
            await self._write_initial_tuples(store_id, model_id, initial_tuples)

        self._state = StoreState(store_id=store_id, model_id=model_id, is_new_store=is_new_store)
        return self._state

    async def _write_initial_tuples(self, store_id: str, model_id: Optional[str], tuples: List[TupleKey]):
        self.logger.info("Writing initial tuples", count=len(tuples))
        failed = 0
        for start in range(0, len(tuples), self.bootstrap_batch_size):
            chunk = tuples[start:start + self.bootstrap_batch_size]
            try:
                await self._write(store_id, model_id, chunk, [])
            except BackendError as e:
                # Some tuples may already exist; keep seeding the rest.
                failed += 1
                self.logger.warning(
                    "Failed to write initial tuple batch",
                    batch_start=start,
                    batch_size=len(chunk),
                    error=e.message
                )
        self.logger.info("Initial tuples written", failed_batches=failed)

    async def list_stores(self) -> List[Store]:
        """List every store, following continuation tokens."""
        stores: List[Store] = []
        token: Optional[str] = None
        while True:
            params = {"continuation_token": token} if token else None
            data = await self._request("list_stores", "GET", "/stores", params=params)
            stores.extend(Store(**s) for s in data.get("stores") or [])
            token = data.get("continuation_token")
            if not token:
                return stores

    async def create_store(self, name: str) -> Store:
        data = await self._request("create_store", "POST", "/stores", json={"name": name})
        return Store(id=data["id"], name=data.get("name", name))

    # ------------------------------------------------------------------
    # Model management
    # ------------------------------------------------------------------

    async def write_model(self, model: Dict[str, Any]) -> str:
        """Write an authorization model and make it the one used for checks."""
        state = self._require_store()
        model_id = await self._write_model(state.store_id, model)
        self._state = StoreState(store_id=state.store_id, model_id=model_id, is_new_store=state.is_new_store)
        return model_id

    async def latest_model_id(self) -> Optional[str]:
        return await self._latest_model_id(self._require_store().store_id)

    async def _write_model(self, store_id: str, model: Dict[str, Any]) -> str:
        data = await self._request(
            "write_model", "POST", f"/stores/{store_id}/authorization-models", json=model
        )
        model_id = data.get("authorization_model_id")
        if not model_id:
            raise ModelNotFoundError("Backend did not return an authorization model id", {"response": data})
        self.logger.info("Created authorization model", model_id=model_id)
        return model_id

    async def _latest_model_id(self, store_id: str) -> Optional[str]:
        data = await self._request("read_models", "GET", f"/stores/{store_id}/authorization-models")
        models = data.get("authorization_models") or []
        return models[0]["id"] if models else None

    # ------------------------------------------------------------------
    # Tuples
    # ------------------------------------------------------------------

    async def check(self, tuple_key: TupleKey) -> bool:
        """Evaluate a single tuple; backend failures raise rather than deny."""
        state = self._require_store()
        payload: Dict[str, Any] = {"tuple_key": tuple_key.model_dump()}
        if state.model_id:
            payload["authorization_model_id"] = state.model_id

        data = await self._request("check", "POST", f"/stores/{state.store_id}/check", json=payload)
        return bool(data.get("allowed", False))

    async def write(
        self,
        writes: Optional[Iterable[TupleKey]] = None,
        deletes: Optional[Iterable[TupleKey]] = None,
    ):
        """Write and/or delete tuples in a single request.

        Empty writes and deletes is a no-op that sends nothing.
        """
        state = self._require_store()
        await self._write(state.store_id, state.model_id, list(writes or []), list(deletes or []))

    async def _write(
        self,
        store_id: str,
        model_id: Optional[str],
        writes: List[TupleKey],
        deletes: List[TupleKey],
    ):
        if not writes and not deletes:
            return

        payload: Dict[str, Any] = {}
        if writes:
            payload["writes"] = TupleKeys(tuple_keys=writes).model_dump()
        if deletes:
            payload["deletes"] = TupleKeys(tuple_keys=deletes).model_dump()
        if model_id:
            payload["authorization_model_id"] = model_id

        await self._request("write", "POST", f"/stores/{store_id}/write", json=payload)

        if self.metrics:
            self.metrics.record_tuple_mutations(len(writes), len(deletes))
        self.logger.debug("Tuples written", writes=len(writes), deletes=len(deletes))

    async def read(self, tuple_filter: Optional[TupleKeyFilter] = None) -> List[Tuple]:
        """Read every tuple matching the filter, across all pages.

        The backend only filters server-side when the object is given. Any
        other filter is applied in memory over an unfiltered read, with the
        same equality semantics.
        """
        state = self._require_store()

        api_filter: Optional[TupleKeyFilter] = tuple_filter
        memory_filter: Optional[TupleKeyFilter] = None
        if tuple_filter is not None and tuple_filter.object is None:
            api_filter, memory_filter = None, tuple_filter

        tuples: List[Tuple] = []
        token: Optional[str] = None
        while True:
            payload: Dict[str, Any] = {"page_size": self.page_size}
            if api_filter is not None:
                payload["tuple_key"] = api_filter.model_dump(exclude_none=True)
            if token:
                payload["continuation_token"] = token

            data = await self._request("read", "POST", f"/stores/{state.store_id}/read", json=payload)
            tuples.extend(Tuple(**t) for t in data.get("tuples") or [])

            token = data.get("continuation_token")
            if not token:
                break

        if memory_filter is not None:
            tuples = [t for t in tuples if memory_filter.matches(t.key)]

        return tuples

    async def list_objects(self, user: str, relation: str, object_type: str) -> List[str]:
        """Objects of ``object_type`` on which ``user`` holds ``relation``."""
        state = self._require_store()
        payload: Dict[str, Any] = {"user": user, "relation": relation, "type": object_type}
        if state.model_id:
            payload["authorization_model_id"] = state.model_id

        data = await self._request(
            "list_objects", "POST", f"/stores/{state.store_id}/list-objects", json=payload
        )
        return list(data.get("objects") or [])

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    def _require_store(self) -> StoreState:
        if self._state is None or not self._state.store_id:
            raise StoreNotFoundError("Tuple store not bootstrapped")
        return self._state

    async def _request(
        self,
        operation: str,
        method: str,
        path: str,
        json: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        start_time = time.time()
        outcome = "error"
        try:
            try:
                response = await self._client.request(method, path, json=json, params=params)
            except httpx.TransportError as e:
                outcome = "unavailable"
                self.logger.error("Tuple store request failed", operation=operation, error=repr(e))
                raise BackendUnavailableError(operation, f"{type(e).__name__}: {e}") from e

            if not response.is_success:
                self.logger.error(
                    "Tuple store error",
                    operation=operation,
                    status_code=response.status_code,
                    body=response.text
                )
                raise BackendError(operation, response.status_code, response.text)

            if not response.content:
                outcome = "ok"
                return {}

            try:
                data = response.json()
            except ValueError as e:
                raise InternalError(
                    f"{operation} returned invalid JSON",
                    {"operation": operation, "body": response.text}
                ) from e

            outcome = "ok"
            return data if isinstance(data, dict) else {}
        finally:
            if self.metrics:
                self.metrics.record_backend_request(operation, outcome, time.time() - start_time)
