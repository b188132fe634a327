"""HTTP client for the replication service under test."""

from __future__ import annotations

import logging
import threading
import time
from typing import Any, Callable, Optional

import httpx

from common.models.settings import TestSettings
from harness.config import HarnessSettings, get_settings
from harness.exceptions import RemoteError, ResourceNotReadyError

logger = logging.getLogger(__name__)

# Health entries of database servers carry this prefix.
DB_SERVER_PREFIX = "PRMR-"


class RemoteClient:
    """Thin wrapper around a shared httpx.Client.

    One instance is created per process and shared by every worker thread;
    httpx.Client is safe for concurrent use and keeps a pool of connections
    sized for the largest fan-out.
    """

    def __init__(
        self,
        endpoint: str,
        timeout: float = 10.0,
        max_connections: int = 1000,
        log_poll_interval: float = 0.1,
        state_poll_interval: float = 0.5,
        ready_timeout: Optional[float] = None,
        transport: Optional[httpx.BaseTransport] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.endpoint = endpoint
        self.log_poll_interval = log_poll_interval
        self.state_poll_interval = state_poll_interval
        self.ready_timeout = ready_timeout
        self._sleep = sleep

        self._client = httpx.Client(
            base_url=endpoint,
            timeout=timeout,
            limits=httpx.Limits(
                max_connections=max_connections,
                max_keepalive_connections=max_connections,
            ),
            transport=transport,
        )
        self._db_servers: Optional[list[str]] = None
        self._db_servers_lock = threading.Lock()

    @classmethod
    def from_settings(
        cls,
        endpoint: str,
        settings: Optional[HarnessSettings] = None,
        **kwargs,
    ) -> "RemoteClient":
        """Build a client from harness settings (the global ones by default)."""
        settings = settings or get_settings()
        return cls(
            endpoint,
            timeout=settings.request_timeout,
            max_connections=settings.max_connections,
            log_poll_interval=settings.log_poll_interval,
            state_poll_interval=settings.state_poll_interval,
            ready_timeout=settings.ready_timeout,
            **kwargs,
        )

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "RemoteClient":
        return self

    def __exit__(self, *args) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Replicated logs
    # ------------------------------------------------------------------

    def create_replicated_log(self, log_id: int, settings: TestSettings) -> None:
        """Create a replicated log with the test's replication config."""
        action = f"creating log {log_id}"
        response = self._request(
            "POST",
            "/_api/log",
            action,
            json={"id": log_id, "config": self._replication_config(settings)},
        )
        self._expect(response, action, 200, check_error_flag=True)
        logger.debug(f"Created replicated log {log_id}")

    def drop_replicated_log(self, log_id: int) -> None:
        """Drop a replicated log."""
        action = f"dropping log {log_id}"
        response = self._request("DELETE", f"/_api/log/{log_id}", action)
        self._expect(response, action, 200, 202)
        logger.debug(f"Dropped replicated log {log_id}")

    def wait_for_replicated_log(self, log_id: int) -> None:
        """Block until the log reports an elected leader."""
        action = f"requesting log status {log_id}"

        def has_leader() -> bool:
            response = self._request("GET", f"/_api/log/{log_id}", action)
            if response.status_code != 200:
                return False
            result = self._json(response).get("result") or {}
            return bool(result.get("leaderId"))

        self._poll_until(has_leader, self.log_poll_interval, f"waiting for log {log_id}")

    def insert_log_entry(self, log_id: int, payload: Any) -> None:
        """Append one entry to a replicated log."""
        action = f"inserting entry into log {log_id}"
        response = self._request("POST", f"/_api/log/{log_id}/insert", action, json=payload)
        self._expect(response, action, 201, 202)

    # ------------------------------------------------------------------
    # Replicated (prototype) states
    # ------------------------------------------------------------------

    def get_database_servers(self) -> list[str]:
        """List database server ids, cached after the first successful query."""
        with self._db_servers_lock:
            if self._db_servers is not None:
                return list(self._db_servers)

            action = "requesting database servers"
            response = self._request("GET", "/_admin/cluster/health", action)
            self._expect(response, action, 200)

            health = self._json(response).get("Health") or {}
            servers = sorted(key for key in health if key.startswith(DB_SERVER_PREFIX))
            self._db_servers = servers
            logger.info(f"Using database servers: {servers}")
            return list(servers)

    def check_prototype_state_available(self) -> None:
        """Verify the prototype state API exists on the server.

        An empty create request is rejected with 400 when the API is present.
        """
        action = "checking prototype state availability"
        response = self._request("POST", "/_api/prototype-state", action)
        if response.status_code != 400:
            raise RemoteError(
                action,
                status_code=response.status_code,
                message="prototype state API not available",
            )

    def create_replicated_state(
        self,
        state_id: int,
        settings: TestSettings,
        implementation: str = "prototype",
    ) -> None:
        """Create a replicated state placed on the first N database servers."""
        participants = self._select_participants(settings.number_of_servers)
        action = f"creating replicated state {state_id}"
        definition = {
            "id": state_id,
            "config": self._replication_config(settings),
            "properties": {"implementation": {"type": implementation}},
            "participants": {server: {} for server in participants},
        }
        response = self._request("POST", "/_api/replicated-state", action, json=definition)
        self._expect(response, action, 200, check_error_flag=True)
        logger.debug(f"Created replicated state {state_id} on {participants}")

    def set_prototype_state_key(self, state_id: int, key: str, value: str) -> None:
        """Write a single key into a prototype state."""
        action = f"inserting key into prototype state {state_id}"
        response = self._request(
            "POST",
            f"/_api/prototype-state/{state_id}/insert",
            action,
            json={key: value},
        )
        self._expect(response, action, 200)

    def wait_for_prototype_state(self, state_id: int) -> None:
        """Block until a test write into the state succeeds."""

        def accepts_writes() -> bool:
            try:
                self.set_prototype_state_key(state_id, "_test", "value")
            except RemoteError as e:
                logger.debug(f"Prototype state {state_id} not ready yet: {e}")
                return False
            return True

        self._poll_until(
            accepts_writes,
            self.state_poll_interval,
            f"waiting for prototype state {state_id}",
        )

    # ------------------------------------------------------------------
    # Databases and documents
    # ------------------------------------------------------------------

    def create_database(self, name: str, replication_version: str) -> None:
        action = f"creating database {name}"
        response = self._request(
            "POST",
            "/_api/database",
            action,
            json={"name": name, "options": {"replicationVersion": replication_version}},
        )
        self._expect(response, action, 200, 201, check_error_flag=True)
        logger.debug(f"Created database {name} (replication version {replication_version})")

    def drop_database(self, name: str) -> None:
        action = f"dropping database {name}"
        response = self._request("DELETE", f"/_api/database/{name}", action)
        self._expect(response, action, 200, 202)
        logger.debug(f"Dropped database {name}")

    def create_collection(self, database: str, name: str, settings: TestSettings) -> None:
        action = f"creating collection {database}/{name}"
        config = settings.config
        response = self._request(
            "POST",
            f"/_db/{database}/_api/collection",
            action,
            json={
                "name": name,
                "writeConcern": config.write_concern,
                "replicationFactor": settings.number_of_servers,
                "numberOfShards": config.number_of_shards,
                "waitForSync": config.wait_for_sync,
            },
        )
        self._expect(response, action, 200, check_error_flag=True)

    def insert_documents(self, database: str, collection: str, documents: list[dict]) -> None:
        """Insert a batch of documents in one request."""
        action = f"inserting documents into {database}/{collection}"
        response = self._request(
            "POST",
            f"/_db/{database}/_api/document/{collection}",
            action,
            json=documents,
        )
        self._expect(response, action, 201, 202)

        # Batch inserts report per-document failures in the response array.
        body = self._body(response)
        if isinstance(body, list):
            for item in body:
                if isinstance(item, dict) and item.get("error"):
                    raise RemoteError(
                        action,
                        status_code=response.status_code,
                        error_code=item.get("errorNum"),
                        message=item.get("errorMessage", ""),
                    )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _replication_config(settings: TestSettings) -> dict:
        config = settings.config
        result = {
            "writeConcern": config.write_concern,
            "waitForSync": config.wait_for_sync,
            "replicationFactor": settings.number_of_servers,
        }
        if config.soft_write_concern is not None:
            result["softWriteConcern"] = config.soft_write_concern
        return result

    def _select_participants(self, count: int) -> list[str]:
        servers = self.get_database_servers()
        if len(servers) < count:
            raise RemoteError(
                "selecting participants",
                message=f"need {count} database servers, found {len(servers)}",
            )
        return servers[:count]

    def _request(self, method: str, path: str, action: str, **kwargs) -> httpx.Response:
        try:
            return self._client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            raise RemoteError(action, message=str(e)) from e

    def _poll_until(self, ready: Callable[[], bool], interval: float, action: str) -> None:
        deadline = None
        if self.ready_timeout is not None:
            deadline = time.monotonic() + self.ready_timeout

        while not ready():
            if deadline is not None and time.monotonic() >= deadline:
                raise ResourceNotReadyError(
                    action, message=f"not ready after {self.ready_timeout}s"
                )
            self._sleep(interval)

    @staticmethod
    def _body(response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError:
            return None

    @classmethod
    def _json(cls, response: httpx.Response) -> dict:
        body = cls._body(response)
        return body if isinstance(body, dict) else {}

    def _expect(
        self,
        response: httpx.Response,
        action: str,
        *expected: int,
        check_error_flag: bool = False,
    ) -> None:
        if response.status_code in expected and not check_error_flag:
            return
        body = self._body(response)
        if response.status_code in expected:
            if not isinstance(body, dict):
                raise RemoteError(
                    action,
                    status_code=response.status_code,
                    message="response body is not a JSON object",
                )
            if not body.get("error"):
                return
        details = body if isinstance(body, dict) else {}
        raise RemoteError(
            action,
            status_code=response.status_code,
            error_code=details.get("errorNum", details.get("code")),
            message=details.get("errorMessage", ""),
        )
