"""REST transport for a Huly workspace.

Login goes through the accounts service advertised in the front's
``config.json``; workspace reads use ``/api/v1/find-all`` and writes post
transactions to ``/api/v1/tx``. All requests are wrapped in
``retry_with_backoff``.
"""

import json
import logging
from typing import Any, Dict, List, Optional

import httpx

from ..config import Settings
from ..exceptions import RemoteOperationError, StoreAuthError
from . import classes
from .base import Doc, Query, generate_id, now_ms
from .retry import retry_with_backoff

logger = logging.getLogger(__name__)


def _http_endpoint(endpoint: str) -> str:
    """Transactor endpoints are advertised as ws(s):// URLs."""
    if endpoint.startswith("wss://"):
        endpoint = "https://" + endpoint[len("wss://"):]
    elif endpoint.startswith("ws://"):
        endpoint = "http://" + endpoint[len("ws://"):]
    return endpoint.rstrip("/")


class RestStoreClient:
    """StoreClient backed by the Huly REST API."""

    def __init__(
        self,
        http: httpx.AsyncClient,
        endpoint: str,
        workspace_id: str,
        token: str,
        account: str,
    ):
        self._http = http
        self.endpoint = _http_endpoint(endpoint)
        self.workspace_id = workspace_id
        self.account = account
        self._headers = {
            "Authorization": f"Bearer {token}",
            "Content-Type": "application/json",
        }

    async def _request(self, method: str, path: str, **kwargs) -> Any:
        url = f"{self.endpoint}{path}"

        async def _do_request():
            response = await self._http.request(method, url, headers=self._headers, **kwargs)
            response.raise_for_status()
            return response

        response = await retry_with_backoff(_do_request)
        if not response.content:
            return None
        return response.json()

    # -- Reads -------------------------------------------------------------

    async def find_all(
        self,
        _class: str,
        query: Query,
        options: Optional[Dict[str, Any]] = None,
    ) -> List[Doc]:
        params = {"class": _class}
        if query:
            params["query"] = json.dumps(query)
        if options:
            params["options"] = json.dumps(options)

        body = await self._request(
            "GET", f"/api/v1/find-all/{self.workspace_id}", params=params
        )
        if body is None:
            return []
        if isinstance(body, list):
            return body
        return list(body.get("value", []))

    async def find_one(
        self,
        _class: str,
        query: Query,
        options: Optional[Dict[str, Any]] = None,
    ) -> Optional[Doc]:
        opts = dict(options or {})
        opts["limit"] = 1
        docs = await self.find_all(_class, query, opts)
        return docs[0] if docs else None

    # -- Writes ------------------------------------------------------------

    def _tx(self, tx_class: str, _class: str, space: str, obj_id: str, **fields) -> Dict[str, Any]:
        tx = {
            "_id": generate_id(),
            "_class": tx_class,
            "space": classes.SPACE_TX,
            "objectId": obj_id,
            "objectClass": _class,
            "objectSpace": space,
            "modifiedOn": now_ms(),
            "modifiedBy": self.account,
        }
        tx.update(fields)
        return tx

    async def _post_tx(self, tx: Dict[str, Any]) -> Any:
        logger.debug("tx %s %s %s", tx["_class"], tx["objectClass"], tx["objectId"])
        return await self._request(
            "POST", f"/api/v1/tx/{self.workspace_id}", json=tx
        )

    async def create_doc(
        self,
        _class: str,
        space: str,
        attributes: Dict[str, Any],
        obj_id: Optional[str] = None,
    ) -> str:
        obj_id = obj_id or generate_id()
        tx = self._tx(
            classes.TX_CREATE_DOC, _class, space, obj_id,
            createdBy=self.account,
            attributes=attributes,
        )
        await self._post_tx(tx)
        return obj_id

    async def update_doc(
        self,
        _class: str,
        space: str,
        obj_id: str,
        operations: Dict[str, Any],
        retrieve: bool = False,
    ) -> Optional[Doc]:
        tx = self._tx(
            classes.TX_UPDATE_DOC, _class, space, obj_id,
            operations=operations,
            retrieve=retrieve,
        )
        result = await self._post_tx(tx)
        if retrieve and isinstance(result, dict) and isinstance(result.get("object"), dict):
            return result["object"]
        return None

    async def add_collection(
        self,
        _class: str,
        space: str,
        attached_to: str,
        attached_to_class: str,
        collection: str,
        attributes: Dict[str, Any],
        obj_id: Optional[str] = None,
    ) -> str:
        obj_id = obj_id or generate_id()
        attached = {
            "attachedTo": attached_to,
            "attachedToClass": attached_to_class,
            "collection": collection,
        }
        tx = self._tx(
            classes.TX_CREATE_DOC, _class, space, obj_id,
            createdBy=self.account,
            attributes={**attributes, **attached},
            **attached,
        )
        await self._post_tx(tx)
        await self.update_doc(attached_to_class, space, attached_to, {"$inc": {collection: 1}})
        return obj_id

    async def remove_collection(
        self,
        _class: str,
        space: str,
        obj_id: str,
        attached_to: str,
        attached_to_class: str,
        collection: str,
    ) -> None:
        await self.remove_doc(_class, space, obj_id)
        await self.update_doc(attached_to_class, space, attached_to, {"$inc": {collection: -1}})

    async def remove_doc(self, _class: str, space: str, obj_id: str) -> None:
        await self._post_tx(self._tx(classes.TX_REMOVE_DOC, _class, space, obj_id))

    async def close(self) -> None:
        await self._http.aclose()


async def _rpc(http: httpx.AsyncClient, url: str, method: str, params: Dict[str, Any], token: Optional[str] = None) -> Any:
    """Call a JSON-RPC style method on the accounts service."""
    headers = {"Content-Type": "application/json"}
    if token:
        headers["Authorization"] = f"Bearer {token}"

    async def _do_request():
        response = await http.post(url, json={"method": method, "params": params}, headers=headers)
        response.raise_for_status()
        return response

    response = await retry_with_backoff(_do_request)
    body = response.json()
    error = body.get("error")
    if error:
        code = error.get("code", "") if isinstance(error, dict) else str(error)
        raise StoreAuthError(f"Accounts service rejected {method}: {code}")
    return body.get("result")


async def _accounts_url(http: httpx.AsyncClient, base_url: str) -> str:
    async def _do_request():
        response = await http.get(f"{base_url}/config.json")
        response.raise_for_status()
        return response

    config = (await retry_with_backoff(_do_request)).json()
    url = config.get("ACCOUNTS_URL")
    if not url:
        raise RemoteOperationError(f"ACCOUNTS_URL missing from {base_url}/config.json")
    return url.rstrip("/")


async def connect_rest(settings: Settings, http: Optional[httpx.AsyncClient] = None) -> RestStoreClient:
    """Log in and select the configured workspace.

    Raises ConfigurationError before any network call when credentials are
    missing. The returned client owns ``http`` and closes it on ``close()``.
    """
    settings.ensure_credentials()

    http = http or httpx.AsyncClient(timeout=settings.huly_timeout)
    try:
        accounts_url = await _accounts_url(http, settings.huly_url)
        login = await _rpc(
            http, accounts_url, "login",
            {"email": settings.huly_email, "password": settings.huly_password},
        )
        if not login or not login.get("token"):
            raise StoreAuthError("Login did not return a token")

        selected = await _rpc(
            http, accounts_url, "selectWorkspace",
            {"workspaceUrl": settings.huly_workspace, "kind": "external"},
            token=login["token"],
        )
        if not selected or not selected.get("endpoint"):
            raise StoreAuthError(f"Workspace not available: {settings.huly_workspace}")

        workspace_id = selected.get("workspace") or selected.get("workspaceId") or settings.huly_workspace
        token = selected.get("token") or login["token"]
        client = RestStoreClient(
            http,
            endpoint=selected["endpoint"],
            workspace_id=workspace_id,
            token=token,
            account="",
        )
        account = await client._request("GET", f"/api/v1/account/{workspace_id}") or {}
        client.account = account.get("uuid") or account.get("_id") or ""
    except Exception:
        await http.aclose()
        raise

    logger.info("Connected to Huly workspace %s at %s", settings.huly_workspace, client.endpoint)
    return client
