from __future__ import annotations

import logging
from typing import Any, Sequence

import httpx

from checkin.domain.entities import RegistrationFields, SubmitResult, VerifierStatus
from checkin.domain.errors import ExternalUnavailable
from checkin.domain.ports.verifier_port import ExternalVerifierPort

logger = logging.getLogger(__name__)


class HttpVerifierAdapter(ExternalVerifierPort):
    """
    Client for the credential issuer.

    - submit:      POST {base_url}/api/qrcode/data
    - poll_status: GET  {base_url}/api/credential/nonce/{transaction_id}

    A non-2xx answer to a poll means the visitor has not finished yet.
    """

    def __init__(
        self,
        base_url: str,
        *,
        access_token: str,
        vc_uid: str,
        client: httpx.AsyncClient,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._headers = {"Access-Token": access_token}
        self._vc_uid = vc_uid
        self._client = client

    async def submit(
        self, fields: RegistrationFields, cids: Sequence[str] = ()
    ) -> SubmitResult:
        payload = {
            "vcUid": self._vc_uid,
            "fields": [
                {"ename": name, "content": value}
                for name, value in fields.to_dict().items()
            ],
            "cids": list(cids),
        }
        url = f"{self._base_url}/api/qrcode/data"
        try:
            resp = await self._client.post(url, json=payload, headers=self._headers)
        except httpx.HTTPError as e:
            raise ExternalUnavailable(f"verifier HTTP error: {e}") from e
        if not resp.is_success:
            raise ExternalUnavailable(
                f"verifier responded {resp.status_code}: {resp.text[:200]}"
            )

        data = _json(resp)
        return SubmitResult(
            transaction_id=str(data.get("transactionId") or ""),
            qr_code=str(data.get("qrCode") or ""),
            deep_link=str(data.get("deepLink") or ""),
        )

    async def poll_status(self, transaction_id: str) -> VerifierStatus:
        url = f"{self._base_url}/api/credential/nonce/{transaction_id}"
        try:
            resp = await self._client.get(url, headers=self._headers)
        except httpx.HTTPError as e:
            raise ExternalUnavailable(f"verifier HTTP error: {e}") from e
        if not resp.is_success:
            logger.debug(
                "transaction still pending",
                extra={"transaction_id": transaction_id, "status": resp.status_code},
            )
            return VerifierStatus(state="pending")
        return VerifierStatus(state="completed", payload=_json(resp))


def _json(resp: httpx.Response) -> dict[str, Any]:
    try:
        data = resp.json()
    except ValueError as e:
        raise ExternalUnavailable(f"verifier returned invalid JSON: {e}") from e
    if not isinstance(data, dict):
        raise ExternalUnavailable("verifier returned a non-object JSON body")
    return data
