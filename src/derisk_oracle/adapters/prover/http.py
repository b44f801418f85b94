from __future__ import annotations

import asyncio
import base64
from typing import Any

import backoff
import requests

from ...errors import CompactionFailure, ExecutionFailure
from ...logger import get_logger
from .base import BaseProver, RawProof

logger = get_logger(__name__)

RETRYABLE_STATUS = {429, 500, 502, 503, 504}


def _giveup(e: Exception) -> bool:
    return (
        isinstance(e, requests.exceptions.HTTPError)
        and e.response is not None
        and e.response.status_code not in RETRYABLE_STATUS
    )


@backoff.on_exception(
    backoff.expo,
    requests.exceptions.RequestException,
    max_tries=5,
    giveup=_giveup,
    jitter=backoff.full_jitter,
)
async def _get_with_retry(url: str, headers: dict[str, str]) -> requests.Response:
    response = await asyncio.to_thread(requests.get, url, headers=headers, timeout=10.0)
    response.raise_for_status()
    return response


class HttpProver(BaseProver):
    """Client for a remote proving service.

    Sessions are created with a POST and polled until they settle:

    - ``POST {url}/sessions/create`` -> ``{"uuid"}``; ``GET {url}/sessions/status/{uuid}``
    - ``POST {url}/snark/create`` -> ``{"uuid"}``; ``GET {url}/snark/status/{uuid}``

    A settled status is ``SUCCEEDED`` or ``FAILED`` (with ``error_msg``). The
    snark status carries ``output.journal`` and ``output.seal`` as base64.
    """

    def __init__(
        self,
        base_url: str,
        image_id: str,
        *,
        api_key: str | None = None,
        poll_interval: float = 5.0,
    ):
        self.base_url = base_url.rstrip("/")
        self.image_id = image_id
        self.poll_interval = poll_interval
        self.headers = {"Content-Type": "application/json"}
        if api_key:
            self.headers["x-api-key"] = api_key

    @property
    def prover_name(self) -> str:
        return "http"

    async def _post(self, path: str, body: dict[str, Any]) -> dict[str, Any]:
        response = await asyncio.to_thread(
            requests.post,
            f"{self.base_url}{path}",
            json=body,
            headers=self.headers,
            timeout=30.0,
        )
        response.raise_for_status()
        return response.json()

    async def _poll(self, path: str) -> dict[str, Any]:
        """Poll a status endpoint until the job succeeds.

        Raises:
            RuntimeError: If the job reports FAILED or an unknown status
        """
        url = f"{self.base_url}{path}"
        while True:
            response = await _get_with_retry(url, self.headers)
            body = response.json()
            status = body.get("status")
            if status == "SUCCEEDED":
                return body
            if status == "FAILED":
                raise RuntimeError(body.get("error_msg") or "job failed")
            if status not in {"QUEUED", "RUNNING"}:
                raise RuntimeError(f"unexpected job status {status!r}")
            logger.debug("Job %s is %s, polling again in %.1fs", path, status, self.poll_interval)
            await asyncio.sleep(self.poll_interval)

    async def execute(self, input_bytes: bytes) -> RawProof:
        try:
            created = await self._post(
                "/sessions/create",
                {
                    "image_id": self.image_id,
                    "input": base64.b64encode(input_bytes).decode(),
                },
            )
            session_id = created["uuid"]
            logger.info("Proving session %s created", session_id)
            status = await self._poll(f"/sessions/status/{session_id}")
        except Exception as e:
            raise ExecutionFailure(f"Remote execution failed: {e}") from e

        return RawProof(handle=session_id, stats=status.get("stats") or {})

    async def compact(self, raw_proof: RawProof) -> tuple[bytes, bytes]:
        try:
            created = await self._post(
                "/snark/create", {"session_id": raw_proof.handle}
            )
            snark_id = created["uuid"]
            logger.info(
                "Compaction job %s created for session %s", snark_id, raw_proof.handle
            )
            status = await self._poll(f"/snark/status/{snark_id}")
            output = status["output"]
            journal = base64.b64decode(output["journal"])
            seal = base64.b64decode(output["seal"])
        except Exception as e:
            raise CompactionFailure(f"Remote compaction failed: {e}") from e

        return journal, seal
