"""Inbound webhooks: SonarQube quality gate results and source-control pushes."""

from __future__ import annotations

import hashlib
import hmac
import json
import logging
from typing import Any

from fastapi import APIRouter, Depends, Header, HTTPException, Request

from pipewright.api.deps import get_run_manager
from pipewright.api.schemas import GateDeliveryResponse, PushTriggerResponse
from pipewright.models.quality_gate import QualityGateResult
from pipewright.models.run import RunTrigger
from pipewright.runs.manager import RunManager

logger = logging.getLogger(__name__)

router = APIRouter(tags=["webhooks"])


def _load_json(body: bytes) -> dict[str, Any]:
    """Raise 400 unless the body is a JSON object."""
    try:
        payload = json.loads(body)
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise HTTPException(status_code=400, detail=f"Invalid JSON payload: {e}") from e
    if not isinstance(payload, dict):
        raise HTTPException(status_code=400, detail="Payload must be a JSON object")
    return payload


def verify_signature(body: bytes, secret: str, signature: str | None) -> bool:
    """Check SonarQube's ``X-Sonar-Webhook-HMAC-SHA256`` header."""
    if not signature:
        return False
    expected = hmac.new(secret.encode("utf-8"), body, hashlib.sha256).hexdigest()
    return hmac.compare_digest(expected, signature.strip().lower())


@router.post("/sonarqube-webhook/", response_model=GateDeliveryResponse)
async def sonarqube_webhook(
    request: Request,
    x_sonar_webhook_hmac_sha256: str | None = Header(None),
    mgr: RunManager = Depends(get_run_manager),
) -> GateDeliveryResponse:
    body = await request.body()
    secret = mgr.settings.sonar_webhook_secret
    if secret and not verify_signature(body, secret, x_sonar_webhook_hmac_sha256):
        raise HTTPException(status_code=401, detail="Invalid webhook signature")

    payload = _load_json(body)
    try:
        result = QualityGateResult.from_webhook(payload)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=f"Unrecognised SonarQube payload: {e}") from e

    delivered = mgr.waiter.deliver(result)
    return GateDeliveryResponse(status=result.status, passed=result.passed, delivered=delivered)


@router.post("/github-webhook/", response_model=PushTriggerResponse)
async def push_webhook(
    request: Request,
    x_github_event: str | None = Header(None),
    mgr: RunManager = Depends(get_run_manager),
) -> PushTriggerResponse:
    payload = _load_json(await request.body())

    if x_github_event and x_github_event != "push":
        return PushTriggerResponse(triggered=False, reason=f"Ignored '{x_github_event}' event")

    ref = payload.get("ref", "")
    branch = mgr.settings.branch
    if ref != f"refs/heads/{branch}":
        return PushTriggerResponse(triggered=False, reason=f"Push to {ref or 'unknown ref'} ignored")

    run = mgr.create_run(branch=branch, trigger=RunTrigger.PUSH)
    logger.info(f"Push to {branch} triggered run {run.id}")
    return PushTriggerResponse(triggered=True, run_id=run.id)
