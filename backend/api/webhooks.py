"""
api/webhooks.py
===============
POST /api/webhooks — Clerk user events, Svix-signed.

The raw body is passed to the verifier untouched (signatures cover the exact
bytes), together with the ``svix-id`` / ``svix-timestamp`` / ``svix-signature``
headers.  See ``identity.webhooks`` for the outcome → status table.
"""

from __future__ import annotations

import asyncio

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from backend.dependencies import get_webhook_processor
from backend.schemas.response import WebhookResponse
from identity.webhooks import UserEventProcessor

router = APIRouter()


@router.post("/api/webhooks", response_model=WebhookResponse)
async def receive_webhook(
    request: Request,
    processor: UserEventProcessor = Depends(get_webhook_processor),
):
    payload = await request.body()
    result = await asyncio.to_thread(processor.process, payload, request.headers)

    body = WebhookResponse(success=result.success, message=result.message)
    return JSONResponse(status_code=result.status_code, content=body.model_dump())
