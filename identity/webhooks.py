"""
webhooks.py
===========
Verify Clerk webhook deliveries and persist newly created users.

Signature checking is delegated entirely to the ``svix`` library.  Every
delivery ends in exactly one ``WebhookOutcome``; each outcome has its own HTTP
status and log line so that nothing is silently discarded:

  CREATED             200  user.created stored
  DUPLICATE           200  user.created redelivered, user already stored
  IGNORED             200  verified event of another kind
  NOT_CONFIGURED      500  signing secret missing or malformed
  VERIFICATION_FAILED 400  bad / missing / stale signature
  MALFORMED           400  verified but missing data.id
  PERSISTENCE_FAILED  500  database write failed

Only 2xx outcomes report ``success: true``; Svix retries everything else.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, Optional

from svix.webhooks import Webhook, WebhookVerificationError

from quiz_store.models import User
from quiz_store.mongo_client import DocumentStore, DuplicateUserError, PersistenceError

logger = logging.getLogger(__name__)

USER_CREATED = "user.created"


class WebhookOutcome(str, Enum):
    CREATED             = "created"
    DUPLICATE           = "duplicate"
    IGNORED             = "ignored"
    NOT_CONFIGURED      = "not_configured"
    VERIFICATION_FAILED = "verification_failed"
    MALFORMED           = "malformed"
    PERSISTENCE_FAILED  = "persistence_failed"


_STATUS = {
    WebhookOutcome.CREATED:             200,
    WebhookOutcome.DUPLICATE:           200,
    WebhookOutcome.IGNORED:             200,
    WebhookOutcome.NOT_CONFIGURED:      500,
    WebhookOutcome.VERIFICATION_FAILED: 400,
    WebhookOutcome.MALFORMED:           400,
    WebhookOutcome.PERSISTENCE_FAILED:  500,
}

_MESSAGES = {
    WebhookOutcome.CREATED:             "Webhook received",
    WebhookOutcome.DUPLICATE:           "Webhook received",
    WebhookOutcome.IGNORED:             "Webhook received",
    WebhookOutcome.NOT_CONFIGURED:      "Webhook secret not configured",
    WebhookOutcome.VERIFICATION_FAILED: "Webhook verification failed",
    WebhookOutcome.MALFORMED:           "Malformed webhook event",
    WebhookOutcome.PERSISTENCE_FAILED:  "Failed to store user",
}


@dataclass(frozen=True)
class WebhookResult:
    outcome: WebhookOutcome
    event_type: Optional[str] = None
    user_id: Optional[str] = None

    @property
    def status_code(self) -> int:
        return _STATUS[self.outcome]

    @property
    def success(self) -> bool:
        return self.status_code < 400

    @property
    def message(self) -> str:
        return _MESSAGES[self.outcome]


# ---------------------------------------------------------------------------
# Event parsing
# ---------------------------------------------------------------------------

def user_from_event(event: Mapping[str, Any]) -> Optional[User]:
    """Extract a User from a verified ``user.created`` payload (None if no id)."""
    data = event.get("data") or {}
    if not isinstance(data, Mapping):
        return None
    clerk_id = data.get("id")
    if not isinstance(clerk_id, str) or not clerk_id:
        return None
    return User(
        clerkUserId = clerk_id,
        firstName   = data.get("first_name"),
        lastName    = data.get("last_name"),
    )


# ---------------------------------------------------------------------------
# Processor
# ---------------------------------------------------------------------------

class UserEventProcessor:
    """Verify a delivery, then act on it.  Synchronous; run off the event loop."""

    def __init__(self, store: DocumentStore, secret: str):
        self._store = store
        self._webhook: Optional[Webhook] = None
        if secret:
            try:
                self._webhook = Webhook(secret)
            except ValueError as exc:
                # binascii.Error on a secret that is not valid base64
                logger.error("CLERK_WEBHOOK_SECRET is malformed, webhooks disabled: %s", exc)

    def process(self, payload: bytes, headers: Mapping[str, str]) -> WebhookResult:
        if self._webhook is None:
            logger.error("Webhook rejected: CLERK_WEBHOOK_SECRET is missing or malformed.")
            return WebhookResult(WebhookOutcome.NOT_CONFIGURED)

        try:
            self._webhook.verify(payload, dict(headers))
        except WebhookVerificationError as exc:
            logger.warning(
                "Webhook verification failed (svix-id=%s): %s",
                headers.get("svix-id", "?"), exc,
            )
            return WebhookResult(WebhookOutcome.VERIFICATION_FAILED)

        # verify() only signals failure by raising; the event is parsed here
        try:
            event = json.loads(payload)
        except (json.JSONDecodeError, UnicodeDecodeError):
            logger.warning("Verified webhook payload is not valid JSON.")
            return WebhookResult(WebhookOutcome.MALFORMED)

        if not isinstance(event, Mapping):
            logger.warning("Verified webhook payload is not a JSON object.")
            return WebhookResult(WebhookOutcome.MALFORMED)

        event_type = event.get("type")
        if event_type != USER_CREATED:
            logger.info("Webhook event '%s' ignored.", event_type)
            return WebhookResult(WebhookOutcome.IGNORED, event_type=event_type)

        user = user_from_event(event)
        if user is None:
            logger.warning("user.created event without data.id, rejected.")
            return WebhookResult(WebhookOutcome.MALFORMED, event_type=event_type)

        try:
            self._store.insert_user(user)
        except DuplicateUserError:
            logger.info("User %s already exists, redelivery ignored.", user.clerk_user_id)
            return WebhookResult(
                WebhookOutcome.DUPLICATE, event_type=event_type, user_id=user.clerk_user_id,
            )
        except PersistenceError as exc:
            logger.error("Failed to store user %s: %s", user.clerk_user_id, exc)
            return WebhookResult(
                WebhookOutcome.PERSISTENCE_FAILED, event_type=event_type, user_id=user.clerk_user_id,
            )

        logger.info("User %s created.", user.clerk_user_id)
        return WebhookResult(WebhookOutcome.CREATED, event_type=event_type, user_id=user.clerk_user_id)
