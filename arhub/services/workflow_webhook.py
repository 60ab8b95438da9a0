"""Workflow webhook — hand new scheduling conversations to the automation workflow.

The workflow (e.g. an n8n flow) sends the actual outreach email. We only
POST the payload and report whether it was accepted.

Usage:
    payload = build_initiate_payload(conversation, analyst, suggested_times, reason)
    ok, error = await notify_scheduling_webhook(payload)

notify_scheduling_webhook never raises: an unset URL, a non-2xx response or
a transport error all come back as (False, message).
"""

import asyncio
import logging

from ..config import settings
from ..http_client import http

log = logging.getLogger("arhub.webhook")

INITIATE_SCHEDULING = "INITIATE_SCHEDULING"
NOT_CONFIGURED = "not configured"

MAX_RETRIES = 2
BASE_DELAY = 1.0  # seconds, doubled per attempt
RETRYABLE_STATUSES = {429, 502, 503, 504}


def build_initiate_payload(conversation, analyst, suggested_times: list[str], reason: str) -> dict:
    return {
        "type": INITIATE_SCHEDULING,
        "conversationId": conversation.id,
        "analyst": {
            "firstName": analyst.first_name,
            "lastName": analyst.last_name,
            "email": analyst.email,
            "company": analyst.company,
            "influence": analyst.influence,
        },
        "subject": conversation.subject,
        "suggestedTimes": list(suggested_times),
        "reason": reason,
    }


async def notify_scheduling_webhook(payload: dict) -> tuple[bool, str | None]:
    """POST payload to the scheduling webhook. Returns (delivered, error)."""
    url = settings.scheduling_webhook_url
    if not url:
        log.warning("SCHEDULING_WEBHOOK_URL not set — skipping workflow notification")
        return False, NOT_CONFIGURED

    error = None
    for attempt in range(MAX_RETRIES):
        try:
            resp = await http.post(url, json=payload, timeout=settings.scheduling_webhook_timeout)
        except Exception as e:
            error = f"{type(e).__name__}: {e}"
            log.warning(f"Scheduling webhook failed (attempt {attempt + 1}/{MAX_RETRIES}): {error}")
        else:
            if 200 <= resp.status_code < 300:
                log.info(f"Scheduling webhook accepted conversation {payload.get('conversationId')}")
                return True, None
            error = f"HTTP {resp.status_code}: {resp.text[:200]}"
            if resp.status_code not in RETRYABLE_STATUSES:
                log.warning(f"Scheduling webhook rejected payload: {error}")
                return False, error
            log.warning(f"Scheduling webhook {resp.status_code} (attempt {attempt + 1}/{MAX_RETRIES})")

        if attempt < MAX_RETRIES - 1:
            await asyncio.sleep(BASE_DELAY * (2 ** attempt))

    return False, error
