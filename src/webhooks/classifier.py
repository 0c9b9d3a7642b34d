"""Event classifier - decides what to do with a delivery from its headers and action.

Checks run in a fixed order and the first failing one wins:
signature present, event present, event supported, delivery id present,
signature valid, action handled.
"""
from collections.abc import Collection, Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

from src.webhooks.verification import verify_signature

SIGNATURE_HEADER = "x-hub-signature"
EVENT_HEADER = "x-github-event"
DELIVERY_HEADER = "x-github-delivery"

ISSUES_EVENT = "issues"


class Outcome(str, Enum):
    MISSING_SIGNATURE = "missing_signature"
    MISSING_EVENT_TYPE = "missing_event_type"
    UNSUPPORTED_EVENT_TYPE = "unsupported_event_type"
    MISSING_DELIVERY_ID = "missing_delivery_id"
    SIGNATURE_MISMATCH = "signature_mismatch"
    UNSUPPORTED_ACTION = "unsupported_action"
    ACCEPTED = "accepted"


_STATUS = {
    Outcome.MISSING_SIGNATURE: 401,
    Outcome.MISSING_EVENT_TYPE: 422,
    Outcome.UNSUPPORTED_EVENT_TYPE: 200,
    Outcome.MISSING_DELIVERY_ID: 401,
    Outcome.SIGNATURE_MISMATCH: 401,
    Outcome.UNSUPPORTED_ACTION: 200,
    Outcome.ACCEPTED: 200,
}

_MESSAGES = {
    Outcome.MISSING_SIGNATURE: "No X-Hub-Signature found on request",
    Outcome.MISSING_EVENT_TYPE: "No Github Event found on request",
    Outcome.UNSUPPORTED_EVENT_TYPE: "No Github Issues event found on request",
    Outcome.MISSING_DELIVERY_ID: "No X-Github-Delivery found on request",
    Outcome.SIGNATURE_MISMATCH: "No X-Hub-Signature doesn't match Github webhook secret",
    Outcome.UNSUPPORTED_ACTION: "No handlers for action: '{action}'. Skipping ...",
    Outcome.ACCEPTED: "Scheduled job: '{action}'",
}


@dataclass(frozen=True)
class Classification:
    outcome: Outcome
    action: str | None = None
    delivery_id: str | None = None

    @property
    def status_code(self) -> int:
        return _STATUS[self.outcome]

    @property
    def message(self) -> str:
        return _MESSAGES[self.outcome].format(action=self.action)

    @property
    def accepted(self) -> bool:
        return self.outcome is Outcome.ACCEPTED

    @property
    def soft_accepted(self) -> bool:
        """200 without scheduling anything."""
        return self.status_code == 200 and not self.accepted


def _lower_keys(headers: Mapping[str, str]) -> dict[str, str]:
    return {k.lower(): v for k, v in headers.items()}


def classify(
    headers: Mapping[str, str],
    payload: Any,
    supported_actions: Collection[str],
    *,
    secret: str,
    raw_body: bytes,
    event: str = ISSUES_EVENT,
) -> Classification:
    """Classify a delivery. payload is the parsed JSON body, raw_body the bytes it came from."""
    h = _lower_keys(headers)
    action = payload.get("action") if isinstance(payload, dict) else None
    signature = h.get(SIGNATURE_HEADER)
    github_event = h.get(EVENT_HEADER)
    delivery = h.get(DELIVERY_HEADER) or None

    if not signature:
        return Classification(Outcome.MISSING_SIGNATURE, action, delivery)
    if not github_event:
        return Classification(Outcome.MISSING_EVENT_TYPE, action, delivery)
    if github_event != event:
        return Classification(Outcome.UNSUPPORTED_EVENT_TYPE, action, delivery)
    if not delivery:
        return Classification(Outcome.MISSING_DELIVERY_ID, action, delivery)
    if not verify_signature(secret, raw_body, signature):
        return Classification(Outcome.SIGNATURE_MISMATCH, action, delivery)
    if not isinstance(action, str) or action not in supported_actions:
        return Classification(Outcome.UNSUPPORTED_ACTION, action, delivery)
    return Classification(Outcome.ACCEPTED, action, delivery)
