"""Request pipeline - verify, classify and schedule one delivery, and say what to answer."""
import json
import logging
from collections.abc import Mapping
from dataclasses import dataclass

from src.integrations.issue_actions import ActionRegistry
from src.logging_config import delivery_id
from src.scheduler.deferred import DeferredScheduler
from src.webhooks.classifier import DELIVERY_HEADER, ISSUES_EVENT, classify

logger = logging.getLogger(__name__)

JSON_CONTENT_TYPE = "application/json"
WRONG_CONTENT_TYPE_MESSAGE = "Update webhook to send 'application/json' format"
NOT_COORDINATOR_MESSAGE = "Scheduler not running in this worker, redeliver '{action}'"


@dataclass(frozen=True)
class WebhookResponse:
    status_code: int
    body: str


def _media_type(content_type: str | None) -> str:
    return (content_type or "").split(";", 1)[0].strip().lower()


class WebhookPipeline:
    """One instance per process. handle() never raises; failures become a 500."""

    def __init__(self, secret: str, registry: ActionRegistry, scheduler: DeferredScheduler, event: str = ISSUES_EVENT):
        self.secret = secret
        self.registry = registry
        self.scheduler = scheduler
        self.event = event

    async def handle(self, content_type: str | None, raw_body: bytes, headers: Mapping[str, str]) -> WebhookResponse:
        if _media_type(content_type) != JSON_CONTENT_TYPE:
            logger.warning("Rejected delivery with content type %r", content_type)
            return WebhookResponse(500, WRONG_CONTENT_TYPE_MESSAGE)

        lowered = {k.lower(): v for k, v in headers.items()}
        token = delivery_id.set(lowered.get(DELIVERY_HEADER))
        try:
            payload = json.loads(raw_body)
            result = classify(
                lowered,
                payload,
                self.registry.actions(),
                secret=self.secret,
                raw_body=raw_body,
                event=self.event,
            )
            if result.accepted:
                if self.scheduler.schedule(result.action, payload, result.delivery_id) is None:
                    logger.warning("Delivery not scheduled, this worker is not the coordinator")
                    return WebhookResponse(503, NOT_COORDINATOR_MESSAGE.format(action=result.action))
            elif result.soft_accepted:
                logger.info(result.message)
            else:
                logger.warning("Rejected delivery: %s", result.message)
            return WebhookResponse(result.status_code, result.message)
        except Exception as err:
            logger.exception("Error handling delivery")
            return WebhookResponse(500, f"Error occurred: {err}")
        finally:
            delivery_id.reset(token)
