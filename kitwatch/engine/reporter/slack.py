"""Post confirmed kits to a Slack incoming webhook."""

from __future__ import annotations

import httpx
import structlog

from ...config import SlackConfig
from ..results import CandidateResult
from .base import BaseReporter
from .console import describe


def build_payload(result: CandidateResult, channel: str) -> dict:
    candidate = result.candidate
    fields = [
        {"title": "URL", "value": candidate.url, "short": False},
        {"title": "Source", "value": candidate.source.value, "short": True},
    ]
    if candidate.hostname:
        fields.append({"title": "Host", "value": candidate.hostname, "short": True})
    if result.kit is not None:
        fields.append({"title": "File", "value": result.kit.filename_with_size, "short": True})
        fields.append({"title": "Kit ID", "value": str(result.kit.id), "short": True})
    return {
        "channel": channel,
        "text": f"{candidate.url}: {describe(result)}",
        "attachments": [{"fallback": candidate.url, "color": "danger", "fields": fields}],
    }


class SlackReporter(BaseReporter):
    """Deliver one message per confirmed kit; delivery errors are only logged."""

    def __init__(
        self,
        config: SlackConfig,
        client: httpx.Client | None = None,
        logger: structlog.BoundLogger | None = None,
    ) -> None:
        if not config.webhook_url:
            raise ValueError("Slack reporter requires a webhook URL")
        self.config = config
        self._owns_client = client is None
        self._client = client or httpx.Client(timeout=10)
        self.logger = logger or structlog.get_logger("kitwatch.slack")

    def report(self, result: CandidateResult) -> None:
        if not result.confirmed:
            return
        payload = build_payload(result, self.config.channel)
        try:
            response = self._client.post(self.config.webhook_url, json=payload)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            self.logger.warning("slack_post_failed", url=result.candidate.url, error=str(exc))

    def flush(self) -> None:
        return

    def close(self) -> None:
        if self._owns_client:
            self._client.close()


__all__ = ["SlackReporter", "build_payload"]
