"""HTTP access to the notebook workflow backend."""

from lens.webhooks.client import WebhookClient

__all__ = ["WebhookClient"]
