import requests
from typing import Optional
from portfolio_sync.config.logging import logger


def send_discord_alert(webhook_url: Optional[str], message: str, timeout: Optional[float] = 10):
    """
    Sends a sync failure message to a Discord webhook.

    Args:
        webhook_url: The Discord webhook URL. Nothing is sent when empty.
        message: The message to send.
    """
    if not webhook_url:
        logger.debug("Discord webhook URL is not configured. Skipping alert.")
        return

    data = {
        "content": message,
        "username": "Coinbase-Notion Sync Bot"
    }

    try:
        response = requests.post(webhook_url, json=data, timeout=timeout)
        if response.status_code >= 300:
            logger.warning(f"Failed to send Discord alert. Status code: {response.status_code}, Response: {response.text}")
    except requests.exceptions.RequestException as e:
        logger.warning(f"Error sending Discord alert: {e}")
