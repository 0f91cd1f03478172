"""Verification notifications via an SNS topic.

Publishes one JSON message per registration; a downstream subscriber turns
it into the actual email. Delivery is best-effort and at-most-once: any
failure is logged and swallowed, leaving the account unverified.
"""

import asyncio
import json
import logging
import time
from typing import Any
from urllib.parse import quote, urlencode

import boto3
from botocore.config import Config

from catalog_api.core.config import settings

logger = logging.getLogger(__name__)

_SUBJECT = "Email Verification Required"

_sns_client: Any = None


def get_sns_client() -> Any:
    """Get or create the SNS client singleton, with bounded timeouts."""
    global _sns_client

    if _sns_client is None:
        _sns_client = boto3.client(
            "sns",
            region_name=settings.aws_region,
            config=Config(
                connect_timeout=settings.aws_connect_timeout,
                read_timeout=settings.aws_read_timeout,
                retries={"max_attempts": settings.aws_max_attempts},
            ),
        )
    return _sns_client


def build_verification_link(email: str, token: str) -> str:
    """Build the link that hits GET {api_prefix}/user/verify directly.

    Args:
        email: Account login handle.
        token: Plain (unhashed) verification token.

    Returns:
        Absolute URL with email and token as query parameters.
    """
    params = urlencode({"email": email, "token": token}, quote_via=quote)
    base = settings.public_base_url.rstrip("/")
    return f"{base}{settings.api_prefix}/user/verify?{params}"


def build_verification_message(email: str, token: str) -> dict[str, str]:
    """Build the message body published to the verification topic."""
    return {
        "email": email,
        "token": token,
        "verificationLink": build_verification_link(email, token),
        "timestamp": str(int(time.time() * 1000)),
    }


async def publish_verification_message(*, email: str, token: str) -> None:
    """Publish a verification message for a newly registered account.

    Runs as a background task after the registration transaction has
    committed. Never raises.

    Args:
        email: Account login handle (recipient).
        token: Plain (unhashed) verification token.
    """
    if not settings.sns_topic_arn:
        logger.warning("SNS topic not configured; verification message not sent")
        return

    message = json.dumps(build_verification_message(email, token))
    try:
        response = await asyncio.to_thread(
            get_sns_client().publish,
            TopicArn=settings.sns_topic_arn,
            Message=message,
            Subject=_SUBJECT,
        )
        logger.info(
            "Verification message published (message_id=%s)",
            response.get("MessageId"),
        )
    except Exception:
        logger.warning("Failed to publish verification message", exc_info=True)
