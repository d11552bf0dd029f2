"""Inbound webhook authentication"""

import hmac
import logging
from typing import List, Optional
from fastapi import Request
from config import ApplicationConfig
from libs.result import Error
from src.api.error import ClientError

logger = logging.getLogger(__name__)


def _allowed_ips(raw) -> List[str]:
    if isinstance(raw, (list, tuple)):
        return [str(ip).strip() for ip in raw if str(ip).strip()]
    return [ip.strip() for ip in str(raw or "").split(",") if ip.strip()]


def client_ip(request: Request, trust_forwarded: bool = False) -> Optional[str]:
    """
    Source address of a request

    X-Forwarded-For and X-Real-IP are set by whoever sends the request, so they
    are only read when a trusted reverse proxy overwrites them.
    """
    if trust_forwarded:
        forwarded = request.headers.get("x-forwarded-for")
        if forwarded:
            return forwarded.split(",")[0].strip()
        real_ip = request.headers.get("x-real-ip")
        if real_ip:
            return real_ip.strip()
    return request.client.host if request.client else None


def verify_webhook_request(
    request: Request,
    secret: Optional[str],
    allowed_ips: List[str],
    environment: str,
    trust_forwarded: bool = False,
) -> None:
    """
    Authenticate a callback

    Order:
    1. Shared secret in X-Webhook-Secret (when a secret is configured)
    2. Source IP in the allow-list (when one is configured)
    3. Nothing configured: rejected in production, allowed with a warning elsewhere

    Raises:
        ClientError(401)
    """
    provided = request.headers.get("x-webhook-secret")
    if secret:
        if provided and hmac.compare_digest(provided, secret):
            return
        if not allowed_ips:
            raise _unauthorized("Invalid webhook secret")

    ip = client_ip(request, trust_forwarded)
    if allowed_ips:
        if ip in allowed_ips:
            return
        logger.warning(f"Webhook from {ip} rejected: not in allow-list")
        raise _unauthorized("Webhook source not allowed")

    if environment == "production":
        logger.warning(f"Webhook from {ip} rejected: no webhook authentication configured")
        raise _unauthorized("Webhook authentication is not configured")

    logger.warning(f"Unauthenticated webhook from {ip} accepted outside production")


async def verify_webhook_auth(request: Request) -> None:
    """FastAPI dependency guarding the callback routes"""
    verify_webhook_request(
        request,
        secret=ApplicationConfig.WEBHOOK_SECRET,
        allowed_ips=_allowed_ips(ApplicationConfig.WEBHOOK_ALLOWED_IPS),
        environment=ApplicationConfig.ENVIRONMENT,
        trust_forwarded=ApplicationConfig.WEBHOOK_TRUST_PROXY_HEADERS,
    )


def _unauthorized(message: str) -> ClientError:
    return ClientError(Error(code="UNAUTHORIZED", message=message), status_code=401)
