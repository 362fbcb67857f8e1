"""
Email gateway client for sending emails via HTTP gateway.

Requests are signed with HMAC-SHA256 over the exact JSON body so the
gateway can reject forged or altered payloads.
"""

import hashlib
import hmac
import json
import logging

import requests

logger = logging.getLogger(__name__)


class EmailGatewayError(Exception):
    """Raised when email gateway request fails."""


class EmailGatewayClient:
    """Send emails via HTTP gateway with HMAC signature verification."""

    SENDERS = ("verification", "notifications")

    def __init__(self, gateway_url: str, api_key: str, hmac_secret: str, timeout: float = 10):
        """
        Initialize with gateway credentials.

        Args:
            gateway_url: Full URL to the email gateway endpoint
            api_key: API key for X-API-Key header
            hmac_secret: Secret for HMAC-SHA256 signature
            timeout: Request timeout in seconds

        Raises:
            ValueError: If any credential is empty
        """
        if not gateway_url:
            raise ValueError("gateway_url is required")
        if not api_key:
            raise ValueError("api_key is required")
        if not hmac_secret:
            raise ValueError("hmac_secret is required")

        self.gateway_url = gateway_url
        self.api_key = api_key
        self.hmac_secret = hmac_secret
        self.timeout = timeout

    def sign(self, payload_json: str) -> str:
        """Hex HMAC-SHA256 of the serialized payload."""
        return hmac.new(
            self.hmac_secret.encode("utf-8"),
            payload_json.encode("utf-8"),
            hashlib.sha256,
        ).hexdigest()

    def _sign_and_send(self, payload: dict) -> None:
        """
        Sign payload with HMAC and send to gateway.

        Raises:
            EmailGatewayError: On any failure
        """
        payload_json = json.dumps(payload, separators=(",", ":"))

        headers = {
            "Content-Type": "application/json",
            "X-API-Key": self.api_key,
            "X-Signature": self.sign(payload_json),
        }

        try:
            response = requests.post(
                self.gateway_url,
                data=payload_json,
                headers=headers,
                timeout=self.timeout,
            )
        except (requests.exceptions.RequestException, ConnectionError) as e:
            logger.error(f"Email gateway connection failed: {e}")
            raise EmailGatewayError(f"Connection failed: {e}")

        try:
            response_data = response.json()
        except (json.JSONDecodeError, requests.exceptions.JSONDecodeError):
            logger.error(f"Email gateway returned invalid JSON: {response.text}")
            raise EmailGatewayError("Invalid response from gateway")

        if response.status_code != 200 or not response_data.get("success"):
            error_msg = response_data.get("message", "Unknown error")
            logger.error(f"Email gateway error: {error_msg}")
            raise EmailGatewayError(f"Gateway error: {error_msg}")

    def send_email(
        self,
        to: str,
        subject: str,
        body: str,
        sender: str = "notifications",
    ) -> None:
        """
        Send an email via gateway.

        Args:
            to: Recipient email address
            subject: Email subject line
            body: Plain text email body
            sender: Sender identity - "verification" or "notifications"

        Raises:
            ValueError: If sender is invalid
            EmailGatewayError: On gateway failure
        """
        if sender not in self.SENDERS:
            raise ValueError(
                f"sender must be one of {', '.join(self.SENDERS)}, got '{sender}'"
            )

        payload = {
            "email": to,
            "subject": subject,
            "body": body,
            "sender": sender,
        }
        self._sign_and_send(payload)
        logger.info(f"Email sent to {to}: {subject}")
