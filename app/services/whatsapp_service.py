"""
app/services/whatsapp_service.py

Purpose: WhatsApp Cloud API message sending

- Sends the verification code as an approved template message
- Never raises; failures are logged and reported in the result dict
- Skips the API call when credentials are not configured (local development)
"""

import httpx
from typing import Dict, Any, Optional
from app.core.config import settings
from app.core.logging import get_logger

logger = get_logger(__name__)


def build_verification_template(to_phone: str, code: str, template_name: str, language: str) -> Dict[str, Any]:
    """
    Builds the Cloud API payload for the verification template.

    The code fills the body's text parameter and the copy-code URL button.
    """
    return {
        "messaging_product": "whatsapp",
        "recipient_type": "individual",
        "to": to_phone,
        "type": "template",
        "template": {
            "name": template_name,
            "language": {"code": language},
            "components": [
                {
                    "type": "body",
                    "parameters": [{"type": "text", "text": code}],
                },
                {
                    "type": "button",
                    "sub_type": "url",
                    "index": 0,
                    "parameters": [{"type": "text", "text": code}],
                },
            ],
        },
    }


class WhatsAppService:
    """Service for sending verification codes via the WhatsApp Cloud API"""

    def __init__(self, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.phone_id = settings.WHATSAPP_PHONE_ID
        self.access_token = settings.WHATSAPP_TOKEN
        self.template_name = settings.WHATSAPP_TEMPLATE_NAME
        self.language = settings.WHATSAPP_LANGUAGE
        self.timeout = settings.WHATSAPP_TIMEOUT_SECONDS
        self.base_url = f"{settings.WHATSAPP_API_URL}/{settings.WHATSAPP_API_VERSION}/{self.phone_id}"
        self.transport = transport

    def is_configured(self) -> bool:
        """Check if the Cloud API credentials are set"""
        return bool(self.phone_id and self.access_token)

    async def send_verification_code(self, to_phone: str, code: str) -> Dict[str, Any]:
        """
        Sends a verification code to a phone number.

        Args:
            to_phone: Recipient phone (+919876543210)
            code: 6-digit verification code

        Returns:
            {
                "success": True/False,
                "message_id": "wamid...",
                "error": "Optional error message"
            }
        """
        if not self.is_configured():
            logger.info(f"[LOCAL DEV] WhatsApp not configured, skipping send to {to_phone}")
            return {"success": True, "message_id": None, "mock": True}

        payload = build_verification_template(to_phone, code, self.template_name, self.language)

        try:
            logger.info(f"Sending verification template to {to_phone}")

            async with httpx.AsyncClient(transport=self.transport, timeout=self.timeout) as client:
                response = await client.post(
                    f"{self.base_url}/messages",
                    json=payload,
                    headers={"Authorization": f"Bearer {self.access_token}"},
                )

            if response.is_success:
                try:
                    message_id = response.json()["messages"][0]["id"]
                except (ValueError, KeyError, IndexError, TypeError):
                    message_id = None
                logger.info(f"Verification code sent to {to_phone} via WhatsApp (id={message_id})")
                return {"success": True, "message_id": message_id}

            logger.error(f"WhatsApp API error: {response.status_code} - {response.text}")
            return {
                "success": False,
                "error": f"WhatsApp API error: {response.status_code}"
            }

        except httpx.TimeoutException:
            logger.error("WhatsApp API timeout")
            return {
                "success": False,
                "error": "WhatsApp API timeout"
            }
        except httpx.RequestError as e:
            logger.error(f"Network error sending WhatsApp message: {e}")
            return {
                "success": False,
                "error": "Network error connecting to WhatsApp API"
            }


# Global service instance
_whatsapp_service: Optional[WhatsAppService] = None


def get_whatsapp_service() -> WhatsAppService:
    """Get or create WhatsApp service instance."""
    global _whatsapp_service
    if _whatsapp_service is None:
        _whatsapp_service = WhatsAppService()
    return _whatsapp_service
