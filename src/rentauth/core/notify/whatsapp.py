"""WhatsApp collaborator client."""

from rentauth.core.notify.base import DeliveryReceipt, HttpNotifier


class WhatsAppNotifier(HttpNotifier):
    """Asks the WhatsApp service to send a passcode message.

    The service answers ``{"success": true, "messageId": ...}`` or
    ``{"success": false, "error": ...}``. An explicit refusal is not
    retried.
    """

    channel = "whatsapp"

    async def send_otp(self, recipient: str, code: str, locale: str) -> DeliveryReceipt:
        data = await self._post(
            "/otp", {"phoneNumber": recipient, "otp": code, "locale": locale}
        )
        return DeliveryReceipt(channel=self.channel, message_id=data.get("messageId"))

    async def _attempt(self, url, payload, headers):  # type: ignore[no-untyped-def]
        data = await super()._attempt(url, payload, headers)
        if not data.get("success"):
            raise ValueError(f"whatsapp service refused: {data.get('error', 'unknown')}")
        return data
