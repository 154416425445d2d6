"""Emailer collaborator client."""

from rentauth.core.notify.base import DeliveryReceipt, HttpNotifier


class EmailNotifier(HttpNotifier):
    """Asks the emailer service to send templated emails.

    The emailer renders the template in the language given by
    ``Accept-Language``; ``recordId`` is the recipient address.
    """

    channel = "email"

    async def send_otp(self, recipient: str, code: str, locale: str) -> DeliveryReceipt:
        data = await self._post(
            "/otp",
            {"templateName": "otp", "recordId": recipient, "params": {"otp": code}},
            headers={"Accept-Language": locale},
        )
        return DeliveryReceipt(channel=self.channel, message_id=data.get("messageId"))

    async def send_reset_password(
        self, recipient: str, token: str, locale: str
    ) -> DeliveryReceipt:
        data = await self._post(
            "/resetpassword",
            {
                "templateName": "reset_password",
                "recordId": recipient,
                "params": {"token": token},
            },
            headers={"Accept-Language": locale},
        )
        return DeliveryReceipt(channel=self.channel, message_id=data.get("messageId"))
