# checkout_engine/services/mailer.py
from abc import ABC, abstractmethod

from checkout_engine.utils.logging import get_logger

logger = get_logger(__name__)

SUBJECTS = {
    "order_confirmation.html": "Your order #{order_id} is confirmed",
    "payment_failed.html": "Payment for order #{order_id} did not go through",
}


class Mailer(ABC):
    """Mail capability. Only the email task calls it."""

    @abstractmethod
    def send(self, template: str, recipient: str, data: dict) -> None:
        ...


class LoggingMailer(Mailer):
    """
    Default mailer: delivery belongs to an external mail service, here we only
    render the subject and log what would be sent.
    """

    def send(self, template: str, recipient: str, data: dict) -> None:
        if template not in SUBJECTS:
            raise ValueError(f"unknown mail template {template}")
        subject = SUBJECTS[template].format(**data)
        logger.info(f"[MAIL] to={recipient} template={template} subject='{subject}' data={data}")


def get_mailer() -> Mailer:
    return LoggingMailer()
