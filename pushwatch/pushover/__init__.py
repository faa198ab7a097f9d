"""Pushover integration: client, request models and pending receipts."""

from .client import AckQueryError, DeliveryError, NotificationClient, SubmitOutcome
from .models import MessageResponse, NotificationRequest, ReceiptStatus
from .receipts import Receipt, ReceiptRegistry
