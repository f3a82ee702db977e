from enum import Enum

class SubscriberPaymentStatus(str, Enum):
    pending = "pending"
    completed = "completed"
