# Masters
from app.models.masters.client_models import Client

# Billing
from app.models.billing.invoice_models import Invoice, InvoiceItem

# Subscriptions
from app.models.subscriptions.subscriber_models import Subscriber

# Support
from app.models.support.activity_models import UserActivity
