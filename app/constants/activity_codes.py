from enum import Enum


class ActivityCode(str, Enum):
    # ---------------- CLIENTS ----------------
    CREATE_CLIENT = "CREATE_CLIENT"
    UPDATE_CLIENT = "UPDATE_CLIENT"
    DELETE_CLIENT = "DELETE_CLIENT"

    # ---------------- INVOICES ----------------
    CREATE_INVOICE = "CREATE_INVOICE"
    UPDATE_INVOICE = "UPDATE_INVOICE"
    CHANGE_INVOICE_STATUS = "CHANGE_INVOICE_STATUS"
    DELETE_INVOICE = "DELETE_INVOICE"
    EMAIL_INVOICE = "EMAIL_INVOICE"
    MARK_INVOICE_OVERDUE = "MARK_INVOICE_OVERDUE"

    # ---------------- SUBSCRIPTIONS ----------------
    START_CHECKOUT = "START_CHECKOUT"
    ACTIVATE_SUBSCRIPTION = "ACTIVATE_SUBSCRIPTION"
