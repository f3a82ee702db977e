from app.constants.activity_codes import ActivityCode


ACTIVITY_TEMPLATES = {
    # ---------------- CLIENTS ----------------
    ActivityCode.CREATE_CLIENT:
        "{actor_email} created client {target_name}",

    ActivityCode.UPDATE_CLIENT:
        "{actor_email} updated client {target_name}: {changes}",

    ActivityCode.DELETE_CLIENT:
        "{actor_email} deleted client {target_name}",

    # ---------------- INVOICES ----------------
    ActivityCode.CREATE_INVOICE:
        "{actor_email} created invoice {target_name} for {amount}",

    ActivityCode.UPDATE_INVOICE:
        "{actor_email} updated invoice {target_name} ({item_count} items, total {amount})",

    ActivityCode.CHANGE_INVOICE_STATUS:
        "{actor_email} changed invoice {target_name} from {old_value} to {new_value}",

    ActivityCode.DELETE_INVOICE:
        "{actor_email} deleted invoice {target_name}",

    ActivityCode.EMAIL_INVOICE:
        "{actor_email} emailed invoice {target_name} to {recipient}",

    ActivityCode.MARK_INVOICE_OVERDUE:
        "Invoice {target_name} marked overdue automatically on {changes}",

    # ---------------- SUBSCRIPTIONS ----------------
    ActivityCode.START_CHECKOUT:
        "{actor_email} started {plan_type} checkout (order {order_id})",

    ActivityCode.ACTIVATE_SUBSCRIPTION:
        "{actor_email} activated {tier} until {expires_at} via {source}",
}
