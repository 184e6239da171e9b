"""Route tables for the two Stripe API generations."""

from stripe_sdk.engine import Sdk

V2_PREFIX = "/v2/"

V1_ROUTES: tuple[tuple[str, str, str], ...] = (
    # Balance
    ("get_balance", "/v1/balance", "GET"),
    ("get_balance_transaction", "/v1/balance/history/{transaction_id}", "GET"),
    # Charges
    ("create_charge", "/v1/charges", "POST"),
    ("get_charge", "/v1/charges/{charge_id}", "GET"),
    ("update_charge", "/v1/charges/{charge_id}", "POST"),
    ("capture_charge", "/v1/charges/{charge_id}/capture", "POST"),
    # Customers
    ("create_customer", "/v1/customers", "POST"),
    ("get_customer", "/v1/customers/{customer_id}", "GET"),
    ("update_customer", "/v1/customers/{customer_id}", "POST"),
    ("delete_customer", "/v1/customers/{customer_id}", "DELETE"),
    ("list_customers", "/v1/customers", "GET"),
    # Payment methods
    ("create_payment_method", "/v1/payment_methods", "POST"),
    ("get_payment_method", "/v1/payment_methods/{payment_method_id}", "GET"),
    ("update_payment_method", "/v1/payment_methods/{payment_method_id}", "POST"),
    ("attach_payment_method", "/v1/payment_methods/{payment_method_id}/attach", "POST"),
    ("detach_payment_method", "/v1/payment_methods/{payment_method_id}/detach", "POST"),
    # Payment intents
    ("create_payment_intent", "/v1/payment_intents", "POST"),
    ("get_payment_intent", "/v1/payment_intents/{payment_intent_id}", "GET"),
    ("update_payment_intent", "/v1/payment_intents/{payment_intent_id}", "POST"),
    ("confirm_payment_intent", "/v1/payment_intents/{payment_intent_id}/confirm", "POST"),
    ("cancel_payment_intent", "/v1/payment_intents/{payment_intent_id}/cancel", "POST"),
    ("capture_payment_intent", "/v1/payment_intents/{payment_intent_id}/capture", "POST"),
    # Setup intents
    ("create_setup_intent", "/v1/setup_intents", "POST"),
    ("get_setup_intent", "/v1/setup_intents/{setup_intent_id}", "GET"),
    ("update_setup_intent", "/v1/setup_intents/{setup_intent_id}", "POST"),
    ("confirm_setup_intent", "/v1/setup_intents/{setup_intent_id}/confirm", "POST"),
    ("cancel_setup_intent", "/v1/setup_intents/{setup_intent_id}/cancel", "POST"),
    # Refunds
    ("create_refund", "/v1/refunds", "POST"),
    ("get_refund", "/v1/refunds/{refund_id}", "GET"),
    ("update_refund", "/v1/refunds/{refund_id}", "POST"),
    ("cancel_refund", "/v1/refunds/{refund_id}/cancel", "POST"),
    # Products
    ("create_product", "/v1/products", "POST"),
    ("get_product", "/v1/products/{product_id}", "GET"),
    ("update_product", "/v1/products/{product_id}", "POST"),
    ("delete_product", "/v1/products/{product_id}", "DELETE"),
    ("list_products", "/v1/products", "GET"),
    # Prices
    ("create_price", "/v1/prices", "POST"),
    ("get_price", "/v1/prices/{price_id}", "GET"),
    ("update_price", "/v1/prices/{price_id}", "POST"),
    ("list_prices", "/v1/prices", "GET"),
    # Subscriptions
    ("create_subscription", "/v1/subscriptions", "POST"),
    ("get_subscription", "/v1/subscriptions/{subscription_id}", "GET"),
    ("update_subscription", "/v1/subscriptions/{subscription_id}", "POST"),
    ("cancel_subscription", "/v1/subscriptions/{subscription_id}", "DELETE"),
    # Invoices
    ("create_invoice", "/v1/invoices", "POST"),
    ("get_invoice", "/v1/invoices/{invoice_id}", "GET"),
    ("update_invoice", "/v1/invoices/{invoice_id}", "POST"),
    ("finalize_invoice", "/v1/invoices/{invoice_id}/finalize", "POST"),
    ("pay_invoice", "/v1/invoices/{invoice_id}/pay", "POST"),
    ("void_invoice", "/v1/invoices/{invoice_id}/void", "POST"),
    # Checkout sessions
    ("create_checkout_session", "/v1/checkout/sessions", "POST"),
    ("get_checkout_session", "/v1/checkout/sessions/{id}", "GET"),
    ("get_checkout_session_line_items", "/v1/checkout/sessions/{id}/line_items", "GET"),
    ("expire_checkout_session", "/v1/checkout/sessions/{id}/expire", "POST"),
)

V2_ROUTES: tuple[tuple[str, str, str], ...] = (
    # Billing - meter events
    ("v2_create_meter_event", "/v2/billing/meter_events", "POST"),
    ("v2_get_meter_event", "/v2/billing/meter_events/{meter_event_id}", "GET"),
    ("v2_list_meter_events", "/v2/billing/meter_events", "GET"),
    # Billing - meter event adjustments
    ("v2_create_meter_event_adjustment", "/v2/billing/meter_event_adjustments", "POST"),
    (
        "v2_get_meter_event_adjustment",
        "/v2/billing/meter_event_adjustments/{meter_event_adjustment_id}",
        "GET",
    ),
    ("v2_list_meter_event_adjustments", "/v2/billing/meter_event_adjustments", "GET"),
    # Billing - meter event session / stream
    ("v2_create_meter_event_session", "/v2/billing/meter_event_session", "POST"),
    ("v2_create_meter_event_stream", "/v2/billing/meter_event_stream", "POST"),
    # Core - event destinations
    ("v2_create_event_destination", "/v2/core/event_destinations", "POST"),
    ("v2_get_event_destination", "/v2/core/event_destinations/{id}", "GET"),
    ("v2_update_event_destination", "/v2/core/event_destinations/{id}", "POST"),
    ("v2_list_event_destinations", "/v2/core/event_destinations", "GET"),
    ("v2_delete_event_destination", "/v2/core/event_destinations/{id}", "DELETE"),
    ("v2_disable_event_destination", "/v2/core/event_destinations/{id}/disable", "POST"),
    ("v2_enable_event_destination", "/v2/core/event_destinations/{id}/enable", "POST"),
    ("v2_ping_event_destination", "/v2/core/event_destinations/{id}/ping", "POST"),
    # Core - events
    ("v2_get_event", "/v2/core/events/{event_id}", "GET"),
    ("v2_list_events", "/v2/core/events", "GET"),
)


def register_routes(sdk: Sdk, routes: tuple[tuple[str, str, str], ...]) -> None:
    for name, path_template, verb in routes:
        sdk.register(name, path_template, verb)


def register_v1_endpoints(sdk: Sdk) -> None:
    register_routes(sdk, V1_ROUTES)


def register_v2_endpoints(sdk: Sdk) -> None:
    register_routes(sdk, V2_ROUTES)
