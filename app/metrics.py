from prometheus_client import Counter

ORDERS_SUBMITTED = Counter(
    "orders_submitted_total",
    "Orders written by order submission",
    ["channel", "delivery_type"],
)

ORDER_VALIDATION_FAILURES = Counter(
    "order_validation_failures_total",
    "Checkouts rejected before any write",
    ["channel"],
)

ORDERS_CLOSED = Counter(
    "orders_closed_total",
    "Orders moved to completed by the lifecycle board",
    ["payment_method"],
)

ORDER_EVENTS = Counter(
    "order_change_events_total",
    "Order change events by direction and outcome",
    ["direction", "outcome"],  # published|consumed, ok|error
)

BOARD_RECONCILES = Counter(
    "board_reconciles_total",
    "Full reloads of the lifecycle board working list",
    ["trigger"],  # startup | local | realtime
)
