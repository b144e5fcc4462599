from decimal import Decimal

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    database_url: str = "postgresql+asyncpg://postgres:postgres@db:5432/restaurant"
    log_level: str = "INFO"

    # Order numbering
    pdv_order_prefix: str = "PDV"
    menu_order_prefix: str = "PED"

    # Fallbacks when restaurant_settings has no row yet
    default_delivery_fee: Decimal = Decimal("5.00")
    restaurant_phone: str = "5511999999999"

    seed_catalog: bool = True

    # Kafka (realtime order change channel)
    kafka_bootstrap_servers: str = "kafka:9092"
    orders_topic: str = "orders.changed"
    # each process joins its own group: <prefix>-<host>-<random>
    kafka_consumer_group_prefix: str = "order-board"
    realtime_enabled: bool = True

    # Observability
    otlp_endpoint: str | None = "http://jaeger:4318/v1/traces"

    model_config = {"env_file": ".env"}


settings = Settings()
