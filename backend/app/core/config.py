from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    APP_NAME: str = "renewal-saga"
    version: str = "0.1.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    APP_DOMAIN: str = "example.com"
    APP_DATABASE_DSN: str = "sqlite:////tmp/database.db"
    REDIS_URL: str = "redis://localhost:6379"

    # Kafka
    KAFKA_BOOTSTRAP_SERVERS: str = "localhost:9092"
    KAFKA_CLIENT_ID: str = "renewal-saga"
    KAFKA_TOPIC_PAYMENT_REQUESTS: str = "payment-requests"
    KAFKA_TOPIC_PAYMENT_EVENTS: str = "payment-events"
    KAFKA_TOPIC_RENEWAL_RECONCILIATION: str = "renewal-reconciliation"
    KAFKA_SUBSCRIPTION_GROUP: str = "subscription-service-group"
    KAFKA_PAYMENT_GROUP: str = "payment-service-group"
    KAFKA_NOTIFICATION_GROUP: str = "notification-service-group"

    # Producer: idempotent, acks=all, bounded retries
    KAFKA_PRODUCER_RETRIES: int = 5
    KAFKA_DELIVERY_TIMEOUT_MS: int = 30000
    KAFKA_PUBLISH_TIMEOUT_SECONDS: float = 10.0

    # Consumer: manual ack, bounded redelivery then quarantine
    KAFKA_POLL_TIMEOUT_SECONDS: float = 1.0
    KAFKA_MAX_DELIVERY_ATTEMPTS: int = 5
    KAFKA_RETRY_BACKOFF_SECONDS: float = 0.5
    KAFKA_RETRY_BACKOFF_MAX_SECONDS: float = 30.0

    # Saga
    SCHEDULED_RENEWAL_MODE: str = "direct"  # "direct" or "saga"
    RENEWAL_SAGA_TIMEOUT_MINUTES: int = 60
    PAYMENT_PENDING_TIMEOUT_MINUTES: int = 45
    PROCESSED_EVENT_TTL_HOURS: int = 24 * 7
    IDEMPOTENCY_TTL_HOURS: int = 24
    DEFAULT_CURRENCY: str = "TRY"
    DEFAULT_PAYMENT_METHOD: str = "CREDIT_CARD"

    # Notifications
    NOTIFICATION_RECIPIENT_TEMPLATE: str = "customer{customer_id}@example.com"
    NOTIFICATION_MAX_RETRIES: int = 5
    NOTIFICATION_PENDING_GRACE_MINUTES: int = 5
    SMTP_HOST: str = ""
    SMTP_PORT: int = 587
    SMTP_USERNAME: str = ""
    SMTP_PASSWORD: str = ""
    SMTP_USE_TLS: bool = True
    SMTP_FROM_EMAIL: str = "noreply@example.com"
    SMTP_FROM_NAME: str = "Subscription System"
    PUSH_GATEWAY_URL: str = ""  # e.g. https://push.example.com/v1/messages

    # Request context
    JWT_SECRET: str = "change-me"
    JWT_ALGORITHM: str = "HS256"

    # CORS
    CORS_ORIGINS: str = "http://localhost:3000,http://localhost:5173"

    @property
    def saga_renewals_enabled(self) -> bool:
        return self.SCHEDULED_RENEWAL_MODE == "saga"


settings = Settings()
