from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    COLLECTIVE_API_TOKEN: str | None = None

    GHL_API_BASE: str = "https://services.leadconnectorhq.com"
    GHL_API_VERSION: str = "2021-07-28"
    GHL_LOCATION_ID: str = "JcB0t2fZpGS0lMrqKDWQ"
    GHL_DEFAULT_CALENDAR_ID: str = "collective-events-calendar"
    GHL_TIMEOUT_SECONDS: float = 10.0

    # "direct" creates appointments through the API, "webhook" hands off to CRM automation
    BOOKING_STRATEGY: str = "direct"
    BOOKING_WEBHOOK_URL: str = ""

    EVENT_TIMEZONE: str = "Europe/London"
    DEFAULT_START_TIME: str = "17:00"
    DEFAULT_END_TIME: str = "19:30"

    CONFIRM_MAX_ATTEMPTS: int = 8
    CONFIRM_BASE_DELAY: float = 1.0
    CONFIRM_MAX_DELAY: float = 3.0

    CONTACT_SCAN_MAX_PAGES: int = 5

    EVENTS_OBJECT_KEY: str = "custom_objects.collective_event"
    VENUES_OBJECT_KEY: str = "custom_objects.collective_venue"

    ENV: str = "dev"
    LOG_LEVEL: str = "INFO"


settings = Settings()
