from pydantic_settings import BaseSettings, SettingsConfigDict


class ClientSettings(BaseSettings):
    # HAVENSTAY_API_URL
    API_URL: str = "http://localhost:3001/api"
    REQUEST_TIMEOUT: float = 15.0

    model_config = SettingsConfigDict(
        env_prefix="HAVENSTAY_", env_file=".env", extra="ignore"
    )


client_settings = ClientSettings()
