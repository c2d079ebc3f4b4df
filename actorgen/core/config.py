from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="ACTORGEN_", env_file=".env", extra="ignore")

    app_name: str = "actorgen"
    log_level: str = "INFO"

    # Name suffix of the generated peer class, e.g. Todo -> TodoActor
    actor_suffix: str = "Actor"
    strict_generics: bool = True

    # "package.module:callable" returning an awaitable Storage
    storage_opener: str | None = None


@lru_cache
def get_settings() -> Settings:
    return Settings()
