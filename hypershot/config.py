from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", env_prefix="HYPERSHOT_", extra="ignore"
    )

    app_name: str = "hypershot"
    base_storage_dir: str = "./data"
    log_level: str = "INFO"

    # Snapshot layout, relative to the snapshot root
    assets_dir_name: str = "assets"
    index_file_name: str = "index.html"
    manifest_file_name: str = "build.json"

    # Discovery selectors, combined into one query so matches keep document order
    link_selector: str = 'link:not([rel="dns-prefetch"])'
    script_selector: str = "script[src]"
    image_selector: str = "img[src]"

    # Local names are <digest of url><extension>
    hash_algorithm: str = "md5"

    # Resource fetching
    request_timeout: float = 30.0
    resource_timeout: float = 60.0
    follow_redirects: bool = True
    user_agent: str = (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
        "AppleWebKit/537.36 (KHTML, like Gecko) "
        "Chrome/122.0.0.0 Safari/537.36"
    )

    # Page runtime
    headless: bool = True
    playwright_timeout_ms: int = 30000
    wait_until: str = "networkidle"
    settle_ms: int = 0
    viewport_width: int = 1440
    viewport_height: int = 900

    @property
    def resource_selector(self) -> str:
        return ", ".join((self.link_selector, self.script_selector, self.image_selector))


settings = Settings()
