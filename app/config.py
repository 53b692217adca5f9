import os
from pathlib import Path

from dotenv import dotenv_values
from pydantic_settings import BaseSettings

_ENV_FILE = Path.home() / "env" / ".env.dev"
_env_vars = dotenv_values(str(_ENV_FILE)) if _ENV_FILE.exists() else {}

BROWSER_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)


class Settings(BaseSettings):
    app_name: str = "Handbag Finder"
    debug: bool = False
    log_level: str = "INFO"

    # search provider
    exa_api_key: str = ""
    exa_base_url: str = "https://api.exa.ai"
    search_timeout: float = 15.0
    handbag_num_results: int = 12
    generic_num_results: int = 3
    search_include_domains: list[str] = []
    handbag_query_suffix: str = " buy online handbag"

    # scraping and ranking
    max_products: int = 5
    require_product_image: bool = False
    scrape_concurrency: int = 8
    scrape_timeout: float = 10.0
    scrape_user_agent: str = BROWSER_USER_AGENT
    generic_content_chars: int = 1000

    # assistant
    anthropic_api_key: str = ""
    chat_model: str = "claude-sonnet-4-5-20250929"
    chat_max_tokens: int = 2048
    chat_thinking_budget: int = 0  # 0 disables extended thinking
    max_tool_rounds: int = 3

    model_config = {
        "env_prefix": "HANDBAG_",
        "env_file": ".env",
        "extra": "ignore",
    }

    def model_post_init(self, __context):
        if not self.exa_api_key:
            self.exa_api_key = os.environ.get("EXA_API_KEY") or _env_vars.get("EXA_API_KEY", "")
        if not self.anthropic_api_key:
            self.anthropic_api_key = (
                os.environ.get("ANTHROPIC_API_KEY") or _env_vars.get("ANTHROPIC_API_KEY", "")
            )


settings = Settings()
