from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    model_config = SettingsConfigDict(env_file=".env", env_prefix="LOTOQUINE_")

    app_name: str = "lotoquine"

    # Development mode: invariant violations raise instead of being logged
    debug: bool = False

    google_vision_api_key: str = ""
    google_vision_url: str = "https://vision.googleapis.com/v1/images:annotate"

    lotofiesta_base_url: str = "https://lotofiesta.fr"

    http_timeout: float = 30.0

    # Tirage listings change daily, product pages far less often
    tirage_cache_ttl_seconds: int = 60 * 60


settings = Settings()


# =============================================================================
# CARD GEOMETRY
# =============================================================================

GRID_ROWS = 3
GRID_COLUMNS = 9
NUMBERS_PER_CARD = 15
NUMBERS_PER_ROW = 5
MAX_NUMBERS_PER_COLUMN = 3

MIN_LOTO_NUMBER = 1
MAX_LOTO_NUMBER = 90

# A paper board (planche) carries 12 cards
CARDS_PER_BOARD = 12

# Series prefix assumed when OCR drops the first digit of a serial ("0-0035")
DEFAULT_SERIAL_PREFIX = "30"


# =============================================================================
# PRIZE LIST PARSING
# =============================================================================

# Line-oriented pass is accepted only with this many entries and lot #1
MIN_PRIMARY_PRIZE_ENTRIES = 6

# Flexible pass only considers lot numbers in this range
FLEXIBLE_MAX_LOT_NUMBER = 24

# Flexible descriptions longer than this are truncated
MAX_PRIZE_DESCRIPTION_LENGTH = 80

# Characters around a lot number searched when filling gaps
GAP_FILL_WINDOW = 60
