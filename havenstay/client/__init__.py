from .api import ApiClient, ApiError
from .auth_store import AuthStore
from .config import ClientSettings, client_settings
from .images import FALLBACK_IMAGE_URL, file_base_url, parse_photos, resolve_image_url
from .quotes import StayQuote, quote_stay
