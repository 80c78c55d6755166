"""
Default HTTP headers used by the Admin API client.

The Admin API only speaks JSON, so unlike a browser-style client the defaults
are limited to content negotiation and an identifying User-Agent.
"""

from titleseed.version import __version__

# -----------------------------------------------------------------------------
# Default headers
# -----------------------------------------------------------------------------

DEFAULT_USER_AGENT = f"titleseed/{__version__}"

DEFAULT_JSON_HEADERS = {
    "Accept": "application/json",
    "Content-Type": "application/json",
    "User-Agent": DEFAULT_USER_AGENT,
}

# Header carrying the title's secret key on every admin call.
SECRET_KEY_HEADER = "X-SecretKey"

# Host template for a title's API endpoint.
DEFAULT_API_BASE_TEMPLATE = "https://{title_id}.playfabapi.com"

# Root of the management console, used for the "what this creates" links.
CONSOLE_BASE_URL = "https://developer.playfab.com/en-US"
