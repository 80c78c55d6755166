from importlib.resources import files

from platformdirs import user_config_path, user_log_path

PACKAGE_NAME = "titleseed"  # Python package name

# -----------------------------------------------------------------------------
# User-writable directories & files
# -----------------------------------------------------------------------------

USER_CONFIG_DIR = user_config_path(PACKAGE_NAME, appauthor=False)
USER_LOG_DIR = user_log_path(PACKAGE_NAME, appauthor=False)

SETTING_PATH = USER_CONFIG_DIR / "settings.toml"

# -----------------------------------------------------------------------------
# Embedded resources
# -----------------------------------------------------------------------------

RES = files("titleseed.resources")

# Config
DEFAULT_CONFIG_FILE = RES.joinpath("config", "settings.sample.toml")

# Default config filename (used when copying embedded template)
DEFAULT_CONFIG_FILENAME = "settings.toml"

# Seed content uploaded by a provisioning run
SEED_DIR = RES.joinpath("seed")
