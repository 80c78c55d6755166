from .version import __version__ as __version__

__title__ = "titleseed"
__description__ = "Staged provisioning of game-backend titles through the Admin API."
__url__ = "https://github.com/titleseed/titleseed"
__author__ = "titleseed contributors"
__license__ = "Apache-2.0"
