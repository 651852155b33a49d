"""qoh-wallet — Local player wallet and game-account transfer demo."""
from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("qoh-wallet")
except PackageNotFoundError:
    __version__ = "0.0.0"
