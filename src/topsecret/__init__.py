"""TopSecret: symmetric encryption of buffers, JSON values and files.

Applications embedding the package can call ``configure_logging`` to get
the ``topsecret`` loggers onto a terminal stream.
"""

from .core.logging_config import configure_logging
from .security.box import SecretBox
from .security.kdf import Key

__all__ = ["SecretBox", "Key", "configure_logging"]
