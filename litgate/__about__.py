"""
WARNING: Do not modify this file.
"""

__all__ = [
    "__title__", "__summary__", "__version__", "__author__", "__email__", "__license__", "__copyright__", "__url__"
]

__title__ = "litgate"

__url__ = "https://github.com/litgate/litgate"

__summary__ = "Condition-gated threshold decryption with delegated, short-lived session credentials."

__version__ = "0.4.0"

__author__ = "litgate"

__email__ = "dev@litgate.dev"

__license__ = "GNU Affero General Public License, Version 3"

__copyright__ = 'Copyright (C) 2024 litgate'
