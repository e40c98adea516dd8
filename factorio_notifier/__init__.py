"""
Factorio presence notifier.

Follows the Factorio player log and posts join/leave notifications to Telegram.
"""

__version__ = "0.1.0"
