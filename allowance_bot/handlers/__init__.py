"""
Slackイベントハンドラ
"""

from .common_handlers import CommonHandlers
from .money_handler import MoneyHandler

__all__ = [
    "CommonHandlers",
    "MoneyHandler"
]
