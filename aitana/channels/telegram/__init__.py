from .relay import TelegramRelay

__all__ = ["TelegramRelay"]
