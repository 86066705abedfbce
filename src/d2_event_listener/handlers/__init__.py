"""
Handlers invoked by the Dispatcher.

    - NewIdeaNFTHandler: NEW_IDEA_NFT -> store idea, publish NOTIFICATION
    - NotificationHandler: NOTIFICATION -> store, send via Telegram
    - OrderStoreHandler: ORDER_STORE -> store order
"""
from .new_idea_nft import IDEA_CREATED_NOTIFICATION, IdeaNotFoundError, NewIdeaNFTHandler
from .notification import NotificationHandler, format_notification
from .notifier import TelegramNotifier
from .order_store import OrderStoreHandler

__all__ = [
    "IDEA_CREATED_NOTIFICATION",
    "IdeaNotFoundError",
    "NewIdeaNFTHandler",
    "NotificationHandler",
    "format_notification",
    "TelegramNotifier",
    "OrderStoreHandler",
]
