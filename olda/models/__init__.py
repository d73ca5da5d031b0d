# olda/models/__init__.py
from .order import *              # Order, OrderItem
from .order_status_log import *   # OrderStatusLog
from .user import *               # User
from .client_storage import *     # ClientStorageEntry
