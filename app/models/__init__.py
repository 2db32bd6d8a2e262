from app.models.user import User
from app.models.child import Child
from app.models.menu_item import MenuItem
from app.models.order import Order
from app.models.order_line_item import OrderLineItem
from app.models.order_item import OrderItem
from app.models.cash_payment import CashPayment
from app.models.batch_order import BatchOrder
from app.models.order_event import OrderEvent

# add ALL models here
