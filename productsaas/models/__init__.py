from productsaas.models.user import User, Role
from productsaas.models.session import UserSession
from productsaas.models.settings import UserSettings
from productsaas.models.product import Product, ProductStatus
from productsaas.models.order import Order, OrderStatus, PaymentStatus
from productsaas.models.customer import Customer, CustomerStatus
from productsaas.models.coupon import Coupon, DiscountType
from productsaas.models.query import SupportQuery, QueryStatus, QueryPriority, QueryCategory
