"""
Restaurant Collection Schemas
Column definitions for the collections the restaurant application stores
"""

from enum import Enum
from typing import Dict

from .schema import Column, DataType, TableSchema


class UserRole(Enum):
    CUSTOMER = 'cliente'
    RECEPTION = 'recepcao'
    WAITER = 'garcom'
    COOK = 'cozinheiro'
    CASHIER = 'caixa'
    MANAGER = 'gerente'


class TableStatus(Enum):
    FREE = 'livre'
    OCCUPIED = 'ocupada'
    RESERVED = 'reservada'
    CLEANING = 'limpeza'
    WAITING = 'aguardando'


class OrderStatus(Enum):
    CART = 'carrinho'
    CONFIRMED = 'confirmado'
    PREPARING = 'preparando'
    READY = 'pronto'
    DELIVERED = 'entregue'
    PAID = 'pago'


class ReservationStatus(Enum):
    CONFIRMED = 'confirmada'
    CHECKED_IN = 'checkin'
    CANCELLED = 'cancelada'
    NO_SHOW = 'nao_compareceu'


USERS = TableSchema('users', [
    Column('name', DataType.STRING, nullable=False),
    Column('email', DataType.STRING),
    Column('phone', DataType.STRING),
    Column('role', DataType.STRING, nullable=False, default=UserRole.CUSTOMER.value),
    Column('active', DataType.BOOL, default=True),
])

TABLES = TableSchema('tables', [
    Column('number', DataType.INT, nullable=False),
    Column('seats', DataType.INT, nullable=False),
    Column('status', DataType.STRING, nullable=False, default=TableStatus.FREE.value),
    Column('pin', DataType.STRING),
    Column('waiter_id', DataType.ANY),
])

MENU_ITEMS = TableSchema('menu_items', [
    Column('name', DataType.STRING, nullable=False),
    Column('description', DataType.STRING),
    Column('price', DataType.FLOAT, nullable=False),
    Column('category', DataType.STRING),
    Column('available', DataType.BOOL, default=True),
])

ORDERS = TableSchema('orders', [
    Column('table_id', DataType.ANY),
    Column('customer_name', DataType.STRING),
    Column('status', DataType.STRING, nullable=False, default=OrderStatus.CART.value),
    Column('total', DataType.FLOAT, nullable=False, default=0),
    Column('notes', DataType.STRING),
])

ORDER_ITEMS = TableSchema('order_items', [
    Column('order_id', DataType.ANY, nullable=False),
    Column('menu_item_id', DataType.ANY, nullable=False),
    Column('quantity', DataType.INT, nullable=False, default=1),
    Column('unit_price', DataType.FLOAT, nullable=False),
    Column('status', DataType.STRING, default='pendente'),
])

RESERVATIONS = TableSchema('reservations', [
    Column('customer_name', DataType.STRING, nullable=False),
    Column('phone', DataType.STRING),
    Column('date', DataType.STRING, nullable=False),
    Column('time', DataType.STRING, nullable=False),
    Column('party_size', DataType.INT, nullable=False),
    Column('status', DataType.STRING, default=ReservationStatus.CONFIRMED.value),
    Column('table_id', DataType.ANY),
])


def restaurant_schemas() -> Dict[str, TableSchema]:
    return {
        schema.name: schema
        for schema in (USERS, TABLES, MENU_ITEMS, ORDERS, ORDER_ITEMS, RESERVATIONS)
    }
