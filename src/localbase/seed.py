"""
Demo Data
Populates an empty client with a small restaurant data set
"""

import logging
from datetime import date
from typing import Any, Dict, List

from .client import LocalClient
from .models import OrderStatus, ReservationStatus, TableStatus, UserRole

logger = logging.getLogger('localbase.seed')


def demo_data(today: str) -> Dict[str, List[Dict[str, Any]]]:
    return {
        'users': [
            {'id': 1, 'name': 'Admin Sistema', 'email': 'admin@cheforg.com',
             'phone': '(11) 99999-9999', 'role': UserRole.MANAGER.value},
            {'id': 2, 'name': 'João Recepcionista', 'email': 'recepcao@cheforg.com',
             'phone': '(11) 88888-8888', 'role': UserRole.RECEPTION.value},
            {'id': 3, 'name': 'Maria Garçom', 'email': 'garcom@cheforg.com',
             'phone': '(11) 77777-7777', 'role': UserRole.WAITER.value},
            {'id': 4, 'name': 'Pedro Cozinheiro', 'email': 'cozinha@cheforg.com',
             'phone': '(11) 66666-6666', 'role': UserRole.COOK.value},
            {'id': 5, 'name': 'Ana Caixa', 'email': 'caixa@cheforg.com',
             'phone': '(11) 55555-5555', 'role': UserRole.CASHIER.value},
        ],
        'tables': [
            {'id': 1, 'number': 1, 'seats': 2, 'status': TableStatus.FREE.value},
            {'id': 2, 'number': 2, 'seats': 4, 'status': TableStatus.OCCUPIED.value, 'waiter_id': 3},
            {'id': 3, 'number': 3, 'seats': 6, 'status': TableStatus.RESERVED.value},
            {'id': 4, 'number': 4, 'seats': 4, 'status': TableStatus.CLEANING.value},
        ],
        'menu_items': [
            {'id': 1, 'name': 'Hambúrguer Artesanal', 'price': 32.9, 'category': 'pratos'},
            {'id': 2, 'name': 'Pizza Margherita', 'price': 45.0, 'category': 'pratos'},
            {'id': 3, 'name': 'Salada Caesar', 'price': 28.5, 'category': 'entradas'},
            {'id': 4, 'name': 'Suco Natural', 'price': 9.9, 'category': 'bebidas'},
        ],
        'orders': [
            {'id': 1, 'table_id': 2, 'customer_name': 'Carlos', 'status': OrderStatus.PAID.value,
             'total': 75.7},
            {'id': 2, 'table_id': 2, 'customer_name': 'Beatriz', 'status': OrderStatus.PREPARING.value,
             'total': 54.9},
        ],
        'order_items': [
            {'order_id': 1, 'menu_item_id': 1, 'quantity': 2, 'unit_price': 32.9},
            {'order_id': 1, 'menu_item_id': 4, 'quantity': 1, 'unit_price': 9.9},
            {'order_id': 2, 'menu_item_id': 2, 'quantity': 1, 'unit_price': 45.0},
            {'order_id': 2, 'menu_item_id': 4, 'quantity': 1, 'unit_price': 9.9},
        ],
        'reservations': [
            {'customer_name': 'Fernanda Lima', 'phone': '(11) 91234-5678', 'date': today,
             'time': '19:30', 'party_size': 4, 'table_id': 3},
            {'customer_name': 'Roberto Alves', 'phone': '(11) 98765-4321', 'date': today,
             'time': '20:00', 'party_size': 2, 'status': ReservationStatus.CANCELLED.value},
        ],
    }


async def seed(client: LocalClient, today: str = '') -> Dict[str, int]:
    """
    Insert the demo data set into every collection that is still empty.

    Collections that already hold records are left untouched so seeding twice
    does not duplicate anything. Returns the number of records inserted per
    collection.
    """
    counts: Dict[str, int] = {}
    for name, records in demo_data(today or date.today().isoformat()).items():
        existing = await client.from_(name).select('id').limit(1)
        if existing.raise_for_error():
            logger.info(f"Skipping {name}: already populated")
            counts[name] = 0
            continue
        inserted = await client.from_(name).insert(records)
        counts[name] = len(inserted.raise_for_error())
        logger.info(f"Seeded {counts[name]} record(s) into {name}")
    return counts
