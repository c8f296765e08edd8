"""
RPC and Edge Function Dispatcher
Named synthetic server-side operations resolved against a fixed registry
"""

import logging
import random
import uuid
from collections import defaultdict
from dataclasses import dataclass
from datetime import date
from typing import Any, Awaitable, Callable, Dict, List, Optional

from .collection import CollectionStore, Record
from .errors import NotImplementedFunctionError, ValidationError
from .response import Response, respond

logger = logging.getLogger('localbase.rpc')


@dataclass
class RpcContext:
    store: CollectionStore


Handler = Callable[[RpcContext, Dict[str, Any]], Awaitable[Any]]


class FunctionRegistry:
    def __init__(self, kind: str):
        self.kind = kind
        self._handlers: Dict[str, Handler] = {}

    def register(self, name: str) -> Callable[[Handler], Handler]:
        def decorator(handler: Handler) -> Handler:
            self._handlers[name] = handler
            return handler
        return decorator

    def names(self) -> List[str]:
        return sorted(self._handlers)

    def copy(self) -> 'FunctionRegistry':
        clone = FunctionRegistry(self.kind)
        clone._handlers = dict(self._handlers)
        return clone

    async def call(self, context: RpcContext, name: str, params: Dict[str, Any]) -> Any:
        handler = self._handlers.get(name)
        if handler is None:
            raise NotImplementedFunctionError(
                f"{self.kind} {name} not implemented",
                {'name': name}
            )
        logger.debug(f"Dispatching {self.kind} {name}")
        return await handler(context, params)


rpc_registry = FunctionRegistry('RPC function')
edge_registry = FunctionRegistry('Function')


def _date_of(record: Record) -> Optional[str]:
    value = record.get('created_at')
    if not isinstance(value, str):
        return None
    return value[:10]


def _day_param(params: Dict[str, Any], name: str) -> Optional[str]:
    """Normalize a date bound given as an ISO string, date or datetime to YYYY-MM-DD."""
    value = params.get(name)
    if value is None:
        return None
    if isinstance(value, date):
        return value.isoformat()[:10]
    if isinstance(value, str):
        return value[:10]
    raise ValidationError(
        f"{name} must be an ISO date string or a date, got {type(value).__name__}",
        {'param': name}
    )


def _in_range(day: Optional[str], start: Optional[str], end: Optional[str]) -> bool:
    if start is None and end is None:
        return True
    if day is None:
        return False
    if start is not None and day < start:
        return False
    if end is not None and day > end:
        return False
    return True


@rpc_registry.register('get_sales_dashboard_data')
async def sales_dashboard(context: RpcContext, params: Dict[str, Any]) -> Dict[str, Any]:
    start = _day_param(params, 'start_date')
    end = _day_param(params, 'end_date')

    orders = [o for o in context.store.load('orders') if _in_range(_date_of(o), start, end)]
    totals = [o.get('total') for o in orders]
    total_sales = round(sum(t for t in totals if isinstance(t, (int, float))), 2)
    order_count = len(orders)
    avg_order_value = round(total_sales / order_count, 2) if order_count else 0

    order_ids = {o.get('id') for o in orders}
    menu_names = {m.get('id'): m.get('name') for m in context.store.load('menu_items')}
    quantities: Dict[Any, int] = defaultdict(int)
    for item in context.store.load('order_items'):
        if item.get('order_id') in order_ids:
            qty = item.get('quantity', 1)
            quantities[item.get('menu_item_id')] += qty if isinstance(qty, int) else 1

    ranked = sorted(quantities.items(), key=lambda kv: kv[1], reverse=True)[:5]
    top_items = [
        {'name': menu_names.get(menu_id, f"Item {menu_id}"), 'sales': qty}
        for menu_id, qty in ranked
    ]

    return {
        'total_sales': total_sales,
        'order_count': order_count,
        'avg_order_value': avg_order_value,
        'top_items': top_items
    }


@rpc_registry.register('get_reservations_dashboard_data')
async def reservations_dashboard(context: RpcContext, params: Dict[str, Any]) -> Dict[str, Any]:
    day = _day_param(params, 'p_date')
    reservations = [
        r for r in context.store.load('reservations')
        if day is None or r.get('date') == day
    ]
    by_status: Dict[str, int] = defaultdict(int)
    guests = 0
    for r in reservations:
        by_status[str(r.get('status', 'unknown'))] += 1
        size = r.get('party_size')
        if isinstance(size, int):
            guests += size
    return {
        'date': day,
        'total_reservations': len(reservations),
        'total_guests': guests,
        'by_status': dict(by_status)
    }


@rpc_registry.register('check_in_reservation')
async def check_in_reservation(context: RpcContext, params: Dict[str, Any]) -> Dict[str, Any]:
    pin = params.get('p_pin') or str(random.randint(100000, 999999))
    return {'pin': str(pin)}


@edge_registry.register('send-notification')
async def send_notification(context: RpcContext, body: Any) -> Dict[str, Any]:
    return {'success': True, 'messageId': f"msg-{uuid.uuid4().hex[:8]}"}


class Dispatcher:
    def __init__(
        self,
        store: CollectionStore,
        rpcs: Optional[FunctionRegistry] = None,
        functions: Optional[FunctionRegistry] = None
    ):
        self.context = RpcContext(store=store)
        self.rpcs = rpcs if rpcs is not None else rpc_registry.copy()
        self.functions = functions if functions is not None else edge_registry.copy()

    async def rpc(self, name: str, params: Optional[Dict[str, Any]] = None) -> Response:
        return await respond(
            f"rpc {name}",
            lambda: self.rpcs.call(self.context, name, dict(params or {}))
        )

    async def invoke(self, name: str, body: Any = None) -> Response:
        payload = body if body is not None else {}
        return await respond(
            f"function {name}",
            lambda: self.functions.call(self.context, name, payload)
        )
