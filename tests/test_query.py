import pytest

from localbase import (
    Condition, NotFoundError, Operator, OrderBy, QuerySpec, ValidationError, execute_query
)
from localbase.query import QueryBuilder, parse_columns

ROWS = [
    {'id': 1, 'name': 'Pizza', 'price': 45.0, 'category': 'pratos', 'available': True},
    {'id': 2, 'name': 'Suco', 'price': 9.9, 'category': 'bebidas', 'available': False},
    {'id': 3, 'name': 'Salada', 'price': 28.5, 'category': 'entradas', 'available': True},
    {'id': 4, 'name': 'Burger', 'price': 32.9, 'category': 'pratos', 'available': True},
    {'id': 5, 'name': 'Agua', 'price': None, 'category': 'bebidas'},
]


def spec(**kwargs):
    return QuerySpec(collection='menu_items', **kwargs)


def ids(rows):
    return [r['id'] for r in rows]


def test_no_filters_returns_everything_in_storage_order():
    assert ids(execute_query(spec(), ROWS)) == [1, 2, 3, 4, 5]


def test_filters_are_conjunctive_regardless_of_order():
    a = Condition('category', Operator.EQ, 'pratos')
    b = Condition('price', Operator.LT, 40)
    assert ids(execute_query(spec(filters=(a, b)), ROWS)) == [4]
    assert ids(execute_query(spec(filters=(b, a)), ROWS)) == [4]


def test_range_operators():
    result = execute_query(spec(filters=(
        Condition('price', Operator.GTE, 9.9),
        Condition('price', Operator.LTE, 32.9),
    )), ROWS)
    assert ids(result) == [2, 3, 4]
    assert ids(execute_query(spec(filters=(Condition('price', Operator.GT, 32.9),)), ROWS)) == [1]


def test_range_never_matches_null_or_incomparable_values():
    rows = ROWS + [{'id': 6, 'price': 'free'}]
    result = execute_query(spec(filters=(Condition('price', Operator.GT, 0),)), rows)
    assert 5 not in ids(result)
    assert 6 not in ids(result)


def test_missing_field_never_matches():
    assert execute_query(spec(filters=(Condition('available', Operator.NEQ, True),)), ROWS) == [ROWS[1]]
    assert execute_query(spec(filters=(Condition('missing', Operator.EQ, None),)), ROWS) == []


def test_bool_is_not_equal_to_integer():
    rows = [{'id': 1, 'flag': True}, {'id': 2, 'flag': 1}]
    assert ids(execute_query(spec(filters=(Condition('flag', Operator.EQ, 1),)), rows)) == [2]
    assert ids(execute_query(spec(filters=(Condition('flag', Operator.IN, (True,)),)), rows)) == [1]


def test_in_operator():
    result = execute_query(spec(filters=(Condition('id', Operator.IN, (1, 3, 99)),)), ROWS)
    assert ids(result) == [1, 3]


def test_nulls_sort_last_ascending_and_first_descending():
    asc = execute_query(spec(order_by=(OrderBy('price'),)), ROWS)
    assert ids(asc) == [2, 3, 4, 1, 5]
    desc = execute_query(spec(order_by=(OrderBy('price', ascending=False),)), ROWS)
    assert ids(desc) == [5, 1, 4, 3, 2]


def test_multi_key_ordering():
    result = execute_query(spec(order_by=(OrderBy('category'), OrderBy('price', ascending=False))), ROWS)
    assert ids(result) == [5, 2, 3, 1, 4]


def test_ordering_matches_external_stable_sort():
    condition = Condition('category', Operator.NEQ, 'entradas')
    unordered = execute_query(spec(filters=(condition,)), ROWS)
    ordered = execute_query(spec(filters=(condition,), order_by=(OrderBy('category'),)), ROWS)
    assert ordered == sorted(unordered, key=lambda r: r['category'])


def test_incomparable_order_values_raise():
    rows = [{'id': 1, 'v': 1}, {'id': 2, 'v': 'a'}]
    with pytest.raises(ValidationError):
        execute_query(spec(order_by=(OrderBy('v'),)), rows)


def test_offset_and_limit_apply_after_ordering():
    result = execute_query(spec(order_by=(OrderBy('id', ascending=False),), offset=1, limit=2), ROWS)
    assert ids(result) == [4, 3]


def test_projection_does_not_affect_filtering():
    result = execute_query(spec(
        columns=('name',),
        filters=(Condition('category', Operator.EQ, 'bebidas'),)
    ), ROWS)
    assert result == [{'name': 'Suco'}, {'name': 'Agua'}]


def test_projection_fills_missing_columns_with_none():
    result = execute_query(spec(columns=('id', 'available'), filters=(Condition('id', Operator.EQ, 5),)), ROWS)
    assert result == [{'id': 5, 'available': None}]


def test_single_returns_first_match():
    result = execute_query(spec(filters=(Condition('category', Operator.EQ, 'pratos'),), single=True), ROWS)
    assert result['id'] == 1


def test_single_without_match_raises_not_found():
    with pytest.raises(NotFoundError):
        execute_query(spec(filters=(Condition('id', Operator.EQ, 99),), single=True), ROWS)


def test_execute_does_not_mutate_input():
    rows = [dict(r) for r in ROWS]
    result = execute_query(spec(), rows)
    result[0]['name'] = 'changed'
    assert rows[0]['name'] == 'Pizza'


@pytest.mark.parametrize('columns,expected', [
    ('*', None),
    (None, None),
    ('id, name', ('id', 'name')),
    (['id', ' price '], ('id', 'price')),
    ('', None),
])
def test_parse_columns(columns, expected):
    assert parse_columns(columns) == expected


@pytest.mark.asyncio
async def test_builder_is_immutable_and_deferred():
    seen = []

    async def runner(query_spec):
        seen.append(query_spec)
        return query_spec

    base = QueryBuilder(spec(), runner)
    filtered = base.eq('category', 'pratos').order('price').limit(1)
    assert base.spec.filters == ()
    assert seen == []

    result = await filtered
    assert seen == [filtered.spec]
    assert result.filters == (Condition('category', Operator.EQ, 'pratos'),)
    assert result.order_by == (OrderBy('price'),)
    assert result.limit == 1


def test_builder_range_is_inclusive():
    builder = QueryBuilder(spec(), None).range(2, 4)
    assert builder.spec.offset == 2
    assert builder.spec.limit == 3


@pytest.mark.asyncio
@pytest.mark.parametrize('bounded', [
    lambda b: b.limit(-1),
    lambda b: b.range(3, 1),
    lambda b: b.range(-1, 2),
    lambda b: b.limit(-1).eq('id', 1).order('id'),
])
async def test_invalid_bounds_come_back_as_validation_errors(bounded):
    calls = []

    async def runner(query_spec):
        calls.append(query_spec)

    response = await bounded(QueryBuilder(spec(), runner))
    assert isinstance(response.error, ValidationError)
    assert response.data is None
    assert calls == []


@pytest.mark.asyncio
async def test_client_reports_negative_limit_in_envelope(client):
    await client.from_('orders').insert({'total': 10})
    response = await client.from_('orders').select().limit(-5)
    assert response.error.code == 'validation_error'


def test_match_adds_equality_filters():
    builder = QueryBuilder(spec(), None).match({'category': 'pratos', 'available': True})
    assert builder.spec.filters == (
        Condition('category', Operator.EQ, 'pratos'),
        Condition('available', Operator.EQ, True),
    )


def test_signature_distinguishes_specs():
    a = spec(filters=(Condition('id', Operator.EQ, 1),))
    b = spec(filters=(Condition('id', Operator.EQ, '1'),))
    assert a.signature() != b.signature()
    assert a.signature() == spec(filters=(Condition('id', Operator.EQ, 1),)).signature()
