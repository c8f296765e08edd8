import pytest

from localbase import Column, DataType, TableSchema, ValidationError
from localbase.models import restaurant_schemas

STRICT = TableSchema('tables', [
    Column('number', DataType.INT, nullable=False),
    Column('status', DataType.STRING, default='livre'),
    Column('tags', DataType.ARRAY, default=[]),
], extra_fields=False)


@pytest.mark.parametrize('data_type,good,bad', [
    (DataType.INT, 3, True),
    (DataType.FLOAT, 3, 'x'),
    (DataType.FLOAT, 2.5, False),
    (DataType.STRING, 'a', 1),
    (DataType.BOOL, False, 0),
    (DataType.JSON, {'a': 1}, [1]),
    (DataType.ARRAY, [1], {'a': 1}),
])
def test_data_type_accepts(data_type, good, bad):
    assert data_type.accepts(good)
    assert not data_type.accepts(bad)


def test_any_accepts_everything():
    assert DataType.ANY.accepts(object())


def test_apply_fills_defaults_without_sharing_them():
    first = STRICT.apply({'number': 1})
    second = STRICT.apply({'number': 2})
    assert first['status'] == 'livre'
    first['tags'].append('janela')
    assert second['tags'] == []


def test_apply_rejects_missing_required_column():
    with pytest.raises(ValidationError):
        STRICT.apply({'status': 'livre'})


def test_apply_allows_system_fields_but_not_unknown_ones():
    STRICT.apply({'id': 1, 'number': 1, 'created_at': '2024-01-01'})
    with pytest.raises(ValidationError) as exc:
        STRICT.apply({'number': 1, 'color': 'azul'})
    assert exc.value.details == {'columns': ['color']}


def test_check_patch_only_checks_present_columns():
    STRICT.check_patch({'status': 'ocupada'})
    with pytest.raises(ValidationError):
        STRICT.check_patch({'number': None})
    with pytest.raises(ValidationError):
        STRICT.check_patch({'number': 'um'})


def test_restaurant_schemas_cover_app_collections():
    schemas = restaurant_schemas()
    assert sorted(schemas) == ['menu_items', 'order_items', 'orders', 'reservations', 'tables', 'users']
    assert schemas['users'].get_column('role').default == 'cliente'
