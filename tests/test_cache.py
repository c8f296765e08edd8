import pytest

from localbase import ResponseCache
from localbase.cache import collection_pattern, make_query_key


@pytest.fixture()
def cache(clock):
    return ResponseCache(max_size=3, default_ttl_minutes=5, clock=clock)


def test_get_returns_value_until_ttl_elapses(cache, clock):
    cache.set('k', {'rows': [1]}, ttl_minutes=1)
    assert cache.get('k') == {'rows': [1]}

    clock.advance(60)
    assert cache.get('k') == {'rows': [1]}

    clock.advance(1)
    assert cache.get('k') is None
    assert cache.get('k') is None
    assert cache.size() == 0


def test_default_ttl(cache, clock):
    cache.set('k', 1)
    clock.advance(5 * 60 - 1)
    assert cache.get('k') == 1
    clock.advance(2)
    assert cache.get('k') is None


def test_lru_eviction(cache):
    cache.set('a', 1)
    cache.set('b', 2)
    cache.set('c', 3)
    cache.get('a')
    cache.set('d', 4)
    assert cache.keys() == ['c', 'a', 'd']


def test_overwrite_refreshes_timestamp(cache, clock):
    cache.set('k', 1, ttl_minutes=1)
    clock.advance(50)
    cache.set('k', 2, ttl_minutes=1)
    clock.advance(50)
    assert cache.get('k') == 2


def test_clear_by_pattern(cache):
    cache.set('select:orders:aaa', 1)
    cache.set('select:orders:bbb', 2)
    cache.set('select:users:ccc', 3)
    assert cache.clear(collection_pattern('orders')) == 2
    assert cache.keys() == ['select:users:ccc']
    assert cache.clear() == 1
    assert cache.size() == 0


def test_cleanup_expired(cache, clock):
    cache.set('short', 1, ttl_minutes=1)
    cache.set('long', 2, ttl_minutes=10)
    clock.advance(120)
    assert cache.cleanup_expired() == 1
    assert cache.keys() == ['long']


def test_delete(cache):
    cache.set('k', 1)
    assert cache.delete('k') is True
    assert cache.delete('k') is False


def test_stats_track_hits_and_misses(cache):
    cache.set('k', 1)
    cache.get('k')
    cache.get('missing')
    stats = cache.stats()
    assert stats['hits'] == 1
    assert stats['misses'] == 1
    assert stats['hit_rate'] == 0.5
    assert stats['size'] == 1


def test_query_keys_are_scoped_by_collection():
    key = make_query_key('orders', '{"collection": "orders"}')
    assert key.startswith(collection_pattern('orders'))
    assert not key.startswith(collection_pattern('order'))


@pytest.mark.asyncio
async def test_client_serves_cached_select_until_expiry(cached_client, clock):
    await cached_client.from_('orders').insert({'total': 10})
    first = await cached_client.from_('orders').select()

    cached_client.store.save('orders', [])
    assert (await cached_client.from_('orders').select()).data == first.data

    clock.advance(61)
    assert (await cached_client.from_('orders').select()).data == []


@pytest.mark.asyncio
async def test_client_mutations_invalidate_cached_selects(cached_client):
    await cached_client.from_('orders').insert({'total': 10})
    await cached_client.from_('users').insert({'email': 'a@cheforg.com'})
    await cached_client.from_('orders').select()
    await cached_client.from_('users').select()
    assert cached_client.cache.size() == 2

    await cached_client.from_('orders').update({'total': 11}).eq('id', 1)
    assert cached_client.cache.size() == 1

    rows = (await cached_client.from_('orders').select()).data
    assert rows[0]['total'] == 11


@pytest.mark.asyncio
async def test_cached_results_are_isolated_from_callers(cached_client):
    await cached_client.from_('orders').insert({'total': 10})
    first = await cached_client.from_('orders').select()
    first.data[0]['total'] = 999

    second = await cached_client.from_('orders').select()
    assert second.data[0]['total'] == 10
