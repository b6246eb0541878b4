from sqlalchemy.exc import OperationalError


class BrokenSession:
    """Session stand-in whose every statement fails like a dropped connection."""

    def __init__(self, session):
        self._session = session

    def execute(self, statement, *args, **kwargs):
        raise OperationalError('INSERT ...', {}, Exception('password authentication failed for user "postgres"'))

    def __getattr__(self, name):
        return getattr(self._session, name)


def test_health(client):
    res = client.get('/')
    assert res.status_code == 200
    assert res.get_json() == {'ok': True, 'version': '1.0'}


def test_submit_and_fetch_flow(client):
    res = client.post('/score', json={'token': 'a', 'score': 10})
    assert res.status_code == 200
    assert res.get_json() == {'ok': True, 'best': 10}

    assert client.post('/score', json={'token': 'a', 'score': 5}).get_json()['best'] == 10
    assert client.post('/score', json={'token': 'a', 'score': 20, 'name': 'Al'}).get_json()['best'] == 20

    res = client.get('/me', query_string={'token': 'a'})
    assert res.status_code == 200
    assert res.get_json() == {'token': 'a', 'name': 'Al', 'best_score': 20}


def test_record_alias_behaves_like_score(client):
    res = client.post('/record', json={'token': 'old-client', 'score': 7, 'name': 'Legacy'})
    assert res.status_code == 200
    assert res.get_json() == {'ok': True, 'best': 7}
    me = client.get('/me?token=old-client').get_json()
    assert me['best_score'] == 7
    assert me['name'] == 'Legacy'


def test_submit_without_name_keeps_name(client):
    client.post('/score', json={'token': 'p', 'score': 1, 'name': 'Pat'})
    client.post('/score', json={'token': 'p', 'score': 2})
    client.post('/score', json={'token': 'p', 'score': 3, 'name': ''})
    assert client.get('/me?token=p').get_json()['name'] == 'Pat'


def test_submit_rejects_missing_token(client):
    res = client.post('/score', json={'score': 10})
    assert res.status_code == 400
    body = res.get_json()
    assert body['field'] == 'token'
    assert 'token' in body['error']


def test_submit_rejects_non_numeric_score(client):
    for bad in ['10', None, 2.5, True]:
        res = client.post('/score', json={'token': 'p', 'score': bad})
        assert res.status_code == 400
        assert res.get_json()['field'] == 'score'
    assert client.get('/leaders').get_json() == []


def test_submit_rejects_non_json_body(client):
    res = client.post('/score', data='token=p&score=1', content_type='application/x-www-form-urlencoded')
    assert res.status_code == 400


def test_me_requires_token(client):
    res = client.get('/me')
    assert res.status_code == 400
    assert res.get_json()['error'] == 'token required'


def test_me_unknown_token_is_zero(client):
    res = client.get('/me?token=newbie')
    assert res.status_code == 200
    assert res.get_json() == {'token': 'newbie', 'name': None, 'best_score': 0}


def test_leaders_order_and_shape(client):
    client.post('/score', json={'token': 'late', 'score': 100})
    client.post('/score', json={'token': 'low', 'score': 5, 'name': 'Lo'})
    client.post('/score', json={'token': 'top', 'score': 200, 'name': 'Tip'})
    client.post('/score', json={'token': 'early', 'score': 100})
    leaders = client.get('/leaders').get_json()
    assert [row['token'] for row in leaders] == ['top', 'late', 'early', 'low']
    assert leaders[0] == {'token': 'top', 'name': 'Tip', 'best_score': 200}
    assert all(set(row) == {'token', 'name', 'best_score'} for row in leaders)


def test_leaders_limit_defaults_and_clamps(client):
    for i in range(120):
        client.post('/score', json={'token': f'p{i:03d}', 'score': i})
    assert len(client.get('/leaders').get_json()) == 10
    assert len(client.get('/leaders?limit=0').get_json()) == 10
    assert len(client.get('/leaders?limit=abc').get_json()) == 10
    assert len(client.get('/leaders?limit=3').get_json()) == 3
    assert len(client.get('/leaders?limit=-5').get_json()) == 1
    assert len(client.get('/leaders?limit=1000').get_json()) == 100
    assert client.get('/leaders?limit=1').get_json()[0]['token'] == 'p119'


def test_storage_failure_is_a_generic_500(flask_app, client, monkeypatch):
    store = flask_app.extensions['leaderboard_store']
    monkeypatch.setattr(store.backend, 'session', BrokenSession(store.backend.session))
    for res in (
        client.post('/score', json={'token': 'p', 'score': 1}),
        client.get('/leaders'),
        client.get('/me?token=p'),
    ):
        assert res.status_code == 500
        assert res.get_json() == {'error': 'internal'}


def test_submit_rejects_non_object_json(client):
    for body in ([{'token': 'p', 'score': 1}], 'p', 7):
        res = client.post('/score', json=body)
        assert res.status_code == 400
        assert res.get_json()['field'] == 'token'
    assert client.get('/leaders').get_json() == []


def test_submit_rejects_scores_outside_the_column_range(client):
    for bad in [2 ** 63, 2 ** 31, -(2 ** 31) - 1, 1e30]:
        res = client.post('/score', json={'token': 'p', 'score': bad})
        assert res.status_code == 400
        assert res.get_json() == {'error': 'score out of range', 'field': 'score'}
    assert client.post('/score', json={'token': 'p', 'score': 2 ** 31 - 1}).get_json()['best'] == 2 ** 31 - 1
    assert client.post('/score', json={'token': 'q', 'score': -(2 ** 31)}).get_json()['best'] == -(2 ** 31)
