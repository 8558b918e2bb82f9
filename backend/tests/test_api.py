def test_index_and_health(client):
    assert client.get('/').status_code == 200
    res = client.get('/health')
    assert res.get_json() == {'status': 'ok', 'rooms': 0}


def test_create_room(client):
    res = client.post('/api/rooms')
    assert res.status_code == 201
    data = res.get_json()
    assert len(data['roomCode']) == 6
    assert client.get('/health').get_json()['rooms'] == 1


def test_room_summary(client):
    code = client.post('/api/rooms').get_json()['roomCode']
    res = client.get(f'/api/rooms/{code.lower()}')
    assert res.status_code == 200
    summary = res.get_json()
    assert summary['roomCode'] == code
    assert summary['screen'] == 'qr'
    assert summary['hasHost'] is False
    assert summary['playerCount'] == 0


def test_room_summary_not_found(client):
    res = client.get('/api/rooms/ZZZZZZ')
    assert res.status_code == 404
    assert 'error' in res.get_json()


def test_check_answer_endpoint(client, judge):
    judge.reply({'match': True, 'matchedAnswer': 'Car', 'confidence': 'high', 'reason': 'synonym'})
    res = client.post('/api/check-answer', json={
        'question': 'Name something with wheels',
        'answers': ['Car', 'Bike'],
        'playerAnswer': 'automobile',
    })
    assert res.status_code == 200
    assert res.get_json() == {'match': True, 'matchedAnswer': 'Car', 'confidence': 'high', 'reason': 'synonym'}
    assert judge.calls == [('Name something with wheels', ['Car', 'Bike'], 'automobile')]


def test_check_answer_endpoint_validation_and_judge_errors(client, judge):
    res = client.post('/api/check-answer', json={'question': 'Q'})
    assert res.status_code == 400
    assert judge.calls == []

    judge.fail('Answer judge unreachable')
    res = client.post('/api/check-answer', json={'question': 'Q', 'answers': ['A'], 'playerAnswer': 'a'})
    assert res.status_code == 502
    assert res.get_json()['error'] == 'Answer judge unreachable'
