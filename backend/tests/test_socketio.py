from keynes.services.games import END, INPUT_PHASE, IN_GAME, RESULTS, RESULTS_PHASE


def _events(sio_client, name):
    return [pkt['args'][0] for pkt in sio_client.get_received() if pkt['name'] == name]


def _create_room(sio_factory, name='Alice', rounds=2):
    host = sio_factory()
    host.emit('createGame', {'playerName': name, 'totalRounds': rounds})
    updates = _events(host, 'gameUpdate')
    assert updates, 'creator should receive the initial gameUpdate'
    return host, updates[-1]['roomCode']


def test_socket_connects(sio_factory):
    sio_client = sio_factory()
    assert sio_client.is_connected()


def test_create_game_broadcasts_snapshot(sio_factory, app_registry):
    host = sio_factory()
    host.emit('createGame', {'playerName': 'Alice', 'totalRounds': 3})
    update = _events(host, 'gameUpdate')[-1]
    assert update['state'] == 'lobby'
    assert update['totalRounds'] == 3
    assert update['currentRound'] == 0
    assert update['players'][0]['name'] == 'Alice'
    assert update['players'][0]['isHost'] is True
    assert app_registry.get(update['roomCode']) is not None


def test_create_game_with_bad_rounds_reports_error(sio_factory, app_registry):
    host = sio_factory()
    host.emit('createGame', {'playerName': 'Alice', 'totalRounds': 0})
    errors = _events(host, 'error')
    assert errors and 'rounds' in errors[0]['message']
    assert len(app_registry) == 0


def test_join_game_notifies_room(sio_factory):
    host, code = _create_room(sio_factory)
    guest = sio_factory()
    guest.emit('joinGame', {'playerName': 'Bob', 'roomCode': code})
    host_update = _events(host, 'gameUpdate')[-1]
    guest_update = _events(guest, 'gameUpdate')[-1]
    assert host_update == guest_update
    assert [p['name'] for p in host_update['players']] == ['Alice', 'Bob']


def test_join_unknown_room_errors_only_requester(sio_factory):
    host, code = _create_room(sio_factory)
    guest = sio_factory()
    guest.emit('joinGame', {'playerName': 'Bob', 'roomCode': 'NOPE1'})
    errors = _events(guest, 'error')
    assert len(errors) == 1
    assert errors[0]['message']
    assert _events(host, 'error') == []


def test_round_flow_over_socket(sio_factory, app_registry, scheduler):
    host, code = _create_room(sio_factory, rounds=1)
    guest = sio_factory()
    guest.emit('joinGame', {'playerName': 'Bob', 'roomCode': code})
    host.get_received()

    # non-host start is ignored silently
    guest.emit('startGame', {'roomCode': code})
    assert app_registry.get(code).state == 'lobby'
    assert _events(guest, 'error') == []

    host.emit('startGame', {'roomCode': code})
    assert _events(guest, 'startRound') == [{'round': 1, 'time': 60}]
    session = app_registry.get(code)
    assert session.state == IN_GAME

    host.emit('submitNumber', {'roomCode': code, 'number': 40})
    guest.emit('submitNumber', {'roomCode': code, 'number': 60})
    results = _events(guest, 'roundResults')
    assert len(results) == 1
    assert results[0]['average'] == 50.0
    assert results[0]['target'] == 40.0
    assert results[0]['winners'] == [{'id': session.roster.players()[0].id, 'name': 'Alice'}]
    assert session.state == RESULTS

    scheduler.fire(session, session.timers[RESULTS_PHASE])
    over = _events(host, 'gameOver')
    assert len(over) == 1
    assert over[0]['finalWinners'][0]['name'] == 'Alice'
    assert session.state == END


def test_input_deadline_over_socket(sio_factory, app_registry, scheduler):
    host, code = _create_room(sio_factory)
    host.emit('startGame', {'roomCode': code})
    session = app_registry.get(code)
    host.get_received()
    scheduler.fire(session, session.timers[INPUT_PHASE])
    results = _events(host, 'roundResults')
    assert results[0]['results'][0]['choice'] == 50.0
    assert results[0]['minDiff'] == 10.0


def test_host_disconnect_migrates_host(sio_factory, app_registry):
    host, code = _create_room(sio_factory)
    guest = sio_factory()
    guest.emit('joinGame', {'playerName': 'Bob', 'roomCode': code})
    guest.get_received()

    host.disconnect()
    update = _events(guest, 'gameUpdate')[-1]
    assert [p['name'] for p in update['players']] == ['Bob']
    assert update['players'][0]['isHost'] is True
    assert app_registry.get(code) is not None


def test_last_disconnect_destroys_room(sio_factory, app_registry):
    host, code = _create_room(sio_factory)
    host.disconnect()
    assert app_registry.get(code) is None
    assert len(app_registry) == 0
