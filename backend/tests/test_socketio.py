def names(received):
    return [pkt['name'] for pkt in received]


def last_args(received, name):
    found = [pkt['args'][0] for pkt in received if pkt['name'] == name]
    return found[-1] if found else None


def join(sio, room_id, player_id, name, host=False):
    return sio.emit(
        'room:join',
        {'roomId': room_id, 'playerId': player_id, 'playerName': name, 'isHost': host},
        callback=True,
    )


def test_room_check(sio_factory):
    sio = sio_factory()
    assert sio.emit('room:check', {'roomId': 'ABC123'}, callback=True) == {'exists': False}
    assert sio.emit('room:check', {}, callback=True)['exists'] is False

    join(sio, 'ABC123', 'a', 'Alice', host=True)
    assert sio.emit('room:check', {'roomId': 'ABC123'}, callback=True) == {'exists': True}


def test_join_broadcasts_room_update(sio_factory):
    host = sio_factory()
    guest = sio_factory()

    ack = join(host, 'R1', 'a', 'Alice', host=True)
    assert ack == {'ok': True, 'created': True, 'isReconnect': False}
    host.get_received()

    join(guest, 'R1', 'b', 'Bob')
    update = last_args(host.get_received(), 'room:update')
    assert [p['id'] for p in update['players']] == ['a', 'b']
    assert update['hostId'] == 'a'


def test_guest_cannot_create_room(sio_factory):
    guest = sio_factory()
    ack = join(guest, 'GHOST', 'b', 'Bob')
    assert ack == {'ok': False, 'error': 'room_not_found'}
    err = last_args(guest.get_received(), 'error')
    assert err['error'] == 'room_not_found'


def test_invalid_name_rejected(sio_factory):
    sio = sio_factory()
    ack = join(sio, 'R1', 'a', '<script>', host=True)
    assert ack == {'ok': False, 'error': 'invalid_payload'}


def test_game_flow_over_sockets(flask_app, sio_factory):
    host = sio_factory()
    guest = sio_factory()
    join(host, 'R1', 'a', 'Alice', host=True)
    join(guest, 'R1', 'b', 'Bob')
    host.get_received()
    guest.get_received()

    assert host.emit('game:start', {'mode': 'online'}, callback=True) == {'ok': True}
    start = last_args(guest.get_received(), 'game:start')
    assert start['currentTurn'] == 'a'
    assert start['turnOrder'] == ['a', 'b']
    host.get_received()

    room = flask_app.extensions['wordbomb'].repository.get('R1')
    room.turn.wordpiece = 'run'
    ack = host.emit('game:submit', {'word': 'running'}, callback=True)
    assert ack == {'ok': True, 'points': 5}

    received = guest.get_received()
    assert 'game:submission_result' in names(received)
    assert last_args(received, 'game:new_wordpiece')['currentTurn'] == 'b'


def test_errors_only_reach_the_caller(sio_factory):
    host = sio_factory()
    guest = sio_factory()
    join(host, 'R1', 'a', 'Alice', host=True)
    join(guest, 'R1', 'b', 'Bob')
    host.emit('game:start', {'mode': 'online'}, callback=True)
    host.get_received()
    guest.get_received()

    ack = guest.emit('game:submit', {'word': 'running'}, callback=True)
    assert ack == {'ok': False, 'error': 'not_your_turn'}
    assert last_args(guest.get_received(), 'error') == {
        'error': 'not_your_turn',
        'message': 'Not your turn',
    }
    assert 'error' not in names(host.get_received())


def test_non_host_cannot_start(sio_factory):
    host = sio_factory()
    guest = sio_factory()
    join(host, 'R1', 'a', 'Alice', host=True)
    join(guest, 'R1', 'b', 'Bob')
    assert guest.emit('game:start', {'mode': 'online'}, callback=True) == {'ok': False, 'error': 'only_host'}


def test_unbound_socket_is_rejected(sio_factory):
    sio = sio_factory()
    ack = sio.emit('game:submit', {'word': 'running'}, callback=True)
    assert ack == {'ok': False, 'error': 'player_not_found'}
    assert last_args(sio.get_received(), 'error') == {
        'error': 'player_not_found',
        'message': 'Player is not in this room',
    }


def test_socket_bound_to_other_room_is_rejected(sio_factory):
    sio = sio_factory()
    join(sio, 'R1', 'a', 'Alice', host=True)
    ack = sio.emit('game:request_state', {'roomId': 'R2'}, callback=True)
    assert ack == {'ok': False, 'error': 'player_not_found'}


def test_lobby_disconnect_removes_player(sio_factory):
    host = sio_factory()
    guest = sio_factory()
    join(host, 'R1', 'a', 'Alice', host=True)
    join(guest, 'R1', 'b', 'Bob')
    host.get_received()

    guest.disconnect()
    update = last_args(host.get_received(), 'room:update')
    assert [p['id'] for p in update['players']] == ['a']


def test_reconnect_mid_game(flask_app, sio_factory):
    host = sio_factory()
    guest = sio_factory()
    join(host, 'R1', 'a', 'Alice', host=True)
    join(guest, 'R1', 'b', 'Bob')
    host.emit('game:start', {'mode': 'online'}, callback=True)

    room = flask_app.extensions['wordbomb'].repository.get('R1')
    room.players['b'].score = 12
    guest.disconnect()
    assert room.players['b'].connected is False

    again = sio_factory()
    check = again.emit('room:check_reconnect', {'roomId': 'R1', 'playerId': 'b'}, callback=True)
    assert check['canReconnect'] is True
    assert check['score'] == 12

    ack = join(again, 'R1', 'b', 'Bob')
    assert ack['isReconnect'] is True
    snapshot = last_args(again.get_received(), 'game:reconnect')
    assert snapshot['scores']['b'] == 12


def test_second_tab_keeps_player_connected(flask_app, sio_factory):
    host = sio_factory()
    tab1 = sio_factory()
    tab2 = sio_factory()
    join(host, 'R1', 'a', 'Alice', host=True)
    join(tab1, 'R1', 'b', 'Bob')
    join(tab2, 'R1', 'b', 'Bob')

    tab1.disconnect()
    room = flask_app.extensions['wordbomb'].repository.get('R1')
    assert 'b' in room.players
    assert room.players['b'].connected


def test_leave(flask_app, sio_factory):
    host = sio_factory()
    guest = sio_factory()
    join(host, 'R1', 'a', 'Alice', host=True)
    join(guest, 'R1', 'b', 'Bob')
    assert guest.emit('room:leave', {'roomId': 'R1'}, callback=True) == {'ok': True}
    room = flask_app.extensions['wordbomb'].repository.get('R1')
    assert list(room.players) == ['a']
