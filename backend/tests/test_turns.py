from wordbomb.game.models import TurnState
from wordbomb.game.turns import GameOver, TurnSequencer


def make_state(order, current_idx=0):
    return TurnState(
        turn_order=list(order),
        current_turn=order[current_idx],
        wordpiece='ing',
        cursor=current_idx,
    )


def test_advance_rotates_and_counts_rounds():
    state = make_state(['a', 'b', 'c'])
    seq = TurnSequencer(state)
    assert seq.advance() == 'b'
    assert seq.advance() == 'c'
    assert state.round == 1
    assert seq.advance() == 'a'
    assert state.round == 2
    assert state.current_turn == 'a'


def test_advance_on_single_player_is_game_over():
    state = make_state(['a'])
    assert TurnSequencer(state).advance() == GameOver(winner='a')
    # never a rotation
    assert state.current_turn == 'a'
    assert state.round == 1


def test_advance_on_empty_order_has_no_winner():
    state = TurnState(turn_order=[], current_turn='a', wordpiece='ing')
    assert TurnSequencer(state).advance() == GameOver(winner=None)


def test_remove_current_hands_turn_to_follower():
    state = make_state(['a', 'b', 'c'], current_idx=1)
    seq = TurnSequencer(state)
    assert seq.remove('b') is True
    assert state.turn_order == ['a', 'c']
    assert seq.advance() == 'c'


def test_remove_first_while_it_is_current():
    state = make_state(['a', 'b', 'c'])
    seq = TurnSequencer(state)
    seq.remove('a')
    assert seq.advance() == 'b'
    assert state.round == 1


def test_remove_after_cursor_keeps_cursor():
    state = make_state(['a', 'b', 'c'])
    seq = TurnSequencer(state)
    seq.remove('c')
    assert state.cursor == 0
    assert seq.advance() == 'b'


def test_remove_before_cursor_shifts_cursor():
    state = make_state(['a', 'b', 'c'], current_idx=2)
    seq = TurnSequencer(state)
    seq.remove('a')
    assert state.turn_order == ['b', 'c']
    assert state.turn_order[state.cursor] == 'c'
    assert seq.advance() == 'b'
    assert state.round == 2


def test_remove_unknown_is_noop():
    state = make_state(['a', 'b'])
    assert TurnSequencer(state).remove('zz') is False
    assert state.turn_order == ['a', 'b']


def test_reverse_then_advance_lands_on_previous_neighbour():
    state = make_state(['a', 'b', 'c'])
    seq = TurnSequencer(state)
    seq.reverse()
    assert state.turn_order == ['c', 'b', 'a']
    assert seq.advance() == 'b'


def test_reverse_from_middle_passes_the_turn():
    state = make_state(['a', 'b', 'c', 'd'], current_idx=1)
    seq = TurnSequencer(state)
    seq.reverse()
    assert state.turn_order == ['d', 'c', 'b', 'a']
    assert seq.advance() == 'a'
    assert seq.advance() == 'd'


def test_reverse_from_last_passes_the_turn():
    state = make_state(['a', 'b', 'c'], current_idx=2)
    seq = TurnSequencer(state)
    seq.reverse()
    assert state.turn_order == ['c', 'b', 'a']
    assert seq.advance() == 'b'
    assert seq.advance() == 'a'


def test_reverse_with_two_players():
    for idx, expected in ((0, 'b'), (1, 'a')):
        state = make_state(['a', 'b'], current_idx=idx)
        seq = TurnSequencer(state)
        seq.reverse()
        assert seq.advance() == expected


def test_reverse_never_repeats_current_player():
    for size in range(2, 7):
        ids = [str(i) for i in range(size)]
        for idx in range(size):
            state = make_state(ids, current_idx=idx)
            seq = TurnSequencer(state)
            seq.reverse()
            assert seq.advance() != ids[idx]


def test_peek():
    state = make_state(['a', 'b', 'c'], current_idx=2)
    seq = TurnSequencer(state)
    assert seq.peek() == 'a'
    assert TurnSequencer(make_state(['a'])).peek() is None
