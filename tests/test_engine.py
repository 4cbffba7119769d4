import random

import pytest

from doodleai.services.games import (
    ExhaustedCatalog, GameEngine, GuessEvent, GuessScript, GuessScripter, InvalidStroke, InvalidTransition,
    NoActiveRound, Phase, PhaseStateMachine, Trigger, WordCatalog,
)
from conftest import WORDS, FixedScripter, RecordingProfile, hit_after, miss


def play_round(scheduler):
    """Run countdown, drawing and guessing to completion."""
    scheduler.run_until_idle()


def test_round_walks_through_every_phase(make_engine, scheduler):
    engine = make_engine(hit_after(1000, 1000, 3000))

    state = engine.start(1)
    assert state.phase is Phase.COUNTDOWN
    assert state.word is not None and state.word.difficulty == 1
    assert state.time_remaining == 30

    scheduler.advance(3)
    assert engine.snapshot().phase is Phase.DRAWING
    scheduler.advance(10)
    assert engine.snapshot().time_remaining == 20

    scheduler.advance(20)
    state = engine.snapshot()
    assert state.phase is Phase.GUESSING
    assert state.time_remaining == 0
    assert engine.current_drawing().completed

    play_round(scheduler)
    state = engine.snapshot()
    assert state.phase is Phase.RESULTS
    assert state.was_correct is True
    assert state.score == 450
    assert state.round_coins == 9
    assert state.total_score == 450
    assert state.coins == 9
    assert state.streak == 1

    log = engine.guesses()
    assert [g.is_correct for g in log] == [False, False, True]
    assert log[-1].text == state.word.text


def test_correct_guess_cancels_the_rest_of_the_script(make_engine, scheduler):
    def plan(target):
        return GuessScript(events=(
            GuessEvent('blob', 0.3, 1000),
            GuessEvent(target, 0.9, 1000),
            GuessEvent('line', 0.3, 1000),
            GuessEvent('curve', 0.3, 1000),
        ), success=True)

    engine = make_engine(plan)
    engine.start(1)
    play_round(scheduler)
    assert len(engine.guesses()) == 2
    assert engine.snapshot().score == 480


def test_correct_guess_is_held_before_results(make_engine, scheduler):
    engine = make_engine(hit_after(2000))
    engine.start(1)
    scheduler.advance(3 + 30 + 2)
    assert engine.snapshot().phase is Phase.GUESSING
    assert engine.guesses()[-1].is_correct
    scheduler.advance(1.4)
    assert engine.snapshot().phase is Phase.GUESSING
    scheduler.advance(0.2)
    assert engine.snapshot().phase is Phase.RESULTS


def test_exhausted_script_scores_a_miss(make_engine, scheduler):
    engine = make_engine(miss(1000, 1000, 1000))
    engine.start(1)
    play_round(scheduler)
    state = engine.snapshot()
    assert state.phase is Phase.RESULTS
    assert state.was_correct is False
    assert (state.score, state.round_coins, state.streak) == (0, 0, 0)
    assert len(engine.guesses()) == 3
    assert not engine.guessing_summary().success


def test_last_round_with_streak_routes_to_game_over(make_engine, scheduler):
    engine = make_engine(miss(1000, 1000, 1000), *[hit_after(2000, 3000)] * 4, max_rounds=5)

    engine.start(1)
    play_round(scheduler)
    assert engine.snapshot().streak == 0
    for expected_round in (2, 3, 4, 5):
        state = engine.advance()
        assert state.phase is Phase.COUNTDOWN
        assert state.round_number == expected_round
        assert state.score == 0
        play_round(scheduler)

    state = engine.snapshot()
    assert state.round_number == 5
    assert state.phase is Phase.RESULTS
    assert state.was_correct is True
    assert state.streak == 4
    assert state.score == 450 + 200
    assert state.total_score == 450 + 450 + 600 + 650

    state = engine.advance()
    assert state.phase is Phase.GAME_OVER
    assert state.round_number == 5
    with pytest.raises(InvalidTransition):
        engine.advance()


def test_reset_during_drawing_stops_the_timer(make_engine, scheduler):
    updates = []
    engine = make_engine()
    engine.add_listener(on_update=updates.append)
    engine.start(1)
    scheduler.advance(3 + 5)
    assert engine.snapshot().time_remaining == 25

    state = engine.reset()
    assert state.phase is Phase.MENU
    seen = len(updates)
    scheduler.run_until_idle()
    assert engine.snapshot().phase is Phase.MENU
    assert engine.snapshot().time_remaining == 30
    assert len(updates) == seen
    assert scheduler.pending() == 0


def test_reset_during_guessing_drops_pending_guesses(make_engine, scheduler):
    guesses = []
    engine = make_engine(hit_after(1000, 1000, 1000))
    engine.add_listener(on_guess=guesses.append)
    engine.start(1)
    scheduler.advance(3 + 30 + 1.5)
    assert len(guesses) == 1

    engine.reset()
    scheduler.run_until_idle()
    assert engine.snapshot().phase is Phase.MENU
    assert len(guesses) == 1
    assert engine.guesses() == []


def test_stale_callbacks_from_an_old_round_are_ignored(make_engine, scheduler):
    engine = make_engine()
    engine.start(1)
    stale = list(engine._pending)
    engine.reset()
    state = engine.start(1)

    # Even if a cancelled handle slipped through, its round tag no longer matches
    for call in stale:
        call.cancelled = False
        call.fire()
    assert engine.snapshot().phase is Phase.COUNTDOWN
    assert engine.snapshot().round_id == state.round_id


def test_commands_outside_their_phase_are_rejected(make_engine, scheduler):
    engine = make_engine()
    with pytest.raises(InvalidTransition):
        engine.advance()
    assert engine.snapshot().phase is Phase.MENU

    engine.start(1)
    with pytest.raises(InvalidTransition):
        engine.start(1)
    assert engine.snapshot().phase is Phase.COUNTDOWN


def test_drawing_commands_need_a_drawing_round(make_engine, scheduler):
    engine = make_engine()
    with pytest.raises(NoActiveRound):
        engine.undo()

    engine.start(1)
    with pytest.raises(NoActiveRound):
        engine.clear()

    scheduler.advance(3)
    engine.add_stroke([[0, 0], [10, 10]])
    engine.add_stroke([[5, 5], [6, 6]], color='#000000', size=8)
    assert len(engine.undo().strokes) == 1
    assert engine.clear().strokes == []

    scheduler.advance(30)
    assert engine.snapshot().phase is Phase.GUESSING
    with pytest.raises(NoActiveRound):
        engine.add_stroke([[1, 1]])


def test_empty_tier_leaves_the_menu_untouched(scheduler):
    engine = GameEngine(scheduler, catalog=WordCatalog([w for w in WORDS if w.difficulty == 1]))
    with pytest.raises(ExhaustedCatalog):
        engine.start(3)
    assert engine.snapshot().phase is Phase.MENU
    assert scheduler.pending() == 0


def test_time_remaining_never_increases_while_drawing(make_engine, scheduler):
    updates = []
    engine = make_engine()
    engine.add_listener(on_update=updates.append)
    engine.start(1)
    play_round(scheduler)
    drawing = [s.time_remaining for s in updates if s.phase is Phase.DRAWING]
    assert drawing == sorted(drawing, reverse=True)
    assert drawing[0] == 30
    assert drawing[-1] == 0
    assert min(s.time_remaining for s in updates) == 0


def test_snapshots_are_not_mutated_by_later_transitions(make_engine, scheduler):
    engine = make_engine()
    first = engine.start(1)
    play_round(scheduler)
    assert first.phase is Phase.COUNTDOWN
    assert engine.snapshot().phase is Phase.RESULTS


def test_profile_receives_round_and_game_results(make_engine, scheduler):
    profile = RecordingProfile(high_score=100)
    engine = make_engine(hit_after(1000, 1000, 3000), profile=profile, max_rounds=1)
    engine.start(1)
    play_round(scheduler)
    assert profile.calls == [('round', 9), ('streak', 1)]

    state = engine.advance()
    assert state.phase is Phase.GAME_OVER
    assert profile.calls[-1] == ('game', 450, 1)
    assert state.new_high_score
    assert state.notice == 'New high score!'


def test_profile_failure_does_not_block_progression(make_engine, scheduler):
    engine = make_engine(profile=RecordingProfile(fail=True), max_rounds=1)
    engine.start(1)
    play_round(scheduler)
    state = engine.snapshot()
    assert state.phase is Phase.RESULTS
    assert state.notice

    state = engine.advance()
    assert state.phase is Phase.GAME_OVER
    assert state.notice == 'Could not save your game results'


def test_game_over_reset_clears_everything(make_engine, scheduler):
    engine = make_engine(max_rounds=1)
    engine.start(2)
    play_round(scheduler)
    engine.advance()
    state = engine.reset()
    assert state.phase is Phase.MENU
    assert (state.round_number, state.total_score, state.coins, state.streak) == (1, 0, 0, 0)
    assert state.word is None
    assert engine.guesses() == []


def test_shutdown_cancels_pending_work(make_engine, scheduler):
    engine = make_engine()
    engine.start(1)
    scheduler.advance(5)
    engine.shutdown()
    assert scheduler.pending() == 0
    scheduler.run_until_idle()
    assert engine.snapshot().phase is Phase.DRAWING


def test_default_scripter_plays_a_whole_campaign(scheduler):
    engine = GameEngine(
        scheduler,
        catalog=WordCatalog(rng=random.Random(1)),
        scripter=GuessScripter(rng=random.Random(2)),
        max_rounds=3,
    )
    engine.start(1)
    for _ in range(2):
        play_round(scheduler)
        assert engine.snapshot().phase is Phase.RESULTS
        engine.advance()
    play_round(scheduler)
    assert engine.advance().phase is Phase.GAME_OVER


class TestPhaseStateMachine:
    def test_drawing_only_accepts_timer_expiry_or_reset(self):
        for trigger in Trigger:
            machine = PhaseStateMachine()
            machine.fire(Trigger.START_ROUND)
            machine.fire(Trigger.COUNTDOWN_ELAPSED)
            if trigger in (Trigger.TIMER_EXPIRED, Trigger.RESET):
                machine.fire(trigger)
                continue
            with pytest.raises(InvalidTransition):
                machine.fire(trigger)
            assert machine.phase is Phase.DRAWING

    def test_round_ids_bump_on_new_rounds_only(self):
        machine = PhaseStateMachine()
        assert machine.fire(Trigger.START_ROUND).round_id == 1
        assert machine.fire(Trigger.COUNTDOWN_ELAPSED).round_id == 1
        assert machine.reset().round_id == 2

    def test_round_number_cannot_pass_max_rounds(self):
        machine = PhaseStateMachine(max_rounds=1)
        machine.fire(Trigger.START_ROUND)
        machine.fire(Trigger.COUNTDOWN_ELAPSED)
        machine.fire(Trigger.TIMER_EXPIRED)
        machine.fire(Trigger.GUESSING_FINISHED)
        with pytest.raises(InvalidTransition):
            machine.fire(Trigger.NEXT_ROUND, round_number=2)
        assert machine.phase is Phase.RESULTS

    def test_time_only_moves_down_while_drawing(self):
        machine = PhaseStateMachine(draw_duration_sec=30)
        with pytest.raises(InvalidTransition):
            machine.update_time(10)
        machine.fire(Trigger.START_ROUND)
        machine.fire(Trigger.COUNTDOWN_ELAPSED)
        assert machine.update_time(20).time_remaining == 20
        assert machine.update_time(25).time_remaining == 20
        assert machine.update_time(-3).time_remaining == 0

    def test_is_last_round_tracks_max_rounds(self):
        machine = PhaseStateMachine(max_rounds=2)
        assert not machine.fire(Trigger.START_ROUND).is_last_round
        machine.fire(Trigger.COUNTDOWN_ELAPSED)
        machine.fire(Trigger.TIMER_EXPIRED)
        machine.fire(Trigger.GUESSING_FINISHED)
        assert machine.fire(Trigger.NEXT_ROUND, round_number=2).is_last_round


def test_guess_timestamps_follow_the_scheduler_clock(make_engine, scheduler):
    engine = make_engine(hit_after(1000, 1000, 3000))
    engine.start(1)
    play_round(scheduler)
    log = engine.guesses()
    assert [g.timestamp_ms for g in log] == [34000, 35000, 38000]
    assert engine.guessing_summary().total_time_ms == 4000


def test_rejected_stroke_leaves_the_drawing_usable(make_engine, scheduler):
    engine = make_engine()
    engine.start(1)
    scheduler.advance(3)
    for points, size in (([1, 2], None), ([[0, 0, 0]], None), ([[True, 1]], None), ([[0, 0]], 'big')):
        with pytest.raises(InvalidStroke):
            engine.add_stroke(points, size=size)
    assert engine.current_drawing().strokes == []

    drawing = engine.add_stroke([[0, 0], [1.5, 2]], size=6)
    assert drawing.to_dict()['strokes'][0]['points'] == [[0, 0], [1.5, 2]]
