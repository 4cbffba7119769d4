import pytest

from doodleai.models import PlayerProfile
from doodleai.services.profiles import (
    ProfileNotFound, ProfileRecorder, add_experience, create_profile, get_profile, unlock_brush,
)


def test_new_profile_defaults(flask_app):
    profile = create_profile()
    assert len(profile.profile_key) == 32
    assert profile.level == 1
    assert profile.brushes == ['default']
    assert get_profile(profile.profile_key).id == profile.id


def test_level_up_every_thousand_xp_and_brush_every_third_level():
    profile = PlayerProfile(experience=0, level=1, unlocked_brushes='["default"]')
    assert not add_experience(profile, 999)
    assert add_experience(profile, 1)
    assert profile.level == 2
    assert profile.brushes == ['default']

    assert add_experience(profile, 1000)
    assert profile.level == 3
    assert profile.brushes == ['default', 'neon']

    assert add_experience(profile, 1000)
    assert profile.level == 4
    assert profile.brushes == ['default', 'neon']


def test_unlock_brush_is_idempotent():
    profile = PlayerProfile(unlocked_brushes='["default"]')
    unlock_brush(profile, 'pixel')
    unlock_brush(profile, 'pixel')
    assert profile.brushes == ['default', 'pixel']


def test_recorder_accumulates_results(flask_app):
    key = create_profile().profile_key
    recorder = ProfileRecorder(flask_app, key)

    recorder.record_round_result(8)
    recorder.record_round_result(0)
    recorder.record_streak(3)
    recorder.record_streak(1)
    result = recorder.record_game_completion(1200, 5)
    assert result['is_new_high_score'] is True
    assert result['leveled_up'] is False

    again = recorder.record_game_completion(900, 5)
    assert again['is_new_high_score'] is False

    stats = get_profile(key).to_dict()
    assert stats['total_coins'] == 8
    assert stats['best_streak'] == 3
    assert stats['high_score'] == 1200
    assert stats['games_played'] == 2
    assert stats['total_drawings'] == 10
    assert stats['experience'] == 120 + 90


def test_recorder_for_missing_profile_raises(flask_app):
    with pytest.raises(ProfileNotFound):
        ProfileRecorder(flask_app, 'missing').record_round_result(1)
