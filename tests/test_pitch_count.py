import pytest

from models.batting_result import BattingResult
from models.pitch_count import PitchCount


def test_fourth_ball_is_a_walk():
    count, result = PitchCount.replay(["ball", "ball", "ball"])
    assert (count.balls, count.strikes, result) == (3, 0, None)
    count, result = count.record("ball")
    assert result is BattingResult.WALK
    assert count == PitchCount()


def test_third_strike_is_a_strikeout():
    count, result = PitchCount.replay(["strike", "foul", "strike"])
    assert result is BattingResult.STRIKEOUT


def test_foul_with_two_strikes_keeps_count():
    count = PitchCount(1, 2)
    after, result = count.record("foul")
    assert after == count
    assert result is None
    assert str(after) == "1-2"


def test_invalid_pitch_and_count():
    with pytest.raises(ValueError):
        PitchCount().record("balk")
    with pytest.raises(ValueError):
        PitchCount(balls=4)
