import itertools

import pytest

from logic.baserunner_advancement import BaserunnerAdvancementService
from models.baserunner_state import BASES, BaserunnerState
from models.batting_result import BattingResult
from utils.exceptions import (
    BaseConflict,
    IllegalPlay,
    IncompleteAdvancement,
    InvalidAdvancement,
    InvalidOutCount,
)

svc = BaserunnerAdvancementService()


def _all_base_states():
    for occupied in itertools.product([False, True], repeat=3):
        yield BaserunnerState(
            *[f"R{i + 1}" if flag else None for i, flag in enumerate(occupied)]
        )


# ---------------------------------------------------------------------------
# Defaults
# ---------------------------------------------------------------------------
def test_double_moves_runner_from_first_to_third():
    bases = BaserunnerState(first="R1")
    outcome = svc.resolve(BattingResult.DOUBLE, bases, batter_id="B")

    assert outcome.decision == {"first": "third"}
    assert outcome.bases_after == BaserunnerState(second="B", third="R1")
    assert outcome.runs == 0
    # Deliberately 0, not 1: an RBI is only credited for a run that scores,
    # so RBI can never exceed runs on the play.
    assert outcome.rbi == 0


def test_bases_loaded_walk_forces_in_one_run():
    bases = BaserunnerState("R1", "R2", "R3")
    outcome = svc.resolve(BattingResult.WALK, bases, batter_id="B")

    assert outcome.decision == {"first": "second", "second": "third", "third": "home"}
    assert outcome.bases_after == BaserunnerState("B", "R1", "R2")
    assert outcome.runs_scored == ("R3",)
    assert outcome.rbi == 1


def test_walk_leaves_unforced_runner():
    bases = BaserunnerState(first="R1", third="R3")
    outcome = svc.resolve(BattingResult.HIT_BY_PITCH, bases, batter_id="B")

    assert outcome.decision == {"first": "second", "third": "stay"}
    assert outcome.bases_after == BaserunnerState("B", "R1", "R3")
    assert outcome.runs == 0


def test_single_override_colliding_with_batter_is_rejected():
    bases = BaserunnerState(first="R1", third="R3")
    with pytest.raises(BaseConflict) as excinfo:
        svc.resolve(
            BattingResult.SINGLE,
            bases,
            batter_id="B",
            override={"first": "stay", "third": "home"},
        )
    assert excinfo.value.base == "first"
    assert excinfo.value.occupants == ("Batter", "R1")


def test_home_run_with_empty_bases_scores_batter():
    outcome = svc.resolve(BattingResult.HOME_RUN, BaserunnerState(), batter_id="B")
    assert outcome.runs_scored == ("B",)
    assert outcome.rbi == 1
    assert outcome.bases_after.is_empty


def test_grand_slam_scores_lead_runner_first():
    outcome = svc.resolve(BattingResult.HOME_RUN, BaserunnerState("R1", "R2", "R3"), batter_id="B")
    assert outcome.runs_scored == ("R3", "R2", "R1", "B")
    assert outcome.rbi == 4


def test_triple_clears_bases():
    outcome = svc.resolve(BattingResult.TRIPLE, BaserunnerState("R1", "R2"), batter_id="B")
    assert outcome.bases_after == BaserunnerState(third="B")
    assert outcome.runs_scored == ("R2", "R1")


def test_error_moves_forced_runners_without_rbi():
    bases = BaserunnerState("R1", "R2", "R3")
    outcome = svc.resolve(BattingResult.ERROR, bases, batter_id="B")
    assert outcome.runs == 1
    assert outcome.rbi == 0


def test_fielders_choice_retires_lead_forced_runner():
    bases = BaserunnerState("R1", "R2")
    outcome = svc.resolve(BattingResult.FIELDERS_CHOICE, bases, batter_id="B")
    assert outcome.decision == {"first": "second", "second": "out"}
    assert outcome.bases_after == BaserunnerState("B", "R1")
    assert outcome.outs_recorded == 1


def test_fielders_choice_without_force_retires_lead_runner():
    outcome = svc.resolve(
        BattingResult.FIELDERS_CHOICE, BaserunnerState(second="R2"), batter_id="B"
    )
    assert outcome.decision == {"second": "out"}
    assert outcome.bases_after == BaserunnerState(first="B")


def test_double_play_retires_batter_and_forced_runner():
    bases = BaserunnerState(first="R1", third="R3")
    outcome = svc.resolve(BattingResult.DOUBLE_PLAY, bases, outs=0, batter_id="B")
    assert outcome.decision == {"first": "out", "third": "stay"}
    assert outcome.outs_recorded == 2
    assert outcome.bases_after == BaserunnerState(third="R3")


def test_double_play_run_earns_no_rbi():
    bases = BaserunnerState(first="R1", third="R3")
    outcome = svc.resolve(
        BattingResult.DOUBLE_PLAY, bases, outs=0, batter_id="B", override={"third": "home"}
    )
    assert outcome.runs_scored == ("R3",)
    assert outcome.rbi == 0


def test_sac_fly_scores_runner_from_third():
    bases = BaserunnerState(first="R1", third="R3")
    outcome = svc.resolve(BattingResult.SAC_FLY, bases, outs=1, batter_id="B")
    assert outcome.decision == {"first": "stay", "third": "home"}
    assert outcome.rbi == 1
    assert outcome.outs_recorded == 1


@pytest.mark.parametrize("result", [BattingResult.SAC_FLY, BattingResult.DOUBLE_PLAY])
def test_out_dependent_plays_rejected_with_two_outs(result):
    with pytest.raises(IllegalPlay):
        svc.resolve(result, BaserunnerState(first="R1", third="R3"), outs=2, batter_id="B")


def test_double_play_needs_a_runner():
    with pytest.raises(IllegalPlay, match="at least one runner"):
        svc.resolve(BattingResult.DOUBLE_PLAY, BaserunnerState(), outs=0)


@pytest.mark.parametrize("result", list(BattingResult))
def test_defaults_always_validate(result):
    for bases in _all_base_states():
        for outs in range(3):
            try:
                defaults = svc.default_decision(result, bases, outs)
            except IllegalPlay:
                continue
            assert svc.violations(result, bases, outs, defaults) == []
            assert set(defaults) == set(bases.occupied_bases())
            outcome = svc.resolve(result, bases, outs, batter_id="B")
            after = [r for r in outcome.bases_after.runners()]
            assert len(after) == len(set(after))


# ---------------------------------------------------------------------------
# Overrides
# ---------------------------------------------------------------------------
def test_blank_override_counts_as_missing():
    bases = BaserunnerState(first="R1", second="R2")
    with pytest.raises(IncompleteAdvancement) as excinfo:
        svc.resolve(BattingResult.SINGLE, bases, override={"second": ""})
    assert excinfo.value.missing == ("second",)


def test_override_keeps_defaults_for_other_bases():
    bases = BaserunnerState(first="R1", second="R2")
    outcome = svc.resolve(BattingResult.SINGLE, bases, batter_id="B", override={"first": "third"})
    assert outcome.decision == {"first": "third", "second": "home"}
    assert outcome.bases_after == BaserunnerState(first="B", third="R1")


def test_blank_entry_for_empty_base_ignored():
    outcome = svc.resolve(
        BattingResult.SINGLE, BaserunnerState(first="R1"), batter_id="B", override={"third": None}
    )
    assert outcome.decision == {"first": "second"}


def test_override_for_empty_base_rejected():
    with pytest.raises(InvalidAdvancement, match="No runner on second"):
        svc.resolve(BattingResult.SINGLE, BaserunnerState(first="R1"), override={"second": "home"})


def test_runner_cannot_move_backwards_or_name_own_base():
    bases = BaserunnerState(third="R3")
    with pytest.raises(InvalidAdvancement, match="move back"):
        svc.resolve(BattingResult.WALK, bases, override={"third": "second"})
    with pytest.raises(InvalidAdvancement, match="use 'stay'"):
        svc.resolve(BattingResult.WALK, bases, override={"third": "third"})


def test_unknown_destination_rejected():
    with pytest.raises(InvalidAdvancement, match="Unknown destination"):
        svc.resolve(BattingResult.SINGLE, BaserunnerState(first="R1"), override={"first": "dugout"})


def test_trailing_runner_cannot_pass_lead_runner():
    bases = BaserunnerState(first="R1", second="R2")
    with pytest.raises(InvalidAdvancement, match="cannot pass"):
        svc.resolve(
            BattingResult.SINGLE, bases, batter_id="B", override={"first": "home", "second": "third"}
        )


def test_runner_out_respects_out_budget():
    bases = BaserunnerState(first="R1", second="R2")
    with pytest.raises(InvalidOutCount):
        svc.resolve(
            BattingResult.GROUND_OUT, bases, outs=1, override={"first": "out", "second": "out"}
        )


def test_no_run_scores_when_batter_makes_third_out():
    bases = BaserunnerState(third="R3")
    with pytest.raises(InvalidOutCount, match="No run can score"):
        svc.resolve(BattingResult.GROUND_OUT, bases, outs=2, override={"third": "home"})


def test_no_run_scores_on_force_out_for_third_out():
    bases = BaserunnerState(first="R1", third="R3")
    with pytest.raises(InvalidOutCount, match="force out"):
        svc.resolve(
            BattingResult.FIELDERS_CHOICE, bases, outs=2, batter_id="B", override={"third": "home"}
        )
    outcome = svc.resolve(BattingResult.FIELDERS_CHOICE, bases, outs=2, batter_id="B")
    assert outcome.runs_scored == ()
    assert outcome.outs_recorded == 1


def test_outcome_decision_is_read_only():
    outcome = svc.resolve(BattingResult.SINGLE, BaserunnerState(first="R1"), batter_id="B")
    with pytest.raises(TypeError):
        outcome.decision["first"] = "home"
    assert outcome.decision == {"first": "second"}


def test_runner_thrown_out_on_hit_can_record_third_out():
    bases = BaserunnerState(first="R1", third="R3")
    outcome = svc.resolve(
        BattingResult.SINGLE, bases, outs=2, batter_id="B", override={"first": "out"}
    )
    assert outcome.runs_scored == ("R3",)
    assert outcome.outs_recorded == 1


def test_walk_rbi_only_for_forced_run():
    bases = BaserunnerState(second="R2", third="R3")
    outcome = svc.resolve(BattingResult.WALK, bases, batter_id="B", override={"third": "home"})
    assert outcome.runs == 1
    assert outcome.rbi == 0


# ---------------------------------------------------------------------------
# Messages
# ---------------------------------------------------------------------------
def test_messages_use_display_names():
    names = {"R1": "Runner One", "R2": "Runner X"}.get
    bases = BaserunnerState(first="R1", second="R2")
    messages = svc.messages(
        BattingResult.SINGLE,
        bases,
        override={"first": "stay", "second": None},
        display_name=lambda pid: names(pid, pid),
    )
    assert "Select advancement for Runner X on second base" in messages
    assert "Multiple runners cannot occupy first base: Batter, Runner One" in messages


def test_messages_empty_for_valid_default():
    assert svc.messages(BattingResult.DOUBLE, BaserunnerState(first="R1")) == []


def test_messages_report_illegal_play():
    messages = svc.messages(BattingResult.SAC_FLY, BaserunnerState(third="R3"), outs=2)
    assert len(messages) == 1
    assert "SF is not possible" in messages[0]


def test_outcome_never_stores_home():
    outcome = svc.resolve(BattingResult.DOUBLE, BaserunnerState("R1", "R2", "R3"), batter_id="B")
    assert set(outcome.bases_after.to_dict()) == set(BASES)
    assert outcome.bases_after == BaserunnerState(second="B", third="R1")
