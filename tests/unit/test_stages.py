import random

from orchestrator.stages import (
    even_split,
    generate_stage_targets,
    infer_stage_category,
    should_advance,
    stage_name,
)


def test_stage_targets_are_in_range():
    targets = generate_stage_targets(4, random.Random(7))
    assert len(targets) == 4
    assert all(5 <= target <= 8 for target in targets)


def test_stage_targets_are_reproducible_with_seed():
    assert generate_stage_targets(3, random.Random(1)) == generate_stage_targets(3, random.Random(1))


def test_never_advances_past_final_stage():
    assert should_advance(2, 2, 100, 1, [5, 6]) is False


def test_advances_on_stage_target():
    assert should_advance(1, 2, 4, 3, [5, 6]) is False
    assert should_advance(1, 2, 5, 3, [5, 6]) is True


def test_even_split_fallback_without_targets():
    per_stage = even_split(10, 3)
    assert per_stage == 3
    assert should_advance(1, 3, 2, per_stage) is False
    assert should_advance(1, 3, 3, per_stage) is True


def test_even_split_never_zero():
    assert even_split(1, 4) == 1


def test_stage_name_lookup_and_default():
    names = ["Technical", "Behavioral"]
    assert stage_name(1, names) == "Technical"
    assert stage_name(2, names) == "Behavioral"
    assert stage_name(3, names) == "Stage 3"
    assert stage_name(1, []) == "Stage 1"


def test_infer_stage_category():
    assert infer_stage_category("Technical") == "technical"
    assert infer_stage_category("System Design") == "technical"
    assert infer_stage_category("Case Interview") == "situational"
    assert infer_stage_category("Ethical Scenario") == "situational"
    assert infer_stage_category("Behavioral") == "behavioral"
    assert infer_stage_category("Leadership") == "behavioral"
    assert infer_stage_category("Super Day") is None
