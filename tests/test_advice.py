"""
Tests for coaching tip rules and their priority.
"""
import random

import pytest

from photocoach import advice as adv
from photocoach.advice import COMPLIMENTS, AdviceEngine
from photocoach.types import DetectedObject

from conftest import make_pose


def _objs(*labels):
    return [DetectedObject(label=label) for label in labels]


@pytest.fixture
def engine():
    return AdviceEngine(rng=random.Random(7))


class TestRulePriority:

    def test_bottle_beats_darkness_and_missing_subject(self, engine):
        assert engine.generate([], _objs("bottle"), 30) == adv.MSG_DRINK

    def test_darkness_beats_pose_framing(self, engine):
        assert engine.generate(make_pose(), [], 25) == adv.MSG_TOO_DARK

    def test_darkness_beats_off_center_pose(self, engine):
        assert engine.generate(make_pose(nose_x=0.1), [], 25) == adv.MSG_TOO_DARK

    def test_empty_scene_is_not_in_frame(self, engine):
        assert engine.generate([], [], 128) == adv.MSG_NOT_IN_FRAME

    def test_lighting_checked_even_without_subject(self, engine):
        assert engine.generate([], [], 240) == adv.MSG_TOO_BRIGHT


class TestObjectRules:

    @pytest.mark.parametrize("label", ["bottle", "cup", "wine glass"])
    def test_drinks(self, engine, label):
        assert engine.generate(make_pose(), _objs(label), 128) == adv.MSG_DRINK

    @pytest.mark.parametrize("label", ["backpack", "handbag", "suitcase"])
    def test_bags(self, engine, label):
        assert engine.generate(make_pose(), _objs(label), 128) == adv.MSG_BAG

    @pytest.mark.parametrize("label", ["laptop", "tv", "cell phone"])
    def test_devices(self, engine, label):
        assert engine.generate(make_pose(), _objs(label), 128) == adv.MSG_DEVICE

    def test_drink_listed_before_bag_and_device(self, engine):
        assert engine.generate(make_pose(), _objs("laptop", "handbag", "cup"), 128) == adv.MSG_DRINK

    def test_bag_before_device(self, engine):
        assert engine.generate(make_pose(), _objs("tv", "backpack"), 128) == adv.MSG_BAG

    def test_furniture_alone_is_fine(self, engine):
        tip = engine.generate(make_pose(), _objs("chair", "potted plant"), 128)
        assert tip in COMPLIMENTS

    def test_furniture_with_clutter_is_messy(self, engine):
        tip = engine.generate(make_pose(), _objs("chair", "potted plant", "clock"), 128)
        assert tip == adv.MSG_MESSY

    def test_people_do_not_count_as_clutter(self, engine):
        tip = engine.generate(make_pose(), _objs("person", "person", "couch", "vase"), 128)
        assert tip in COMPLIMENTS

    def test_labels_are_case_insensitive(self, engine):
        assert engine.generate(make_pose(), _objs("Bottle"), 128) == adv.MSG_DRINK


class TestLighting:

    @pytest.mark.parametrize("brightness,expected", [
        (0, adv.MSG_TOO_DARK),
        (49.9, adv.MSG_TOO_DARK),
        (200.1, adv.MSG_TOO_BRIGHT),
        (255, adv.MSG_TOO_BRIGHT),
    ])
    def test_extremes(self, engine, brightness, expected):
        assert engine.generate(make_pose(), [], brightness) == expected

    @pytest.mark.parametrize("brightness", [50, 128, 200])
    def test_bounds_are_acceptable(self, engine, brightness):
        assert engine.generate(make_pose(), [], brightness) in COMPLIMENTS

    def test_unreadable_brightness_skips_rule(self, engine):
        assert engine.generate(make_pose(), [], None) in COMPLIMENTS


class TestPoseFraming:

    def test_too_far_left(self, engine):
        assert engine.generate(make_pose(nose_x=0.3), [], 128) == adv.MSG_TOO_LEFT

    def test_too_far_right(self, engine):
        assert engine.generate(make_pose(nose_x=0.7), [], 128) == adv.MSG_TOO_RIGHT

    def test_too_far_away(self, engine):
        assert engine.generate(make_pose(shoulder_width=0.1), [], 128) == adv.MSG_TOO_FAR

    def test_too_close(self, engine):
        assert engine.generate(make_pose(shoulder_width=0.9), [], 128) == adv.MSG_TOO_CLOSE

    def test_centering_before_distance(self, engine):
        assert engine.generate(make_pose(nose_x=0.2, shoulder_width=0.1), [], 128) == adv.MSG_TOO_LEFT

    def test_head_tilt(self, engine):
        assert engine.generate(make_pose(eye_tilt=0.1), [], 128) == adv.MSG_HEAD_TILT

    def test_missing_nose_skips_centering(self, engine):
        tip = engine.generate(make_pose(missing=(0,), shoulder_width=0.1), [], 128)
        assert tip == adv.MSG_TOO_FAR

    def test_partial_pose_without_key_joints_gets_compliment(self, engine):
        pose = make_pose(missing=(0, 2, 5, 11, 12))
        assert engine.generate(pose, [], 128) in COMPLIMENTS

    def test_all_none_set_is_not_in_frame(self, engine):
        assert engine.generate([None] * 33, [], 128) == adv.MSG_NOT_IN_FRAME


class TestCompliments:

    def test_good_shot_gets_known_compliment(self, engine):
        for _ in range(20):
            assert engine.generate(make_pose(), _objs("person"), 128) in COMPLIMENTS

    def test_seeded_rng_is_reproducible(self):
        a = AdviceEngine(rng=random.Random(3))
        b = AdviceEngine(rng=random.Random(3))
        tips_a = [a.generate(make_pose(), [], 128) for _ in range(10)]
        tips_b = [b.generate(make_pose(), [], 128) for _ in range(10)]
        assert tips_a == tips_b
