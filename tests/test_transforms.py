import math

import pytest
from conftest import make_pose, side_pose

from garment_fit.config import get_config
from garment_fit.landmarks import Landmark, Segment, View
from garment_fit.transforms import limb_rotation, solve, torso_rotation


def _by_segment(transforms):
    return {t.segment: t for t in transforms}


def test_level_shoulders_have_no_rotation():
    out = solve(View.FRONT, make_pose(), config=get_config("segmented"))
    assert _by_segment(out)[Segment.TORSO].rotation == pytest.approx(0.0)


def test_torso_rotation_ignores_shoulder_order():
    a = Landmark(0.6, 0.5)
    b = Landmark(0.4, 0.4)
    assert torso_rotation(a, b) == pytest.approx(math.atan(0.5))
    assert torso_rotation(b, a) == pytest.approx(math.atan(0.5))


def test_torso_rotation_stays_within_half_turn():
    for dy in (-0.3, -0.1, 0.0, 0.1, 0.3):
        rot = torso_rotation(Landmark(0.6, 0.5), Landmark(0.4, 0.5 + dy))
        assert -math.pi / 2 < rot <= math.pi / 2


def test_sleeve_rotation_follows_limb():
    lm = make_pose(left_shoulder=(0.5, 0.4, 0.0, 0.99),
                   right_shoulder=(0.3, 0.4, 0.0, 0.99),
                   left_elbow=(0.6, 0.6, 0.0, 0.9))
    out = _by_segment(solve(View.FRONT, lm, config=get_config("segmented")))
    expected = math.atan2(0.2, 0.1) + math.pi / 2
    assert out[Segment.LEFT_UPPER_SLEEVE].rotation == pytest.approx(expected)
    assert limb_rotation(lm[11], lm[13]) == pytest.approx(expected)


def test_upper_sleeve_centre_lies_on_the_limb():
    lm = make_pose()
    out = _by_segment(solve(View.FRONT, lm, config=get_config("segmented")))
    t = out[Segment.LEFT_UPPER_SLEEVE]
    sx, sy = (lm[11].x - 0.5) * 8, (lm[11].y - 0.5) * 8
    ex, ey = (lm[13].x - 0.5) * 8, (lm[13].y - 0.5) * 8
    cross = (ex - sx) * (t.y - sy) - (ey - sy) * (t.x - sx)
    assert cross == pytest.approx(0.0, abs=1e-9)


def test_front_torso_placement():
    out = solve(View.FRONT, make_pose(), config=get_config("tshirt"))
    assert len(out) == 1
    t = out[0]
    width = 0.2 * 8 * 2.2
    assert t.segment == Segment.TORSO
    assert t.x == pytest.approx(0.0)
    assert t.scale_x == pytest.approx(width)
    assert t.scale_y == pytest.approx(width)
    assert t.y == pytest.approx(-0.05 * 8 + width * 0.28)
    assert t.z_order == 0.0


def test_aspect_ratio_sets_torso_height():
    out = solve(View.FRONT, make_pose(), aspect_ratios={"front": 1.5})
    assert out[0].scale_y == pytest.approx(out[0].scale_x * 1.5)


def test_frame_size_squares_the_vertical_axis():
    lm = make_pose()
    iso = solve(View.FRONT, lm)[0]
    wide = solve(View.FRONT, lm, frame_size=(1280, 720))[0]
    assert wide.scale_x == pytest.approx(iso.scale_x)
    # Shoulder line sits 0.05 above centre; at 16:9 the vertical scale is 4.5
    assert wide.y - wide.scale_y * 0.28 == pytest.approx(-0.05 * 4.5)


def test_tshirt_variant_does_not_rotate():
    lm = make_pose(left_shoulder=(0.6, 0.5, 0.0, 0.99))
    out = solve(View.FRONT, lm, config=get_config("tshirt"))
    assert out[0].rotation == 0.0


def test_z_order_is_ascending():
    out = solve(View.FRONT, make_pose(), config=get_config("segmented"))
    assert [t.segment for t in out][0] == Segment.TORSO
    assert len(out) == 5
    z = [t.z_order for t in out]
    assert z == sorted(z)
    seg = _by_segment(out)
    assert seg[Segment.LEFT_UPPER_SLEEVE].z_order == 0.1
    assert seg[Segment.RIGHT_LOWER_SLEEVE].z_order == 0.2


def test_hidden_wrist_drops_lower_sleeve_only():
    lm = make_pose(left_wrist=(0.66, 0.72, 0.0, 0.2))
    seg = _by_segment(solve(View.FRONT, lm, config=get_config("segmented")))
    assert Segment.LEFT_UPPER_SLEEVE in seg
    assert Segment.LEFT_LOWER_SLEEVE not in seg


def test_hidden_elbow_drops_whole_arm():
    lm = make_pose(right_elbow=(0.35, 0.6, 0.0, 0.1))
    seg = _by_segment(solve(View.FRONT, lm, config=get_config("segmented")))
    assert Segment.RIGHT_UPPER_SLEEVE not in seg
    assert Segment.RIGHT_LOWER_SLEEVE not in seg
    assert Segment.LEFT_LOWER_SLEEVE in seg


def test_right_view_skips_right_arm():
    out = solve(View.RIGHT, side_pose(), config=get_config("segmented"))
    names = [t.segment for t in out]
    assert Segment.TORSO in names
    assert not any(n.startswith("right_") for n in names)
    assert Segment.LEFT_UPPER_SLEEVE in names


def test_left_view_skips_left_arm():
    out = solve(View.LEFT, side_pose(), config=get_config("segmented"))
    names = [t.segment for t in out]
    assert not any(n.startswith("left_") for n in names)
    assert Segment.RIGHT_UPPER_SLEEVE in names


def test_side_width_comes_from_body_height():
    out = solve(View.RIGHT, side_pose(), config=get_config("tshirt"))
    body_h = (0.75 - 0.45) * 8
    assert out[0].scale_x == pytest.approx(body_h * 0.8 * 1.6)


def test_side_view_without_hips_places_nothing():
    lm = side_pose(left_hip=(0.57, 0.75, 0.0, 0.2), right_hip=(0.43, 0.75, 0.0, 0.2))
    assert solve(View.RIGHT, lm) == []


def test_hidden_shoulder_places_nothing():
    lm = make_pose(right_shoulder=(0.4, 0.45, 0.0, 0.4))
    assert solve(View.FRONT, lm, config=get_config("segmented")) == []
    assert solve(View.FRONT, []) == []


def test_photo_variant_blends_torso_height_toward_body():
    lm = make_pose()
    plain = solve(View.FRONT, lm, config=get_config("photo"))[0]
    hidden_hips = make_pose(left_hip=(0.57, 0.75, 0.0, 0.1), right_hip=(0.43, 0.75, 0.0, 0.1))
    unblended = solve(View.FRONT, hidden_hips, config=get_config("photo"))[0]
    assert unblended.scale_y == pytest.approx(unblended.scale_x)
    assert plain.scale_y != pytest.approx(unblended.scale_y)


def test_to_dict():
    t = solve(View.FRONT, make_pose())[0]
    d = t.to_dict()
    assert d["segment"] == "torso"
    assert set(d) == {"segment", "x", "y", "rotation", "scale_x", "scale_y", "z_order"}
