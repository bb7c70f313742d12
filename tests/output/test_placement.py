"""
Unit Tests for Overlay Placement

Each quarter-turn placement covers exactly the unrotated page.
"""

import pytest

from page_studio.output.placement import Placement, overlay_placement
from page_studio.output.writer import _rotated_bounds

W, H = 595, 842


class TestOverlayPlacement:
    """Tests for overlay_placement()."""

    @pytest.mark.parametrize(
        "rotation, expected",
        [
            (0, Placement(0, 0, W, H, 0)),
            (90, Placement(W, 0, H, W, 90)),
            (180, Placement(W, H, W, H, 180)),
            (270, Placement(0, H, H, W, 270)),
        ],
    )
    def test_placement_when_rotation_then_origin_and_size(self, rotation, expected):
        assert overlay_placement(rotation, W, H) == expected

    @pytest.mark.parametrize("rotation", [0, 90, 180, 270])
    def test_placement_when_rotated_about_origin_then_covers_page(self, rotation):
        p = overlay_placement(rotation, W, H)
        assert _rotated_bounds(p.x, p.y, p.width, p.height, p.rotate) == (0, 0, W, H)

    def test_placement_when_negative_rotation_then_normalized(self):
        assert overlay_placement(-90, W, H) == overlay_placement(270, W, H)

    def test_placement_when_not_quarter_turn_then_raises(self):
        with pytest.raises(ValueError):
            overlay_placement(45, W, H)
