"""
Unit Tests for the Scene Object Model

Variants, Properties, z-order operations, style application and the
object factories.
"""

import pytest
from PIL import Image

from page_studio.core.models import (
    Arrow,
    Direction,
    FilledRect,
    ImageObject,
    MosaicRegion,
    ObjectKind,
    OutlinedRect,
    Properties,
    Scene,
    StyleKey,
    Text,
    create_image_object,
    create_object,
)
from page_studio.utils.fonts import measure_text


def make_scene(count=3):
    scene = Scene()
    objects = [FilledRect(100 + i * 10, 100, 50, 50) for i in range(count)]
    for obj in objects:
        scene.add_object(obj)
    return scene, objects


class TestSceneObjects:
    """Tests for the variant types."""

    def test_opacity_when_out_of_range_then_clamped(self):
        assert FilledRect(0, 0, 10, 10, opacity=0.0).opacity == 0.1
        assert FilledRect(0, 0, 10, 10, opacity=2.0).opacity == 1.0

    def test_block_size_when_out_of_range_then_clamped(self):
        assert MosaicRegion(0, 0, 10, 10, block_size=0).block_size == 1
        assert MosaicRegion(0, 0, 10, 10, block_size=500).block_size == 100

    def test_mosaic_when_created_then_needs_bake(self):
        region = MosaicRegion(100, 100, 200, 120)
        assert region.needs_bake is True
        assert region.baked is None

    def test_mosaic_when_moved_or_resized_then_needs_bake_again(self):
        region = MosaicRegion(100, 100, 200, 120)
        region.needs_bake = False
        region.move_to(150, 150)
        assert region.needs_bake is True

        region.needs_bake = False
        region.resize(100, 100)
        assert region.needs_bake is True

    def test_image_object_when_rgb_source_then_converted_to_rgba(self):
        obj = ImageObject(0, 0, 10, 10, image=Image.new("RGB", (10, 10)))
        assert obj.image.mode == "RGBA"

    def test_image_object_when_no_source_then_raises(self):
        with pytest.raises(ValueError, match="pixel source"):
            ImageObject(0, 0, 10, 10)

    def test_ids_when_created_then_unique(self):
        assert FilledRect(0, 0, 1, 1).id != FilledRect(0, 0, 1, 1).id

    def test_equality_when_same_fields_then_still_distinct(self):
        a = FilledRect(0, 0, 1, 1, id="x")
        b = FilledRect(0, 0, 1, 1, id="x")
        assert a != b


class TestSceneOperations:
    """Tests for Scene add/remove/reorder."""

    def test_add_when_object_added_then_on_top_and_selected(self):
        scene, objects = make_scene()
        assert scene.objects[-1] is objects[-1]
        assert scene.selection == [objects[-1]]

    def test_remove_when_selected_then_dropped_from_selection(self):
        scene, objects = make_scene()
        scene.remove_object(objects[-1])
        assert objects[-1] not in scene
        assert scene.selection == []

    def test_remove_when_not_in_scene_then_raises(self):
        scene, _ = make_scene()
        with pytest.raises(ValueError):
            scene.remove_object(FilledRect(0, 0, 1, 1))

    @pytest.mark.parametrize(
        "start, direction, expected",
        [
            (0, Direction.FRONT, 3),
            (3, Direction.BACK, 0),
            (1, Direction.FORWARD, 2),
            (2, Direction.BACKWARD, 1),
            (3, Direction.FORWARD, 3),
            (0, Direction.BACKWARD, 0),
        ],
    )
    def test_reorder_when_direction_given_then_index_clamped(self, start, direction, expected):
        scene, objects = make_scene(4)
        obj = objects[start]
        assert scene.reorder(obj, direction) == expected
        assert scene.index_of(obj) == expected
        assert len(scene) == 4

    def test_objects_below_when_middle_object_then_only_lower_ones(self):
        scene, objects = make_scene(3)
        assert scene.objects_below(objects[1]) == [objects[0]]

    def test_find_when_unknown_id_then_none(self):
        scene, objects = make_scene()
        assert scene.find(objects[0].id) is objects[0]
        assert scene.find("missing") is None

    def test_select_when_foreign_objects_then_ignored(self):
        scene, objects = make_scene()
        scene.select([objects[0], FilledRect(0, 0, 1, 1)])
        assert scene.selection == [objects[0]]


class TestApplyStyle:
    """Tests for Scene.apply_style()."""

    def test_opacity_when_multi_selection_then_all_updated(self):
        scene, objects = make_scene(3)
        scene.apply_style(objects, StyleKey.OPACITY, 0.5)
        assert [obj.opacity for obj in objects] == [0.5, 0.5, 0.5]

    def test_color_when_mixed_variants_then_fill_or_stroke(self):
        rect = FilledRect(0, 0, 10, 10)
        outline = OutlinedRect(0, 0, 10, 10)
        arrow = Arrow(0, 0, 10, 10)
        text = Text(0, 0, 10, 10)
        scene = Scene([rect, outline, arrow, text])

        scene.apply_style([rect, outline, arrow, text], StyleKey.COLOR, "#000000")

        assert rect.fill == "#000000"
        assert outline.stroke == "#000000"
        assert arrow.stroke == "#000000"
        assert text.fill == "#000000"

    def test_color_when_image_then_untouched(self):
        image = ImageObject(0, 0, 10, 10, image=Image.new("RGBA", (10, 10)))
        scene = Scene([image])
        scene.apply_style([image], StyleKey.COLOR, "#000000")
        assert not hasattr(image, "fill")

    def test_size_when_text_then_font_size_is_four_times(self):
        text = Text(0, 0, 10, 10)
        Scene([text]).apply_style([text], StyleKey.SIZE, 12)
        assert text.font_size == 48

    def test_size_when_text_enlarged_then_box_refit_around_center(self):
        text = Text(100, 50, 10, 10, text="Label")
        Scene([text]).apply_style([text], StyleKey.SIZE, 20)
        assert (text.width, text.height) == measure_text("Label", 80)
        assert (text.x, text.y) == (100, 50)

    def test_size_when_stroked_then_stroke_width(self):
        arrow = Arrow(0, 0, 10, 10)
        Scene([arrow]).apply_style([arrow], StyleKey.SIZE, 9)
        assert arrow.stroke_width == 9

    def test_size_when_mosaic_then_block_size_and_rebake_returned(self):
        region = MosaicRegion(0, 0, 10, 10)
        rect = FilledRect(0, 0, 10, 10)
        region.needs_bake = False
        rebake = Scene([region, rect]).apply_style([region, rect], StyleKey.SIZE, 20)
        assert region.block_size == 20
        assert region.needs_bake is True
        assert rebake == [region]


class TestProperties:
    """Tests for tool Properties."""

    def test_defaults_when_created_then_red_opaque_size_five(self):
        assert Properties() == Properties("#ef4444", 1.0, 5)

    def test_from_object_when_text_then_size_from_font(self):
        text = Text(0, 0, 10, 10, fill="#22c55e", font_size=48, opacity=0.4)
        assert Properties.from_object(text) == Properties("#22c55e", 0.4, 12)

    def test_from_object_when_outlined_then_stroke_color_and_width(self):
        outline = OutlinedRect(0, 0, 10, 10, stroke="#3b82f6", stroke_width=7)
        assert Properties.from_object(outline) == Properties("#3b82f6", 1.0, 7)

    def test_from_object_when_mosaic_then_block_size(self):
        region = MosaicRegion(0, 0, 10, 10, block_size=25)
        assert Properties.from_object(region).size == 25

    def test_from_object_when_image_then_fallback_color(self):
        image = ImageObject(0, 0, 10, 10, image=Image.new("RGBA", (10, 10)))
        props = Properties.from_object(image, Properties("#000000", 1.0, 3))
        assert props.color == "#000000"
        assert props.size == 5

    def test_updated_when_opacity_out_of_range_then_clamped(self):
        assert Properties().updated(StyleKey.OPACITY, 0).opacity == 0.1


class TestFactories:
    """Tests for create_object() and create_image_object()."""

    def test_create_when_filled_rect_then_200_square_from_properties(self):
        obj = create_object(ObjectKind.FILLED_RECT, Properties("#000000", 0.5, 5), (400, 300))
        assert isinstance(obj, FilledRect)
        assert (obj.x, obj.y, obj.width, obj.height) == (400, 300, 200, 200)
        assert obj.fill == "#000000"
        assert obj.opacity == 0.5

    def test_create_when_mosaic_then_default_size_and_block_from_size(self):
        obj = create_object(ObjectKind.MOSAIC, Properties(size=10), (100, 100))
        assert isinstance(obj, MosaicRegion)
        assert (obj.width, obj.height) == (200, 120)
        assert obj.block_size == 10

    def test_create_when_text_then_font_size_four_times_size(self):
        obj = create_object(ObjectKind.TEXT, Properties(size=10), (100, 100))
        assert isinstance(obj, Text)
        assert obj.font_size == 40
        assert obj.width > 0 and obj.height > 0

    def test_create_when_image_kind_then_raises(self):
        with pytest.raises(ValueError):
            create_object(ObjectKind.IMAGE, Properties(), (0, 0))

    def test_image_when_large_then_scaled_to_fraction(self):
        obj = create_image_object(Image.new("RGB", (1000, 500)), (800, 600), (400, 300))
        # min(0.4 * 800 / 1000, 0.4 * 600 / 500, 1) = 0.32
        assert obj.width == pytest.approx(320)
        assert obj.height == pytest.approx(160)

    def test_image_when_small_then_never_enlarged(self):
        obj = create_image_object(Image.new("RGB", (50, 40)), (800, 600), (400, 300))
        assert (obj.width, obj.height) == (50, 40)

    def test_image_when_batch_index_then_staggered(self):
        obj = create_image_object(Image.new("RGB", (50, 40)), (800, 600), (400, 300), index=2)
        assert (obj.x, obj.y) == (440, 340)
