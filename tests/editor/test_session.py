"""
Unit Tests for CanvasSession

The checkout/checkin state machine, guarded writes, snapshot counts,
mosaic re-bake on reload and page-level actions.
"""

import pytest
from PIL import Image

from page_studio.config import EditorConfig
from page_studio.core.models import (
    Direction,
    FilledRect,
    MosaicRegion,
    ObjectKind,
    Page,
    Properties,
    StyleKey,
    Text,
)
from page_studio.core.models.page import SourceDocument
from page_studio.editor.drawing import draw_object
from page_studio.editor.session import CanvasSession, SessionState, SessionStateError
from page_studio.loading.decoder import pages_from_source
from page_studio.utils.fonts import measure_text


SMALL = EditorConfig(blank_width=400, blank_height=300)


@pytest.fixture
def session():
    return CanvasSession(config=SMALL)


@pytest.fixture
def noise_session(session, noise_raster):
    """Session with one 400x300 noise page active."""
    session.import_pages([Page(noise_raster, 400, 300)])
    return session


def record_signal(signal):
    received = []
    signal.connect(received.append)
    return received


class TestStateMachine:
    """Tests for checkout/checkin."""

    def test_initial_when_created_then_idle_without_page(self, session):
        assert session.state is SessionState.IDLE
        assert session.active_index == -1
        assert session.active_page is None

    def test_edit_when_idle_then_raises(self, session):
        with pytest.raises(SessionStateError, match="idle"):
            session.add_shape(ObjectKind.FILLED_RECT)

    def test_import_when_first_pages_then_index_zero_ready(self, session):
        states = record_signal(session.stateChanged)
        indexes = record_signal(session.activeIndexChanged)

        session.add_blank_page()

        assert session.state is SessionState.READY
        assert states == ["loading", "ready"]
        assert indexes == [0]
        assert session.surface.size == (400, 300)

    def test_load_when_rotated_page_then_surface_uses_effective_dimensions(self, session):
        page = Page(Image.new("RGB", (400, 300), "white"), 400, 300, rotation=90)
        session.import_pages([page])
        assert session.surface.size == (300, 400)

    def test_flush_when_loading_then_suppressed(self, session):
        session.add_blank_page()
        session.add_shape(ObjectKind.FILLED_RECT)
        session.add_blank_page()
        flushes = []

        def on_state(state):
            if state == "loading":
                flushes.append(session.flush())

        session.stateChanged.connect(on_state)
        session.set_active_index(1)

        assert flushes == [False]
        assert len(session.store[0].scene["objects"]) == 1

    def test_switch_when_scene_edited_then_stored_and_restored(self, session):
        session.add_blank_page()
        session.add_blank_page()
        rect = session.add_shape(ObjectKind.FILLED_RECT)

        session.set_active_index(1)
        assert len(session.scene) == 0
        session.set_active_index(0)

        assert [obj.id for obj in session.scene] == [rect.id]
        assert session.scene.objects[0] is not rect

    def test_set_active_index_when_out_of_range_then_raises(self, session):
        session.add_blank_page()
        with pytest.raises(IndexError):
            session.set_active_index(5)


class TestEdits:
    """Tests for object edits and snapshots."""

    def test_add_when_shape_then_centered_and_one_snapshot(self, noise_session):
        saved = record_signal(noise_session.sceneSaved)

        rect = noise_session.add_shape(ObjectKind.OUTLINED_RECT)

        assert (rect.x, rect.y) == (200, 150)
        assert rect.stroke_width == 5
        assert saved == [noise_session.active_page.id]
        assert noise_session.selection == [rect]

    def test_apply_style_when_three_selected_then_one_snapshot(self, noise_session):
        objects = [noise_session.add_shape(ObjectKind.FILLED_RECT) for _ in range(3)]
        noise_session.select(objects)
        saved = record_signal(noise_session.sceneSaved)

        noise_session.apply_style(StyleKey.OPACITY, 0.5)

        assert [obj.opacity for obj in objects] == [0.5, 0.5, 0.5]
        assert len(saved) == 1
        stored = noise_session.active_page.scene["objects"]
        assert [record["opacity"] for record in stored] == [0.5, 0.5, 0.5]

    def test_apply_style_when_nothing_selected_then_properties_only(self, noise_session):
        saved = record_signal(noise_session.sceneSaved)
        props = record_signal(noise_session.propertiesChanged)

        noise_session.apply_style(StyleKey.COLOR, "#000000")

        assert noise_session.properties.color == "#000000"
        assert props == [Properties("#000000", 1.0, 5)]
        assert saved == []

    def test_apply_style_when_mosaic_size_then_rebaked(self, noise_session):
        region = noise_session.add_shape(ObjectKind.MOSAIC)
        before = region.baked.tobytes()
        noise_session.select([region])

        rebaked = noise_session.apply_style(StyleKey.SIZE, 20)

        assert rebaked == [region]
        assert region.block_size == 20
        assert region.needs_bake is False
        assert region.baked.tobytes() != before

    def test_select_when_text_then_properties_synced(self, noise_session):
        text = noise_session.add_object(Text(100, 100, 50, 20, fill="#22c55e", font_size=48))
        props = record_signal(noise_session.propertiesChanged)

        noise_session.select([text])

        assert noise_session.properties == Properties("#22c55e", 1.0, 12)
        assert len(props) == 1

    def test_modify_when_mosaic_moved_then_rebaked_and_saved(self, noise_session):
        region = noise_session.add_shape(ObjectKind.MOSAIC)
        saved = record_signal(noise_session.sceneSaved)

        noise_session.modify_object(region, x=120, y=90)

        assert region.needs_bake is False
        assert noise_session.active_page.scene["objects"][0]["x"] == 120
        assert len(saved) == 1

    def test_modify_when_protected_attribute_then_raises(self, noise_session):
        rect = noise_session.add_shape(ObjectKind.FILLED_RECT)
        with pytest.raises(AttributeError):
            noise_session.modify_object(rect, id="other")
        with pytest.raises(AttributeError):
            noise_session.modify_object(rect, block_size=3)

    def test_edit_text_when_exited_then_content_saved(self, noise_session):
        text = noise_session.add_shape(ObjectKind.TEXT)
        width = text.width

        noise_session.edit_text(text, "A much longer label")

        assert noise_session.active_page.scene["objects"][0]["text"] == "A much longer label"
        assert text.width > width

    def test_remove_when_object_removed_then_saved_without_it(self, noise_session):
        rect = noise_session.add_shape(ObjectKind.FILLED_RECT)
        noise_session.remove_object(rect)
        assert noise_session.active_page.scene["objects"] == []

    def test_move_layer_when_selected_to_back_then_index_zero(self, noise_session):
        noise_session.add_shape(ObjectKind.FILLED_RECT)
        top = noise_session.add_shape(ObjectKind.ARROW)

        assert noise_session.move_layer(Direction.BACK) == 0
        assert noise_session.active_page.scene["objects"][0]["id"] == top.id

    def test_insert_images_when_two_then_staggered_one_snapshot(self, noise_session):
        saved = record_signal(noise_session.sceneSaved)
        images = [Image.new("RGB", (50, 40), "red"), Image.new("RGB", (50, 40), "blue")]

        inserted = noise_session.insert_images(images)

        assert [(obj.x, obj.y) for obj in inserted] == [(200, 150), (220, 170)]
        assert len(saved) == 1

    def test_apply_style_when_text_size_raised_then_whole_ink_drawn(self, noise_session):
        text = noise_session.add_shape(ObjectKind.TEXT)
        noise_session.apply_style(StyleKey.SIZE, 20)

        canvas = Image.new("RGBA", noise_session.surface.size, (0, 0, 0, 0))
        draw_object(canvas, text)
        left, top, right, bottom = canvas.getchannel("A").getbbox()

        assert text.font_size == 80
        assert (text.width, text.height) == measure_text("Text", 80)
        assert abs((right - left) - text.width) <= 3
        assert abs((bottom - top) - text.height) <= 3
        assert noise_session.active_page.scene["objects"][0]["width"] == text.width

    def test_modify_when_font_size_changed_then_box_refit(self, noise_session):
        text = noise_session.add_shape(ObjectKind.TEXT)
        noise_session.modify_object(text, font_size=64)
        assert (text.width, text.height) == measure_text("Text", 64)

    def test_modify_when_opacity_out_of_range_then_clamped_and_reloadable(self, session):
        session.add_blank_page()
        session.add_blank_page()
        rect = session.add_shape(ObjectKind.FILLED_RECT)

        session.modify_object(rect, opacity=5)
        session.set_active_index(1)
        session.set_active_index(0)

        assert session.store[0].scene["objects"][0]["opacity"] == 1.0
        assert session.scene.objects[0].opacity == 1.0

    def test_modify_when_negative_size_then_rejected_unchanged(self, noise_session):
        rect = noise_session.add_shape(ObjectKind.FILLED_RECT)
        with pytest.raises(ValueError, match="width"):
            noise_session.modify_object(rect, x=10, width=-5)
        assert (rect.x, rect.width) == (200, 200)

    def test_apply_style_when_mosaic_recolored_then_outline_survives_switch(self, session):
        session.add_blank_page()
        session.add_blank_page()
        region = session.add_shape(ObjectKind.MOSAIC)
        session.select([region])

        session.apply_style(StyleKey.COLOR, "#000000")
        session.set_active_index(1)
        session.set_active_index(0)

        assert session.scene.find(region.id).outline == "#000000"


class TestMosaicReload:
    """Mosaic regions re-bake on reload."""

    def test_switch_when_mosaic_on_source_page_then_rebaked_identically(self, session, pdf_factory):
        source = SourceDocument("one.pdf", pdf_factory(sizes=((300, 200),)))
        session.import_pages(pages_from_source(source, scale=2.0))
        region = session.add_object(MosaicRegion(100, 100, 200, 120, block_size=10))
        before = region.baked.tobytes()

        session.add_blank_page()
        session.set_active_index(1)
        session.set_active_index(0)

        restored = session.scene.objects_of_kind(ObjectKind.MOSAIC)[0]
        assert restored is not region
        assert restored.needs_bake is False
        assert restored.baked.tobytes() == before

    def test_rotate_when_active_page_then_reloaded_and_rebaked(self, noise_session):
        region = noise_session.add_shape(ObjectKind.MOSAIC)
        page_id = noise_session.active_page.id

        assert noise_session.rotate_page(page_id, 90) == 90

        assert noise_session.surface.size == (300, 400)
        restored = noise_session.scene.find(region.id)
        assert (restored.x, restored.y) == (region.x, region.y)
        assert restored.needs_bake is False


class TestPageActions:
    """Page-level actions keep the active index on the active page."""

    def test_move_when_active_page_moved_to_end_then_index_follows(self, session):
        for _ in range(3):
            session.add_blank_page()
        a, b, c = session.store.pages
        indexes = record_signal(session.activeIndexChanged)

        session.move_page(0, 2)

        assert session.store.pages == (b, c, a)
        assert session.active_index == 2
        assert indexes == [2]

    def test_move_when_passed_over_then_active_shifts_by_one(self, session):
        for _ in range(3):
            session.add_blank_page()
        session.set_active_index(1)

        session.move_page(0, 2)

        assert session.active_index == 0

    def test_move_when_active_page_edited_then_flushed_first(self, session):
        session.add_blank_page()
        session.add_blank_page()
        rect = session.add_object(FilledRect(10, 10, 5, 5))
        rect.x = 50

        session.move_page(0, 1)

        assert session.store[1].scene["objects"][0]["x"] == 50

    def test_remove_when_active_page_then_next_page_loaded(self, session):
        session.add_blank_page()
        session.add_blank_page()
        first, second = session.store.pages

        session.remove_page(first.id)

        assert session.active_index == 0
        assert session.active_page is second
        assert session.state is SessionState.READY

    def test_remove_when_last_page_then_idle(self, session):
        page = session.add_blank_page()
        session.remove_page(page.id)
        assert session.state is SessionState.IDLE
        assert session.active_index == -1

    def test_remove_when_earlier_page_then_index_shifts(self, session):
        session.add_blank_page()
        session.add_blank_page()
        first, second = session.store.pages
        session.set_active_index(1)

        session.remove_page(first.id)

        assert session.active_index == 0
        assert session.active_page is second


class TestZoom:

    def test_fit_when_roomy_container_then_capped(self, noise_session):
        assert noise_session.fit_zoom(460, 360) == pytest.approx(0.9)

    def test_fit_when_small_container_then_scaled_down(self, noise_session):
        assert noise_session.fit_zoom(260, 210) == pytest.approx(0.5)

    def test_fit_when_container_below_margin_then_fallback(self, noise_session):
        assert noise_session.fit_zoom(30, 30) == 0.5

    def test_wheel_when_scrolling_then_clamped(self, session):
        session.set_zoom(0.15)
        assert session.wheel_zoom(500) == 0.1
