"""
Unit Tests for Project Loading

Project file to PageStore, relative source paths and error reporting.
"""

import json

import pytest

from page_studio.config import EditorConfig
from page_studio.loading.project import ProjectError, load_project

CONFIG = EditorConfig(render_scale=1.0, blank_width=120, blank_height=80)

SCENE = {
    "version": 1,
    "objects": [
        {
            "type": "filled_rect",
            "id": "r1",
            "x": 50,
            "y": 50,
            "width": 40,
            "height": 40,
            "opacity": 1.0,
            "fill": "#000000",
        }
    ],
}


def write_project(directory, pages):
    path = directory / "project.json"
    path.write_text(json.dumps({"pages": pages}), encoding="utf-8")
    return path


class TestLoadProject:
    """Tests for load_project()."""

    def test_load_when_sources_and_blanks_then_pages_in_order(self, tmp_path, pdf_path):
        path = write_project(tmp_path, [
            {"source": pdf_path.name, "page": 2, "rotation": 90, "scene": SCENE},
            {"blank": True},
            {"source": pdf_path.name, "page": 1},
            {"blank": True, "width": 30, "height": 40, "rotation": 180},
        ])

        store = load_project(path, config=CONFIG)

        first, blank, second, sized = store.pages
        assert (first.source_page_number, first.rotation) == (2, 90)
        assert (first.width, first.height) == (300, 200)
        assert first.scene == SCENE
        assert blank.is_blank and (blank.width, blank.height) == (120, 80)
        assert second.source_page_number == 1 and second.scene is None
        assert (sized.width, sized.height, sized.rotation) == (30, 40, 180)

    def test_load_when_source_used_twice_then_decoded_once(self, tmp_path, pdf_path):
        path = write_project(tmp_path, [
            {"source": pdf_path.name, "page": 1},
            {"source": pdf_path.name, "page": 2},
        ])
        first, second = load_project(path, config=CONFIG).pages
        assert first.source is second.source

    def test_load_when_source_in_subdirectory_then_resolved_against_project(self, tmp_path, pdf_bytes):
        (tmp_path / "docs").mkdir()
        (tmp_path / "docs" / "in.pdf").write_bytes(pdf_bytes)
        path = write_project(tmp_path, [{"source": "docs/in.pdf", "page": 1}])

        store = load_project(path, config=CONFIG)

        assert store[0].source.name == "in.pdf"

    def test_load_when_bad_json_then_project_error(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(ProjectError, match="Cannot read project"):
            load_project(path)

    def test_load_when_schema_violated_then_project_error(self, tmp_path):
        path = write_project(tmp_path, [{"source": "a.pdf", "page": 0}])
        with pytest.raises(ProjectError, match="Invalid project"):
            load_project(path)

    def test_load_when_page_out_of_range_then_project_error(self, tmp_path, pdf_path):
        path = write_project(tmp_path, [{"source": pdf_path.name, "page": 3}])
        with pytest.raises(ProjectError, match="has 2 page"):
            load_project(path, config=CONFIG)

    def test_load_when_source_missing_then_project_error(self, tmp_path):
        path = write_project(tmp_path, [{"source": "nowhere.pdf", "page": 1}])
        with pytest.raises(ProjectError, match="Cannot read"):
            load_project(path, config=CONFIG)

    def test_load_when_scene_invalid_then_project_error(self, tmp_path):
        bad_scene = {"version": 1, "objects": [{"type": "circle"}]}
        path = write_project(tmp_path, [{"blank": True, "scene": bad_scene}])
        with pytest.raises(ProjectError, match="Invalid scene on page 1"):
            load_project(path, config=CONFIG)
