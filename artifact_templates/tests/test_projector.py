"""Tests for projecting a single unpacked template."""

from pathlib import Path

import pytest
from conftest import coordinate, read_tree

from artifact_templates.core.errors import TemplateRenderError
from artifact_templates.core.models import ArtifactTemplateRequest
from artifact_templates.projection.projector import TemplateProjector

COORDINATE = coordinate("com.example:tpl#1.0")


@pytest.fixture
def template_dir(tmp_path: Path) -> Path:
    return tmp_path / "template"


@pytest.fixture
def scratch(tmp_path: Path) -> Path:
    root = tmp_path / "projection"
    root.mkdir()
    return root


def _write(root: Path, files: dict[str, str]) -> None:
    for name, text in files.items():
        path = root / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text)


def _project(template_dir: Path, scratch: Path, destination: Path | None = None, **properties) -> None:
    request = ArtifactTemplateRequest(template="com.example:tpl#1.0", **properties)
    TemplateProjector().project(
        request, template_dir, scratch, destination or scratch, COORDINATE
    )


class TestStaticProjection:
    def test_copies_static_content_verbatim(self, template_dir, scratch):
        _write(template_dir, {
            "content/static/readme.md": "# {{ not rendered }}",
            "content/static/src/app.py": "print('hi')\n",
        })

        _project(template_dir, scratch)

        assert read_tree(scratch) == {
            "readme.md": "# {{ not rendered }}",
            "src/app.py": "print('hi')\n",
        }

    def test_static_directives(self, template_dir, scratch):
        _write(template_dir, {
            "content/static/keep.txt": "keep",
            "content/static/optional.txt": "optional",
            "content/static/docs/a.md": "a",
            "content/static/gitignore": "*.pyc",
            "content/dynamic/static.j2": (
                "{% do static.create_dir('logs/archive') %}\n"
                "{% if not request.with_docs %}{% do static.ignore('docs') %}{% endif %}\n"
                "{% do static.ignore('optional.txt') %}\n"
                "{% do static.relocate('gitignore', '.gitignore') %}\n"
            ),
        })

        _project(template_dir, scratch, with_docs=False)

        assert read_tree(scratch) == {"keep.txt": "keep", ".gitignore": "*.pyc"}
        assert (scratch / "logs" / "archive").is_dir()
        assert not (scratch / "gitignore").exists()
        assert not (scratch / "static").exists()

    def test_relocating_missing_static_path_fails(self, template_dir, scratch):
        _write(template_dir, {
            "content/static/keep.txt": "keep",
            "content/dynamic/static.j2": "{% do static.relocate('nope', 'there') %}",
        })

        with pytest.raises(TemplateRenderError, match="nope"):
            _project(template_dir, scratch)

    def test_static_template_failure(self, template_dir, scratch):
        _write(template_dir, {"content/dynamic/static.j2": "{{ request.missing }}"})

        with pytest.raises(TemplateRenderError) as exc_info:
            _project(template_dir, scratch)

        assert "content/dynamic/static.j2" in str(exc_info.value)
        assert "com.example:tpl#1.0" in str(exc_info.value)


class TestDynamicProjection:
    def test_default_destination_strips_projected_dir_and_suffix(self, template_dir, scratch):
        _write(template_dir, {
            "content/dynamic/projected/build.gradle.j2": "name = '{{ request.name }}'\n",
            "content/dynamic/projected/logo.svg": "<svg/>",
        })

        _project(template_dir, scratch, name="demo")

        assert read_tree(scratch) == {
            "build.gradle": "name = 'demo'\n",
            "logo.svg": "<svg/>",
        }

    def test_relocate_and_ignore(self, template_dir, scratch):
        _write(template_dir, {
            "content/dynamic/projected/Model.java.j2": (
                "{% do template.relocate('src/' ~ request.package.replace('.', '/') ~ '/Model.java') %}\n"
                "package {{ request.package }};\n"
            ),
            "content/dynamic/projected/optional.txt.j2": "{{ template.ignore() }}",
            "content/dynamic/projected/kept.txt.j2": "kept",
        })

        _project(template_dir, scratch, package="com.example")

        assert read_tree(scratch) == {
            "src/com/example/Model.java": "package com.example;\n",
            "kept.txt": "kept",
        }

    def test_files_outside_projected_dir(self, template_dir, scratch):
        _write(template_dir, {"content/dynamic/notes.md.j2": "{{ request.name }}"})

        _project(template_dir, scratch, name="n")

        assert read_tree(scratch) == {"notes.md": "n"}

    def test_projects_into_destination(self, template_dir, scratch):
        _write(template_dir, {
            "content/static/a.txt": "a",
            "content/dynamic/projected/b.txt.j2": "b",
        })

        _project(template_dir, scratch, scratch / "module")

        assert read_tree(scratch) == {"module/a.txt": "a", "module/b.txt": "b"}

    def test_render_failure_names_file_and_template(self, template_dir, scratch):
        _write(template_dir, {"content/dynamic/projected/broken.txt.j2": "{{ 1 / 0 }}"})

        with pytest.raises(TemplateRenderError) as exc_info:
            _project(template_dir, scratch)

        assert "content/dynamic/projected/broken.txt.j2" in str(exc_info.value)
        assert "com.example:tpl#1.0" in str(exc_info.value)

    def test_relocation_outside_projection_is_rejected(self, template_dir, scratch):
        _write(template_dir, {
            "content/dynamic/projected/evil.txt.j2": "{% do template.relocate('../../evil.txt') %}x",
        })

        with pytest.raises(TemplateRenderError, match="outside"):
            _project(template_dir, scratch)
