"""Tests for dependency discovery through dependencies.py."""

from pathlib import Path

import pytest
from conftest import coordinate

from artifact_templates.core.errors import ScriptEvaluationError
from artifact_templates.core.models import (
    ArtifactTemplateRequest,
    ProjectionContext,
    TemplateRequest,
)
from artifact_templates.resolution.scripting import DependencyDiscoverer, PythonScriptEngine

COORDINATE = coordinate("com.example:parent#1.0")


class ScriptEngineSpy:
    def __init__(self):
        self.calls = 0

    def evaluate(self, source, data_model, *, name):
        self.calls += 1
        return []


@pytest.fixture
def context(tmp_path: Path) -> ProjectionContext:
    return ProjectionContext(
        run_id="run", installation_path=tmp_path / "install", scratch_root=tmp_path / "scratch"
    )


@pytest.fixture
def request_() -> TemplateRequest:
    return ArtifactTemplateRequest(template="com.example:parent#1.0", name="shop")


def _discover(tmp_path, script, request, context, engine=None):
    template_dir = tmp_path / "template"
    template_dir.mkdir(exist_ok=True)
    if script is not None:
        (template_dir / "dependencies.py").write_text(script)
    discoverer = DependencyDiscoverer(engine or PythonScriptEngine())
    return discoverer.discover(template_dir, request, context, COORDINATE)


class TestDependencyDiscoverer:
    def test_without_script_engine_is_not_invoked(self, tmp_path, request_, context):
        spy = ScriptEngineSpy()

        assert _discover(tmp_path, None, request_, context, spy) == []
        assert spy.calls == 0

    def test_script_returns_ordered_requests(self, tmp_path, request_, context):
        script = (
            "Request = requests['ArtifactTemplateRequest']\n"
            "dependencies = [\n"
            "    Request(template='com.example:model#1.0', directory_name=request.name + '-model'),\n"
            "    {'template': 'com.example:api#1.0', 'directory_name': request.name + '-api'},\n"
            "]\n"
        )

        dependencies = _discover(tmp_path, script, request_, context)

        assert [d.template for d in dependencies] == ["com.example:model#1.0", "com.example:api#1.0"]
        assert [d.directory_name for d in dependencies] == ["shop-model", "shop-api"]

    def test_script_sees_context_and_support(self, tmp_path, request_, context):
        script = (
            "dependencies = [{'template': 'g:a#1.0', 'run': context.run_id,"
            " 'cls': support.to_pascal_case(request.name, '-')}]\n"
        )

        [dependency] = _discover(tmp_path, script, request_, context)

        assert dependency.run == "run"
        assert dependency.cls == "Shop"

    def test_script_without_result(self, tmp_path, request_, context):
        assert _discover(tmp_path, "x = 1\n", request_, context) == []

    def test_script_error_is_wrapped(self, tmp_path, request_, context):
        with pytest.raises(ScriptEvaluationError) as exc_info:
            _discover(tmp_path, "dependencies = [1 / 0]\n", request_, context)

        assert "dependencies.py" in str(exc_info.value)
        assert "com.example:parent#1.0" in str(exc_info.value)
        assert isinstance(exc_info.value.__cause__, ZeroDivisionError)

    @pytest.mark.parametrize(
        "script",
        ["dependencies = 'g:a#1.0'\n", "dependencies = [42]\n", "dependencies = [{'type': 'Nope'}]\n"],
    )
    def test_invalid_results(self, tmp_path, request_, context, script):
        with pytest.raises(ScriptEvaluationError):
            _discover(tmp_path, script, request_, context)
