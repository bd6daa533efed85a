"""Tests for the mermaid-render CLI."""

import json
import subprocess
import sys
from pathlib import Path

import pytest

import mermaid_render.__main__ as cli
from mermaid_render.backends import EncodedRequest, RenderBackend
from mermaid_render.errors import BackendError
from mermaid_render.render import RenderedImage

REPO_ROOT = Path(__file__).resolve().parents[2]
FAKE_PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 200
DIAGRAM = "graph TD\n  A-->B\n"


class StubBackend(RenderBackend):
    """Backend that records render keys and returns a fixed image."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.keys: list[str] = []

    @property
    def name(self) -> str:
        return "stub"

    @property
    def priority(self) -> int:
        return 1

    def encode(self, render_key: str) -> EncodedRequest:
        self.keys.append(render_key)
        return EncodedRequest(method="GET", url="stub://")

    def invoke(self, request: EncodedRequest) -> bytes:
        if self.fail:
            raise BackendError("stub", "service down")
        return FAKE_PNG


@pytest.fixture
def stub_backend(monkeypatch) -> StubBackend:
    """Replace the default chain with a single stub backend."""
    backend = StubBackend()
    monkeypatch.setattr(cli, "default_backends", lambda timeout=None: (backend,))
    return backend


@pytest.fixture
def diagram_file(tmp_path: Path) -> Path:
    """Write a small Mermaid source file."""
    path = tmp_path / "flow.mmd"
    path.write_text(DIAGRAM, encoding="utf-8")
    return path


class TestMain:
    """Tests for command dispatch."""

    @pytest.mark.unit
    def test_no_args_shows_help(self, capsys):
        """No command prints usage and fails."""
        assert cli.main([]) == 1
        assert "Usage: mermaid-render" in capsys.readouterr().out

    @pytest.mark.unit
    def test_help(self, capsys):
        """--help prints usage and succeeds."""
        assert cli.main(["--help"]) == 0
        assert "render" in capsys.readouterr().out

    @pytest.mark.unit
    def test_unknown_command(self):
        """Unknown commands fail."""
        assert cli.main(["explode"]) == 1


class TestRenderCommand:
    """Tests for the render command."""

    @pytest.mark.unit
    def test_render_to_output(self, stub_backend, diagram_file, tmp_path):
        """The rendered PNG is written to --output."""
        output = tmp_path / "out" / "diagram.png"
        assert cli.main(["render", str(diagram_file), "-o", str(output)]) == 0
        assert output.read_bytes() == FAKE_PNG

    @pytest.mark.unit
    def test_default_theme_applied(self, stub_backend, diagram_file, tmp_path):
        """The default preset is prepended to the text."""
        cli.main(["render", str(diagram_file), "-o", str(tmp_path / "a.png")])
        assert stub_backend.keys[0].startswith("%%{init:")
        assert stub_backend.keys[0].endswith("\n" + DIAGRAM)

    @pytest.mark.unit
    def test_no_theme(self, stub_backend, diagram_file, tmp_path):
        """--no-theme sends the text unchanged."""
        cli.main(
            ["render", str(diagram_file), "-o", str(tmp_path / "a.png"), "--no-theme"]
        )
        assert stub_backend.keys == [DIAGRAM]

    @pytest.mark.unit
    def test_theme_file(self, stub_backend, diagram_file, tmp_path):
        """--theme-file loads colors from JSON."""
        theme_path = tmp_path / "brand.json"
        theme_path.write_text(json.dumps({"primary": "#123456"}))
        output = tmp_path / "a.png"

        args = ["render", str(diagram_file), "-o", str(output)]
        assert cli.main(args + ["--theme-file", str(theme_path)]) == 0
        assert "'primaryColor': '#123456'" in stub_backend.keys[0]

    @pytest.mark.unit
    def test_invalid_theme_file(self, stub_backend, diagram_file, tmp_path):
        """A malformed theme file fails without rendering."""
        theme_path = tmp_path / "brand.json"
        theme_path.write_text('{"primary": "not-a-color"}')

        args = ["render", str(diagram_file), "--theme-file", str(theme_path)]
        assert cli.main(args) == 1
        assert stub_backend.keys == []

    @pytest.mark.unit
    def test_unknown_preset(self, stub_backend, diagram_file):
        """Unknown presets fail."""
        assert cli.main(["render", str(diagram_file), "--preset", "Neon"]) == 1

    @pytest.mark.unit
    def test_default_output_dir(self, stub_backend, diagram_file, tmp_path, monkeypatch):
        """Without --output the PNG lands in MERMAID_RENDER_OUTPUT_DIR."""
        out_dir = tmp_path / "rendered"
        monkeypatch.setenv("MERMAID_RENDER_OUTPUT_DIR", str(out_dir))
        assert cli.main(["render", str(diagram_file)]) == 0
        assert (out_dir / "flow.png").read_bytes() == FAKE_PNG

    @pytest.mark.unit
    def test_blank_input(self, stub_backend, tmp_path):
        """Whitespace-only input fails without rendering."""
        blank = tmp_path / "blank.mmd"
        blank.write_text("   \n")
        assert cli.main(["render", str(blank)]) == 1
        assert stub_backend.keys == []

    @pytest.mark.unit
    def test_missing_input(self, stub_backend, tmp_path):
        """A missing input file fails."""
        assert cli.main(["render", str(tmp_path / "missing.mmd")]) == 1

    @pytest.mark.unit
    def test_unwritable_output(self, stub_backend, diagram_file, tmp_path):
        """A write failure is reported with exit code 1."""
        blocker = tmp_path / "not-a-dir"
        blocker.write_text("")
        output = blocker / "diagram.png"

        assert cli.main(["render", str(diagram_file), "-o", str(output)]) == 1
        assert stub_backend.keys

    @pytest.mark.unit
    def test_save_error_reported(
        self, stub_backend, diagram_file, tmp_path, monkeypatch
    ):
        """OSError from saving the image is reported with exit code 1."""

        def refuse(self, path):
            raise PermissionError(13, "Permission denied", str(path))

        monkeypatch.setattr(RenderedImage, "save", refuse)
        output = tmp_path / "diagram.png"

        assert cli.main(["render", str(diagram_file), "-o", str(output)]) == 1
        assert not output.exists()

    @pytest.mark.unit
    def test_all_backends_fail(self, stub_backend, diagram_file, tmp_path):
        """Exhaustion fails and writes nothing."""
        stub_backend.fail = True
        output = tmp_path / "a.png"
        assert cli.main(["render", str(diagram_file), "-o", str(output)]) == 1
        assert not output.exists()


class TestListingCommands:
    """Tests for presets, backends and env."""

    @pytest.mark.unit
    def test_presets(self, capsys):
        """All presets are listed with colors."""
        assert cli.main(["presets"]) == 0
        out = capsys.readouterr().out
        assert "Corporate Blue (default)" in out
        assert "Dark Professional" in out
        assert "#" in out

    @pytest.mark.unit
    def test_backends(self, capsys):
        """The fallback chain is listed in priority order."""
        assert cli.main(["backends"]) == 0
        lines = capsys.readouterr().out.splitlines()
        assert lines[0].startswith("1. mermaid-ink-hires")
        assert lines[-1].startswith("4. quickchart")

    @pytest.mark.unit
    def test_env(self, capsys, monkeypatch):
        """Configuration variables are listed with current values."""
        monkeypatch.setenv("MERMAID_RENDER_TIMEOUT", "12")
        assert cli.main(["env"]) == 0
        assert "MERMAID_RENDER_TIMEOUT=12.0" in capsys.readouterr().out


class TestModuleEntryPoint:
    """Tests for python -m mermaid_render."""

    @pytest.mark.unit
    def test_render_help(self):
        """render --help documents theme options."""
        result = subprocess.run(
            [sys.executable, "-m", "mermaid_render", "render", "--help"],
            capture_output=True,
            text=True,
            cwd=REPO_ROOT,
            timeout=30,
        )
        assert result.returncode == 0
        assert "--preset" in result.stdout
        assert "--no-theme" in result.stdout
