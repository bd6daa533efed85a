"""CLI entry point for mermaid-render.

Dispatches the first argument to a command handler, each with its own
argparse parser.
"""

import argparse
import sys
from pathlib import Path

from dotenv import load_dotenv
from pydantic import ValidationError

from mermaid_render.backends import default_backends
from mermaid_render.config import (
    get_environment,
    get_environment_info,
    get_output_dir,
    list_environment_variables,
)
from mermaid_render.core import get_logger, setup_logging
from mermaid_render.errors import ExhaustedError
from mermaid_render.render import RenderOrchestrator, RenderSession, RenderState
from mermaid_render.theme import (
    DEFAULT_PRESET,
    ThemeConfig,
    get_preset,
    list_presets,
)

logger = get_logger("cli")


# =============================================================================
# Render Command
# =============================================================================


def _read_input(source: str) -> str:
    if source == "-":
        return sys.stdin.read()
    return Path(source).read_text(encoding="utf-8")


def _default_output(source: str) -> Path:
    stem = "diagram" if source == "-" else Path(source).stem
    return get_output_dir() / f"{stem}.png"


def _load_theme(args: argparse.Namespace) -> ThemeConfig:
    if args.theme_file:
        return ThemeConfig.model_validate_json(args.theme_file.read_text(encoding="utf-8"))
    return get_preset(args.preset)


def _log_progress(state: RenderState, message: str) -> None:
    if state is RenderState.EXHAUSTED:
        logger.error(message)
    else:
        logger.info(message)


def cmd_render(args: argparse.Namespace) -> int:
    """Handle the render command."""
    try:
        text = _read_input(args.input)
    except OSError as e:
        logger.error(f"Cannot read {args.input}: {e}")
        return 1

    try:
        theme = _load_theme(args)
    except KeyError as e:
        logger.error(e.args[0])
        return 1
    except (OSError, ValidationError) as e:
        logger.error(f"Invalid theme file {args.theme_file}: {e}")
        return 1

    session = RenderSession(theme=theme, use_theme=not args.no_theme)
    try:
        request = session.request(text)
    except ValueError as e:
        logger.error(str(e))
        return 1

    output = args.output or _default_output(args.input)

    with RenderOrchestrator(backends=default_backends(args.timeout)) as orchestrator:
        try:
            image = orchestrator.render(request, progress=_log_progress)
        except ExhaustedError as e:
            logger.error(str(e))
            for attempt in e.attempts:
                logger.debug(f"  {attempt.backend}: {attempt.error}")
            return 1

    try:
        output.parent.mkdir(parents=True, exist_ok=True)
        image.save(output)
    except OSError as e:
        logger.error(f"Cannot write {output}: {e}")
        return 1
    logger.info(f"Diagram saved to {output} ({image.size_bytes} bytes via {image.backend})")
    return 0


def handle_render_command(argv: list[str]) -> int:
    """Handle render-specific arguments."""
    parser = argparse.ArgumentParser(
        prog="mermaid-render render",
        description="Render a Mermaid diagram to PNG",
    )
    parser.add_argument(
        "input",
        type=str,
        help="Mermaid source file ('-' reads stdin)",
    )
    parser.add_argument(
        "--output",
        "-o",
        type=Path,
        default=None,
        help="Output PNG path (default: <output dir>/<input name>.png)",
    )
    theme_group = parser.add_mutually_exclusive_group()
    theme_group.add_argument(
        "--preset",
        "-p",
        type=str,
        default=DEFAULT_PRESET,
        help=f"Built-in color preset (default: {DEFAULT_PRESET})",
    )
    theme_group.add_argument(
        "--theme-file",
        type=Path,
        default=None,
        help="JSON file with ThemeConfig colors",
    )
    theme_group.add_argument(
        "--no-theme",
        action="store_true",
        help="Render without a theme block",
    )
    parser.add_argument(
        "--timeout",
        "-t",
        type=float,
        default=None,
        help="Per-service timeout in seconds (default: MERMAID_RENDER_TIMEOUT)",
    )

    args = parser.parse_args(argv)
    try:
        return cmd_render(args)
    except ValueError as e:
        logger.error(str(e))
        return 1


# =============================================================================
# Listing Commands
# =============================================================================


def cmd_presets(_argv: list[str]) -> int:
    """List built-in color presets."""
    for name in list_presets():
        marker = " (default)" if name == DEFAULT_PRESET else ""
        print(f"{name}{marker}")
        for role, color in get_preset(name).colors().items():
            print(f"  {role:<15} {color.hex}")
    return 0


def cmd_backends(_argv: list[str]) -> int:
    """List the rendering fallback chain."""
    backends = default_backends()
    try:
        for backend in backends:
            print(f"{backend.priority}. {backend.name:<18} {backend.description}")
    finally:
        for backend in backends:
            backend.close()
    return 0


def cmd_env(_argv: list[str]) -> int:
    """List configuration variables and their current values."""
    for var in list_environment_variables():
        info = get_environment_info(var)
        value = get_environment(var)
        print(f"{info.name}={value if value is not None else ''}")
        if info.description:
            print(f"    [{info.category}] {info.description} (default: {info.default})")
    return 0


# =============================================================================
# Main
# =============================================================================


def show_help() -> None:
    """Display CLI help message."""
    print("Usage: mermaid-render {command} [args]")
    print("\nCommands:")
    print("  render     Render a Mermaid diagram to PNG")
    print("  presets    List built-in color presets")
    print("  backends   List rendering services in fallback order")
    print("  env        Show configuration variables")
    print("\nExamples:")
    print("  mermaid-render render flow.mmd")
    print("  mermaid-render render flow.mmd -o out.png --preset Vibrant")
    print("  cat flow.mmd | mermaid-render render - --no-theme")
    print("  mermaid-render render flow.mmd --theme-file brand.json")


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the CLI."""
    load_dotenv()

    argv = sys.argv[1:] if argv is None else argv
    if not argv:
        show_help()
        return 1

    command, rest_args = argv[0], argv[1:]

    if command in ("-h", "--help"):
        show_help()
        return 0

    commands = {
        "render": lambda: handle_render_command(rest_args),
        "presets": lambda: cmd_presets(rest_args),
        "backends": lambda: cmd_backends(rest_args),
        "env": lambda: cmd_env(rest_args),
    }

    if command in commands:
        setup_logging()
        return commands[command]()

    logger.error(f"Unknown command: {command}")
    show_help()
    return 1


if __name__ == "__main__":
    sys.exit(main())
