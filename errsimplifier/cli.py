"""CLI entrypoints for errsimplifier commands."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from .config import AVAILABLE_MODELS
from .logging import configure_logging, get_logger
from .orchestrator import Orchestrator
from .presenter import ConsolePresenter
from .watch import FileWatcher


def _add_verbose_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    kwargs: dict[str, object] = {
        "action": "store_true",
        "help": "Increase log verbosity for troubleshooting.",
    }
    if suppress_default:
        kwargs["default"] = argparse.SUPPRESS
    else:
        kwargs["default"] = False
    parser.add_argument(
        "-v",
        "--verbose",
        **kwargs,
    )


def _add_non_interactive_option(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--non-interactive",
        action="store_true",
        help="Never prompt; print explanations immediately.",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="errsimplifier",
        description="Compile and run a source file, explaining failures in plain language.",
    )
    _add_verbose_option(parser)
    parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Also write debug logs to this file.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    run_parser = subparsers.add_parser(
        "run",
        help="Compile and run a source file with error analysis.",
    )
    _add_verbose_option(run_parser, suppress_default=True)
    _add_non_interactive_option(run_parser)
    run_parser.add_argument("path", help="Source file to compile and run.")

    watch_parser = subparsers.add_parser(
        "watch",
        help="Re-run the file with error analysis every time it is saved.",
    )
    _add_verbose_option(watch_parser, suppress_default=True)
    _add_non_interactive_option(watch_parser)
    watch_parser.add_argument("path", help="Source file to watch.")
    watch_parser.add_argument(
        "--interval",
        type=float,
        default=1.0,
        help="Polling interval in seconds (default: 1.0).",
    )

    key_parser = subparsers.add_parser("set-key", help="Store the API key securely.")
    _add_verbose_option(key_parser, suppress_default=True)

    model_parser = subparsers.add_parser(
        "set-model",
        help="Select the AI model used for explanations.",
    )
    _add_verbose_option(model_parser, suppress_default=True)
    model_parser.add_argument(
        "model",
        nargs="?",
        default=None,
        help="Model identifier; omit to choose from the curated list.",
    )
    model_parser.add_argument(
        "--path",
        default=".",
        help="Directory whose .errsimplifier.yml should be updated.",
    )

    check_parser = subparsers.add_parser("check", help="Verify the compiler is installed.")
    _add_verbose_option(check_parser, suppress_default=True)

    serve_parser = subparsers.add_parser("serve", help="Run the HTTP service for editor plugins.")
    _add_verbose_option(serve_parser, suppress_default=True)
    serve_parser.add_argument("--host", default="127.0.0.1")
    serve_parser.add_argument("--port", type=int, default=8000)

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for errsimplifier commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(verbose=bool(args.verbose), log_file=args.log_file)
    logger = get_logger("cli")

    orchestrator = Orchestrator()
    try:
        presenter = _build_presenter(args, orchestrator)
    except RuntimeError as exc:
        parser.exit(1, f"{exc}\n")

    if args.command == "run":
        if not orchestrator.check_toolchain(
            presenter, root=Path(args.path).parent, announce=False
        ):
            parser.exit(1)
        try:
            outcome = orchestrator.run_file(args.path, presenter)
        except RuntimeError as exc:
            parser.exit(1, f"errsimplifier run failed: {exc}\nRun with --verbose for more details.\n")
        if outcome is None or not outcome.succeeded:
            parser.exit(1)
    elif args.command == "watch":
        target = Path(args.path).expanduser().resolve()
        if not target.is_file():
            parser.exit(1, f"{target} does not exist\n")

        def _on_save(path: Path) -> None:
            try:
                orchestrator.run_file(path, presenter)
            except RuntimeError as exc:
                logger.error("Run failed: %s", exc)

        watcher = FileWatcher(target, _on_save, interval=args.interval)
        print(f"Watching {_relativize(target)} (Ctrl+C to stop)")
        try:
            watcher.run()
        except KeyboardInterrupt:
            print("Stopped watching")
    elif args.command == "set-key":
        api_key = presenter.prompt_input("Enter your Together.ai API key", secret=True)
        if not api_key:
            parser.exit(1, "No API key entered\n")
        try:
            orchestrator.set_api_key(api_key)
        except (ValueError, RuntimeError) as exc:
            parser.exit(1, f"{exc}\n")
        print("API key saved securely!")
    elif args.command == "set-model":
        model = args.model or _choose_model(presenter)
        if not model:
            parser.exit(1, "No model selected\n")
        try:
            config_file = orchestrator.set_model(model, root=args.path)
        except RuntimeError as exc:
            parser.exit(1, f"{exc}\n")
        print(f"Model set to: {model} ({_relativize(config_file)})")
    elif args.command == "check":
        if not orchestrator.check_toolchain(presenter):
            parser.exit(1)
    elif args.command == "serve":
        from .service import run_service

        try:
            run_service(host=args.host, port=args.port)
        except RuntimeError as exc:
            parser.exit(1, f"{exc}\n")
    else:  # pragma: no cover - argparse enforces choices
        parser.exit(1, "Unknown command\n")


def _build_presenter(args: argparse.Namespace, orchestrator: Orchestrator) -> ConsolePresenter:
    """Create the console presenter labelled with the configured language."""
    if args.command in ("run", "watch"):
        root = Path(args.path).expanduser().resolve().parent
    else:
        root = Path(getattr(args, "path", "."))
    config = orchestrator.load_config(root)
    return ConsolePresenter(
        interactive=not bool(getattr(args, "non_interactive", False)),
        language=config.toolchain.language,
    )


def _choose_model(presenter: ConsolePresenter) -> str | None:
    for index, model in enumerate(AVAILABLE_MODELS, start=1):
        presenter.show_info(f"  [{index}] {model}")
    answer = presenter.prompt_input("Select AI model for error explanations")
    if answer and answer.isdigit() and 1 <= int(answer) <= len(AVAILABLE_MODELS):
        return AVAILABLE_MODELS[int(answer) - 1]
    return answer


def _relativize(path: Path) -> str:
    try:
        return str(path.relative_to(Path.cwd()))
    except ValueError:
        return str(path)


if __name__ == "__main__":
    main(sys.argv[1:])
