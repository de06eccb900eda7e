"""Command-line entry point for scenestitch."""

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.table import Table
from rich.text import Text
from tqdm import tqdm

from scenestitch.jobs.orchestrator import JobOrchestrator, build_orchestrator
from scenestitch.models.job import BrandingOptions, JobState, JobStatus, VoiceSelection
from scenestitch.services.script_writer import ScriptGenerationError, ScriptWriter
from scenestitch.services.voice_catalog import VoiceCatalog
from scenestitch.utils.config import load_config, validate_config
from scenestitch.utils.logging import setup_logging
from scenestitch.utils.retry import RetryableError

logger = logging.getLogger(__name__)

POLL_INTERVAL = 0.5

console = Console()
err_console = Console(stderr=True)


class ProgressBarCallback:
    """Mirrors a job's percent and status message onto a tqdm bar."""

    def __init__(self):
        self.bar: Optional[tqdm] = None

    def __call__(self, status: JobStatus):
        if self.bar is None:
            self.bar = tqdm(
                total=100,
                desc="Rendering",
                unit="%",
                bar_format="{l_bar}{bar}| {n}/{total}% [{elapsed}]",
            )
        self.bar.n = status.percent
        self.bar.set_postfix_str(status.message)
        self.bar.refresh()

    def close(self):
        if self.bar:
            self.bar.close()
            self.bar = None


async def run_job(
    orchestrator: JobOrchestrator,
    script: str,
    voice: VoiceSelection,
    branding: BrandingOptions,
    title: str = "",
    on_update=None,
) -> JobStatus:
    """Start a job and poll it to completion, reporting each snapshot."""
    job_id = await orchestrator.create_job(script, voice, branding, title)
    try:
        while True:
            status = orchestrator.get_job_status(job_id)
            if on_update:
                on_update(status)
            if status.state.is_terminal:
                return status
            await orchestrator.wait_for_job(job_id, timeout=POLL_INTERVAL)
    finally:
        await orchestrator.shutdown()


def cmd_generate(args: argparse.Namespace) -> int:
    config = load_config()
    errors = validate_config(config)
    if errors:
        for error in errors:
            err_console.print(f"[red]Config error: {error}[/red]")
        return 2

    script = Path(args.script_file).read_text(encoding="utf-8")
    orchestrator = build_orchestrator(config)
    progress = ProgressBarCallback()

    try:
        status = asyncio.run(
            run_job(
                orchestrator,
                script,
                VoiceSelection(voice_id=args.voice, provider=args.provider),
                BrandingOptions(paid_user=args.paid, remove_watermark=args.remove_watermark),
                title=args.title,
                on_update=progress,
            )
        )
    finally:
        progress.close()

    if status.state is JobState.DONE:
        console.print(f"[green]Done: {status.result_key}[/green]")
        return 0
    err_console.print(status.message, style="red", markup=False)
    return 1


def cmd_script(args: argparse.Namespace) -> int:
    config = load_config()
    writer = ScriptWriter(config.get("gemini_api_key"), model_name=config["gemini_model"])
    if not writer.is_configured():
        err_console.print("[red]Config error: GEMINI_API_KEY is required for script drafting[/red]")
        return 2

    try:
        draft = writer.write(args.idea)
    except ValueError as e:
        err_console.print(f"[red]{e}[/red]")
        return 2
    except (ScriptGenerationError, RetryableError) as e:
        err_console.print(f"Script generation failed: {e}", style="red", markup=False)
        return 1

    console.print(draft.script, markup=False)
    console.print()
    for label, value in (("Title", draft.title), ("Description", draft.description), ("Tags", draft.tags)):
        console.print(Text.assemble((f"{label}: ", "bold"), value))

    if args.output:
        Path(args.output).write_text(draft.script + "\n", encoding="utf-8")
        console.print(f"[green]Script saved to {args.output}[/green]")
    return 0


def cmd_voices(args: argparse.Namespace) -> int:
    catalog = VoiceCatalog()

    table = Table(title="Voices")
    table.add_column("ID", style="cyan")
    table.add_column("Provider")
    table.add_column("Tier", style="green")
    table.add_column("Name")
    for voice in catalog.voices:
        if args.provider and voice.provider != args.provider:
            continue
        table.add_row(voice.id, voice.provider, voice.tier, voice.name)

    console.print(table)
    return 0


def cmd_serve(args: argparse.Namespace) -> int:
    from scenestitch.api.server import run

    run(host=args.host, port=args.port)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="scenestitch",
        description="Turn a short script into a narrated stock-footage video",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  scenestitch script "secret rooms inside landmarks" -o script.txt
  scenestitch voices --provider polly
  scenestitch generate script.txt --voice Matthew --title "Paris secrets"
  scenestitch serve --port 8000
        """,
    )
    sub = parser.add_subparsers(dest="command", required=True)

    gen = sub.add_parser("generate", help="Render one video from a script file")
    gen.add_argument("script_file", help="Text file, one scene per line")
    gen.add_argument("--voice", required=True, help="Voice id (see 'voices')")
    gen.add_argument("--provider", help="Voice provider (inferred from the voice id if omitted)")
    gen.add_argument("--title", default="", help="Title hint for subject extraction")
    gen.add_argument("--paid", action="store_true", help="Treat the caller as a paid user")
    gen.add_argument(
        "--remove-watermark", action="store_true", help="Drop the outro (and watermark when --paid)"
    )
    gen.set_defaults(func=cmd_generate)

    script = sub.add_parser("script", help="Draft a script from an idea")
    script.add_argument("idea", help="What the video is about")
    script.add_argument("-o", "--output", help="Write the script lines to this file")
    script.set_defaults(func=cmd_script)

    voices = sub.add_parser("voices", help="List available voices")
    voices.add_argument("--provider", choices=["polly", "elevenlabs"])
    voices.set_defaults(func=cmd_voices)

    serve = sub.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host", default="0.0.0.0")
    serve.add_argument("--port", type=int, default=8000)
    serve.set_defaults(func=cmd_serve)

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)

    if args.command != "serve":
        config = load_config()
        setup_logging(config["log_level"], json_output=config["log_json"])

    try:
        return args.func(args)
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130
    except FileNotFoundError as e:
        err_console.print(f"[red]File not found: {e.filename}[/red]")
        return 1


if __name__ == "__main__":
    sys.exit(main())
