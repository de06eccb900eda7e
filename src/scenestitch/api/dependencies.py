"""Service singletons and dependency injection for the scenestitch API."""

from scenestitch.jobs.orchestrator import JobOrchestrator, build_orchestrator
from scenestitch.services.script_writer import ScriptWriter
from scenestitch.services.voice_catalog import VoiceCatalog
from scenestitch.utils.config import load_config

# Service singletons
_orchestrator: JobOrchestrator | None = None
_voice_catalog: VoiceCatalog | None = None
_script_writer: ScriptWriter | None = None


def get_orchestrator() -> JobOrchestrator:
    """Get or create the job orchestrator instance."""
    global _orchestrator
    if _orchestrator is None:
        _orchestrator = build_orchestrator(load_config())
    return _orchestrator


def set_orchestrator(orchestrator: JobOrchestrator | None) -> None:
    """Replace the orchestrator singleton (used by tests and the CLI)."""
    global _orchestrator
    _orchestrator = orchestrator


def get_voice_catalog() -> VoiceCatalog:
    """Get or create the voice catalog instance."""
    global _voice_catalog
    if _voice_catalog is None:
        _voice_catalog = VoiceCatalog()
    return _voice_catalog


def get_script_writer() -> ScriptWriter:
    """Get or create the script writer instance."""
    global _script_writer
    if _script_writer is None:
        config = load_config()
        _script_writer = ScriptWriter(config.get("gemini_api_key"), model_name=config["gemini_model"])
    return _script_writer


def set_script_writer(writer: ScriptWriter | None) -> None:
    """Replace the script writer singleton (used by tests)."""
    global _script_writer
    _script_writer = writer


async def shutdown_services() -> None:
    """Cancel running jobs and close provider clients."""
    global _orchestrator
    if _orchestrator is not None:
        await _orchestrator.shutdown()
        _orchestrator = None
