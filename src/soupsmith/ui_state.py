from __future__ import annotations

from dataclasses import asdict, dataclass
import json
from pathlib import Path
import tempfile

from .models import OUTPUT_FORMATS, SCRAPING_MODES, OutputFormat, ScrapingMode

CONFIG_DIR = Path.home() / ".soupsmith"
CONFIG_PATH = CONFIG_DIR / "config.json"


@dataclass(slots=True)
class WorkspaceState:
    html_file: str = ""
    url: str = ""
    scraping_mode: ScrapingMode = "structured"
    output_format: OutputFormat = "csv"


@dataclass(frozen=True, slots=True)
class WizardButtonState:
    can_test_container: bool
    can_edit_fields: bool
    can_test_fields: bool
    can_generate: bool


def load_workspace_state(config_path: Path | None = None) -> WorkspaceState | None:
    path = config_path or CONFIG_PATH
    if not path.exists() or not path.is_file():
        return None

    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError, TypeError):
        return None

    if not isinstance(payload, dict):
        return None

    mode = str(payload.get("scraping_mode", "") or "")
    output_format = str(payload.get("output_format", "") or "")
    return WorkspaceState(
        html_file=str(payload.get("html_file", "") or ""),
        url=str(payload.get("url", "") or ""),
        scraping_mode=mode if mode in SCRAPING_MODES else "structured",
        output_format=output_format if output_format in OUTPUT_FORMATS else "csv",
    )


def save_workspace_state(state: WorkspaceState, config_path: Path | None = None) -> tuple[bool, str | None]:
    path = config_path or CONFIG_PATH

    try:
        path.parent.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        return False, f"Could not create config folder: {exc}"

    payload = json.dumps(asdict(state), ensure_ascii=True, indent=2, sort_keys=True)
    temp_path: Path | None = None
    try:
        with tempfile.NamedTemporaryFile(
            mode="w",
            encoding="utf-8",
            dir=str(path.parent),
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
        ) as handle:
            temp_path = Path(handle.name)
            handle.write(payload)
            handle.flush()
        temp_path.replace(path)
    except OSError as exc:
        if temp_path and temp_path.exists():
            temp_path.unlink(missing_ok=True)
        return False, f"Could not write workspace state: {exc}"

    return True, None


def compute_wizard_button_state(
    *,
    has_document: bool,
    mode: ScrapingMode,
    container_ready: bool,
    generation_ok: bool,
) -> WizardButtonState:
    structured = mode == "structured"
    can_edit_fields = has_document and (container_ready or not structured)
    return WizardButtonState(
        can_test_container=has_document and structured,
        can_edit_fields=can_edit_fields,
        can_test_fields=can_edit_fields,
        can_generate=generation_ok,
    )
