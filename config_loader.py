# config_loader.py
from __future__ import annotations

from pathlib import Path
from typing import Any

try:
    import yaml  # PyYAML
except ImportError as e:
    raise SystemExit(
        "Missing dependency: PyYAML\n"
        "Install with: python -m pip install pyyaml"
    ) from e


class BBCodeConfig:
    """
    Immutable-ish container for BBCode rendering configuration.

    Only presentation details live here (inline styles, labels, parser
    choice). The tag vocabulary itself is fixed in bbcode_vocabulary.
    """

    def __init__(
        self,
        *,
        link_style: str,
        link_target: str,
        link_rel: str,
        image_style: str,
        pdf_label: str,
        pdf_style: str,
        unordered_list_style: str,
        ordered_list_style: str,
        line_break: str,
        html_parser: str,
    ):
        self.link_style = link_style
        self.link_target = link_target
        self.link_rel = link_rel
        self.image_style = image_style
        self.pdf_label = pdf_label
        self.pdf_style = pdf_style
        self.unordered_list_style = unordered_list_style
        self.ordered_list_style = ordered_list_style
        self.line_break = line_break
        self.html_parser = html_parser


# ---------------- Defaults ---------------------------------------------------

DEFAULT_CONFIG = BBCodeConfig(
    link_style="color: #6C5DD3; font-weight: bold; text-decoration: underline;",
    link_target="_blank",
    link_rel="noopener noreferrer",
    image_style="max-width: 100%; border-radius: 8px; margin: 10px 0;",
    pdf_label="[Arquivo PDF Anexado]",
    pdf_style=(
        "padding: 10px; border: 1px solid #ddd; border-radius: 8px; "
        "font-weight: bold; color: #ef4444; margin: 10px 0;"
    ),
    unordered_list_style="list-style-type: disc; padding-left: 1.5rem; margin: 1.25rem 0;",
    ordered_list_style="list-style-type: decimal; padding-left: 1.5rem; margin: 1.25rem 0;",
    line_break="<br />",
    html_parser="html.parser",
)

_STRING_FIELDS = (
    "link_style",
    "link_target",
    "link_rel",
    "image_style",
    "pdf_label",
    "pdf_style",
    "unordered_list_style",
    "ordered_list_style",
    "line_break",
    "html_parser",
)

# ---------------- Loader -----------------------------------------------------


def _as_str(value: Any, name: str) -> str:
    if not isinstance(value, str):
        raise TypeError(f"{name} must be a string")
    return value


def config_from_mapping(raw: dict[str, Any]) -> BBCodeConfig:
    """
    Build a BBCodeConfig from a plain mapping, falling back to defaults
    for every missing key.

    Keys may be given flat or grouped under `encode:` / `decode:`.
    """
    if not isinstance(raw, dict):
        raise TypeError("Config root must be a mapping")

    merged: dict[str, Any] = {}
    for section in ("encode", "decode"):
        group = raw.get(section, {})
        if group is None:
            continue
        if not isinstance(group, dict):
            raise TypeError(f"{section} must be a mapping")
        merged.update(group)
    merged.update({k: v for k, v in raw.items() if k not in ("encode", "decode")})

    unknown = sorted(set(merged) - set(_STRING_FIELDS))
    if unknown:
        raise ValueError(f"Unknown config keys: {', '.join(unknown)}")

    values = {
        name: _as_str(merged.get(name, getattr(DEFAULT_CONFIG, name)), name)
        for name in _STRING_FIELDS
    }
    return BBCodeConfig(**values)


def load_config(path: Path) -> BBCodeConfig:
    """
    Load YAML config and return a BBCodeConfig instance.

    A missing file is not an error: the defaults are returned.
    """
    if not path.exists():
        return DEFAULT_CONFIG

    raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    if raw is None:
        raw = {}
    return config_from_mapping(raw)
