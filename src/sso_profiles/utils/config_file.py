"""Reading and writing the AWS CLI config file."""

from __future__ import annotations

import configparser
import io
import os
import shutil
from pathlib import Path

from sso_profiles.utils.errors import FileAccessError, StructuralError


def resolve_config_path() -> Path:
    """Location of the AWS config file: $AWS_CONFIG_FILE or ~/.aws/config."""
    override = os.environ.get("AWS_CONFIG_FILE", "").strip()
    if override:
        return Path(override).expanduser()
    return Path.home() / ".aws" / "config"


def new_config_document() -> configparser.ConfigParser:
    """An empty document that keeps key case, `%` characters and bare keys."""
    parser = configparser.ConfigParser(interpolation=None, allow_no_value=True)
    parser.optionxform = str  # type: ignore[assignment,method-assign]
    return parser


def load_config_document(path: Path) -> configparser.ConfigParser:
    """Parse the config file at path. A missing file gives an empty document."""
    parser = new_config_document()
    if not path.exists():
        return parser

    try:
        with open(path, encoding="utf-8") as f:
            parser.read_file(f, source=str(path))
    except configparser.Error as e:
        raise StructuralError(f"Cannot parse {path}: {e}") from e
    except OSError as e:
        raise FileAccessError(f"Cannot read {path}: {e}") from e
    return parser


def render_config_document(parser: configparser.ConfigParser) -> str:
    buf = io.StringIO()
    parser.write(buf)
    return buf.getvalue()


def write_config_document(parser: configparser.ConfigParser, path: Path) -> None:
    """Write the document to path, creating the parent directory if needed.

    The text is written to a temporary file beside path, which then replaces
    path in one step and keeps its permission bits.
    """
    text = render_config_document(parser)
    tmp_path = path.with_name(f".{path.name}.tmp")
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(tmp_path, "w", encoding="utf-8") as f:
            f.write(text)
        if path.exists():
            shutil.copymode(path, tmp_path)
        os.replace(tmp_path, path)
    except OSError as e:
        tmp_path.unlink(missing_ok=True)
        raise FileAccessError(f"Cannot write {path}: {e}") from e
