"""Loading and validation of YAML device-family command tables."""

from __future__ import annotations

import json
import logging
import os
import re
from dataclasses import dataclass
from importlib import resources
from importlib.resources.abc import Traversable
from pathlib import Path
from typing import Any

import yaml
from jsonschema import ValidationError, validators

from iqosctl.core.errors import FamilyLoadError, FamilyValidationError
from iqosctl.core.model import Family, FamilyKind, MatchRules, TransportSpec

_HEX_RE = re.compile(r"^[0-9a-f]+$")
_MAX_FRAME_BYTES = 512
LOGGER = logging.getLogger(__name__)


class UniqueKeyLoader(yaml.SafeLoader):
    """YAML loader that rejects duplicate mapping keys and keeps yes/no/on/off as text."""


UniqueKeyLoader.yaml_implicit_resolvers = {
    first_char: [(tag, regexp) for tag, regexp in mappings if tag != "tag:yaml.org,2002:bool"]
    for first_char, mappings in yaml.SafeLoader.yaml_implicit_resolvers.items()
}


def _construct_mapping(loader: UniqueKeyLoader, node: yaml.Node, deep: bool = False) -> dict[str, Any]:
    mapping: dict[str, Any] = {}
    for key_node, value_node in node.value:
        key = loader.construct_object(key_node, deep=deep)
        if key in mapping:
            raise FamilyValidationError(f"Duplicate key '{key}' in YAML document")
        mapping[key] = loader.construct_object(value_node, deep=deep)
    return mapping


UniqueKeyLoader.add_constructor(
    yaml.resolver.BaseResolver.DEFAULT_MAPPING_TAG,
    _construct_mapping,
)


@dataclass(frozen=True)
class LoadedFamilies:
    families: dict[str, Family]
    warnings: tuple[str, ...]


def _load_schema_validator() -> Any:
    schema_text = resources.files("iqosctl.schemas").joinpath("family.schema.json").read_text(
        encoding="utf-8"
    )
    schema = json.loads(schema_text)
    validator_cls = validators.validator_for(schema)
    validator_cls.check_schema(schema)
    return validator_cls(schema)


def family_dirs() -> tuple[Path, Path]:
    xdg_config = Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config"))
    xdg_data = Path(os.environ.get("XDG_DATA_HOME", Path.home() / ".local/share"))
    return xdg_config / "iqosctl/families", xdg_data / "iqosctl/families"


def _read_yaml(path: Path | Traversable) -> dict[str, Any]:
    try:
        content = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise FamilyLoadError(f"Could not read family file {path}: {exc}") from exc

    try:
        loaded = yaml.load(content, Loader=UniqueKeyLoader)
    except yaml.YAMLError as exc:
        raise FamilyValidationError(f"Invalid YAML in {path}: {exc}") from exc

    if not isinstance(loaded, dict):
        raise FamilyValidationError(f"Family file {path} must contain a mapping at root")
    return loaded


def parse_frame(value: str, *, context: str) -> bytes:
    """Turn ``"00 C0 46"`` style hex text into bytes."""
    normalized = "".join(value.split()).lower()
    if not normalized:
        raise FamilyValidationError(f"{context} must not be empty")
    if len(normalized) % 2 != 0:
        raise FamilyValidationError(f"{context} must have even-length hex")
    if not _HEX_RE.match(normalized):
        raise FamilyValidationError(f"{context} must contain only [0-9a-f]")
    frame = bytes.fromhex(normalized)
    if len(frame) > _MAX_FRAME_BYTES:
        raise FamilyValidationError(f"{context} exceeds max frame size {_MAX_FRAME_BYTES} bytes")
    return frame


def _normalize_bool(value: Any, *, context: str) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered == "true":
            return True
        if lowered == "false":
            return False
    raise FamilyValidationError(f"{context} must be boolean true/false")


def _build_family(doc: dict[str, Any], source: Path | Traversable) -> Family:
    validator = _load_schema_validator()
    try:
        validator.validate(doc)
    except ValidationError as exc:
        path = ".".join(str(p) for p in exc.path)
        where = f" ({path})" if path else ""
        raise FamilyValidationError(f"Schema validation failed for {source}{where}: {exc.message}") from exc

    family_id = doc["id"]
    kind = FamilyKind(doc["kind"])
    commands: dict[str, tuple[bytes, ...]] = {}
    for command_name, frames in doc.get("commands", {}).items():
        commands[command_name] = tuple(
            parse_frame(frame, context=f"{family_id}.{command_name}[{index}]")
            for index, frame in enumerate(frames)
        )

    if kind is FamilyKind.BASE and commands:
        raise FamilyValidationError(
            f"Family '{family_id}' in {source} is kind 'base' and cannot declare commands"
        )

    transport_doc = doc.get("transport", {})
    transport = TransportSpec(
        write_with_response=_normalize_bool(
            transport_doc.get("write_with_response", True),
            context=f"{family_id}.transport.write_with_response",
        ),
        timeout_s=float(transport_doc.get("timeout_s", 10.0)),
    )

    return Family(
        id=family_id,
        name=doc["name"],
        kind=kind,
        match=MatchRules(
            name_contains=tuple(doc["match"].get("name_contains", [])),
            mac_prefix=tuple(p.strip().upper() for p in doc["match"].get("mac_prefix", [])),
        ),
        transport=transport,
        commands=commands,
    )


def _iter_packaged_family_paths() -> list[Traversable]:
    family_root = resources.files("iqosctl.families")
    return [item for item in family_root.iterdir() if item.name.endswith((".yml", ".yaml"))]


def _iter_user_family_paths() -> list[Path]:
    paths: list[Path] = []
    for directory in family_dirs():
        if not directory.is_dir():
            continue
        paths.extend(sorted(p for p in directory.iterdir() if p.suffix in {".yml", ".yaml"}))
    return paths


def load_families() -> LoadedFamilies:
    families: dict[str, Family] = {}
    warnings: list[str] = []

    for path in sorted(_iter_packaged_family_paths(), key=lambda p: p.name):
        family = _build_family(_read_yaml(path), path)
        families[family.id] = family

    for path in _iter_user_family_paths():
        family = _build_family(_read_yaml(path), path)
        if family.id in families:
            warning = f"User family '{family.id}' overrides packaged family"
            LOGGER.warning(warning)
            warnings.append(warning)
        families[family.id] = family

    LOGGER.debug("Loaded %d device families", len(families))
    return LoadedFamilies(families=families, warnings=tuple(warnings))
