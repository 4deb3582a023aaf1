from __future__ import annotations

import json
from pathlib import Path
from typing import Mapping

from jsonschema import Draft202012Validator

from mulescourt.engine.types import CARD_TYPES, DECK_SIZE, CardCatalog, CardDefinition, CardType


class ContentError(RuntimeError):
    pass


def _load_json(path: Path) -> object:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError as e:
        raise ContentError(f"Missing content file: {path}") from e
    except json.JSONDecodeError as e:
        raise ContentError(f"Invalid JSON in {path}: {e}") from e


def validate_json(instance: object, schema: object, *, context: str) -> None:
    validator = Draft202012Validator(schema)
    errors = sorted(validator.iter_errors(instance), key=lambda e: [str(p) for p in e.path])
    if errors:
        lines = [f"Schema validation failed for {context}:"]
        for err in errors[:10]:
            loc = "/".join(str(p) for p in err.absolute_path)
            lines.append(f"- {loc}: {err.message}")
        raise ContentError("\n".join(lines))


def _require_str(obj: Mapping[str, object], key: str) -> str:
    v = obj.get(key)
    if not isinstance(v, str):
        raise ContentError(f"Expected string for {key}")
    return v


def _require_int(obj: Mapping[str, object], key: str) -> int:
    v = obj.get(key)
    if not isinstance(v, int):
        raise ContentError(f"Expected int for {key}")
    return v


def _parse_definition(item: Mapping[str, object]) -> CardDefinition:
    ctype = _require_str(item, "type")
    if ctype not in CARD_TYPES:
        raise ContentError(f"Unknown card type: {ctype}")
    return CardDefinition(
        type=ctype,  # type: ignore[arg-type]
        value=_require_int(item, "value"),
        count=_require_int(item, "count"),
        name=_require_str(item, "name"),
        ability=_require_str(item, "ability"),
        quote=str(item.get("quote", "")),
        description=str(item.get("description", "")),
    )


def build_catalog(raw: object) -> CardCatalog:
    """Build a catalog from already schema-checked JSON data."""
    if not isinstance(raw, dict):
        raise ContentError("cards.json must be an object")
    raw_cards = raw.get("cards")
    if not isinstance(raw_cards, list):
        raise ContentError("cards.json.cards must be a list")

    definitions: dict[CardType, CardDefinition] = {}
    for item in raw_cards:
        if not isinstance(item, dict):
            continue
        definition = _parse_definition(item)
        if definition.type in definitions:
            raise ContentError(f"Duplicate card type: {definition.type}")
        definitions[definition.type] = definition

    missing = [t for t in CARD_TYPES if t not in definitions]
    if missing:
        raise ContentError(f"Card catalog is missing: {', '.join(missing)}")
    catalog = CardCatalog(definitions=definitions)
    if catalog.total_cards() != DECK_SIZE:
        raise ContentError(f"Card catalog must hold {DECK_SIZE} cards, found {catalog.total_cards()}")
    return catalog


class ContentService:
    def __init__(self, data_dir: Path, schema_dir: Path) -> None:
        self._data_dir = data_dir
        self._schema_dir = schema_dir

    def load_schema(self, name: str) -> object:
        return _load_json(self._schema_dir / name)

    def load_catalog(self) -> CardCatalog:
        cards_path = self._data_dir / "cards.json"
        raw = _load_json(cards_path)
        validate_json(raw, self.load_schema("cards.schema.json"), context=str(cards_path))
        return build_catalog(raw)

    def validate_all(self) -> None:
        # Load is validation (schema + parse)
        _ = self.load_catalog()
        _ = self.load_schema("session.schema.json")


def load_default_catalog() -> CardCatalog:
    from mulescourt.paths import get_paths

    paths = get_paths()
    return ContentService(paths.data_dir, paths.schema_dir).load_catalog()
