# ABOUTME: User settings: category preferences, field-source defaults, and saved mappings.
# ABOUTME: Loaded from and saved to a single JSON file at the application boundary.

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from bookbridge.core.categories import DEFAULT_ALIASES, CategorySettings, SplitPolicy

logger = logging.getLogger(__name__)

DEFAULT_SETTINGS_PATH = Path.home() / ".bookbridge" / "settings.json"


@dataclass
class Settings:
    """Everything bookbridge remembers between runs.

    field_defaults maps a semantic field value to a candidate source tag
    ("original", "audiobook", "edition:2", ...). saved_mappings maps a
    database id to a {field value: property name} mapping.
    """

    categories: CategorySettings = field(default_factory=CategorySettings)
    field_defaults: dict[str, str] = field(default_factory=dict)
    prefer_earlier_audiobook_date: bool = True
    use_cover_as_icon: bool = False
    saved_mappings: dict[str, dict[str, str]] = field(default_factory=dict)


def settings_to_dict(settings: Settings) -> dict[str, Any]:
    policy = settings.categories.split_policy
    return {
        "categories": {
            "ignored": sorted(settings.categories.ignored),
            "aliases": dict(settings.categories.aliases),
            "split": {
                "commas": policy.commas,
                "ampersands": policy.ampersands,
                "slashes": policy.slashes,
                "conjunctions": policy.conjunctions,
            },
        },
        "field_defaults": dict(settings.field_defaults),
        "prefer_earlier_audiobook_date": settings.prefer_earlier_audiobook_date,
        "use_cover_as_icon": settings.use_cover_as_icon,
        "saved_mappings": {db: dict(m) for db, m in settings.saved_mappings.items()},
    }


def settings_from_dict(data: dict[str, Any]) -> Settings:
    """Build Settings from a parsed JSON document, filling gaps with defaults."""
    categories = data.get("categories") or {}
    split = categories.get("split") or {}
    aliases = categories.get("aliases")
    category_settings = CategorySettings(
        ignored={str(name).casefold() for name in categories.get("ignored", [])},
        aliases=(
            {str(k).casefold(): str(v) for k, v in aliases.items()}
            if isinstance(aliases, dict)
            else dict(DEFAULT_ALIASES)
        ),
        split_policy=SplitPolicy(
            commas=bool(split.get("commas", True)),
            ampersands=bool(split.get("ampersands", True)),
            slashes=bool(split.get("slashes", True)),
            conjunctions=bool(split.get("conjunctions", True)),
        ),
    )
    return Settings(
        categories=category_settings,
        field_defaults={str(k): str(v) for k, v in (data.get("field_defaults") or {}).items()},
        prefer_earlier_audiobook_date=bool(data.get("prefer_earlier_audiobook_date", True)),
        use_cover_as_icon=bool(data.get("use_cover_as_icon", False)),
        saved_mappings={
            str(db): {str(k): str(v) for k, v in mapping.items()}
            for db, mapping in (data.get("saved_mappings") or {}).items()
        },
    )


class SettingsStore:
    """Reads and writes Settings as JSON.

    A missing file yields defaults (including the default category aliases).
    A malformed file is logged and also yields defaults, so a bad edit never
    locks the user out; the next save overwrites it.
    """

    def __init__(self, path: Path | None = None) -> None:
        self.path = path or DEFAULT_SETTINGS_PATH

    def load(self) -> Settings:
        if not self.path.exists():
            return Settings()
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning("Could not read settings from %s: %s", self.path, exc)
            return Settings()
        if not isinstance(data, dict):
            logger.warning("Settings file %s is not a JSON object; using defaults", self.path)
            return Settings()
        return settings_from_dict(data)

    def save(self, settings: Settings) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = json.dumps(settings_to_dict(settings), indent=2, sort_keys=True)
        self.path.write_text(payload + "\n", encoding="utf-8")
        logger.debug("Saved settings to %s", self.path)
