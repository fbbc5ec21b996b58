"""
Static liturgical data: fixed feasts, per-year moveable feasts and fasts.

The built-in table covers Pascha through 2030 and the moveable feasts and
Great Lent through 2028. Later years are added with load_table() from a JSON
file, without touching this module.
"""

import dataclasses
import json
import logging
from dataclasses import dataclass
from dataclasses import field
from datetime import date
from pathlib import Path

from liturgical_time.models import LiturgicalTimeError

logger = logging.getLogger(__name__)

TABLE_VERSION = "2024.1"

MOVEABLE_KEYS = ("pascha", "palm_sunday", "ascension", "pentecost", "all_saints")


@dataclass(frozen=True)
class FixedFeast:
    """A feast celebrated on the same month/day every year."""

    name: str
    name_en: str
    month_day: str  # MM-dd
    level: str
    liturgy_required: bool = True
    fasting: str | None = None


@dataclass(frozen=True)
class MoveableFeasts:
    """Paschal-cycle anchor dates for one year (ISO strings)."""

    pascha: str
    palm_sunday: str
    ascension: str
    pentecost: str
    all_saints: str


GREAT_FEASTS = (
    FixedFeast("Botezul Domnului", "Theophany", "01-06", "great"),
    FixedFeast("Întâmpinarea Domnului", "Meeting of the Lord", "02-02", "great"),
    FixedFeast("Buna Vestire", "Annunciation", "03-25", "great"),
    FixedFeast("Schimbarea la Față", "Transfiguration", "08-06", "great"),
    FixedFeast("Adormirea Maicii Domnului", "Dormition of the Theotokos", "08-15", "great"),
    FixedFeast("Nașterea Maicii Domnului", "Nativity of the Theotokos", "09-08", "great"),
    FixedFeast(
        "Înălțarea Sfintei Cruci",
        "Elevation of the Holy Cross",
        "09-14",
        "great",
        fasting="strict",
    ),
    FixedFeast(
        "Intrarea în Biserică a Maicii Domnului",
        "Entry of the Theotokos into the Temple",
        "11-21",
        "great",
    ),
    FixedFeast("Nașterea Domnului", "Nativity of Christ", "12-25", "great"),
)

MAJOR_FEASTS = (
    FixedFeast("Sfântul Vasile cel Mare", "Saint Basil the Great", "01-01", "major"),
    FixedFeast(
        "Soborul Sfântului Ioan Botezătorul", "Synaxis of Saint John the Baptist", "01-07", "major"
    ),
    FixedFeast("Sfinții Trei Ierarhi", "Three Holy Hierarchs", "01-30", "major"),
    FixedFeast("Sfântul Mare Mucenic Gheorghe", "Saint George", "04-23", "major"),
    FixedFeast(
        "Sfinții Împărați Constantin și Elena", "Saints Constantine and Helen", "05-21", "major"
    ),
    FixedFeast(
        "Nașterea Sfântului Ioan Botezătorul", "Nativity of Saint John the Baptist", "06-24", "major"
    ),
    FixedFeast("Sfinții Apostoli Petru și Pavel", "Saints Peter and Paul", "06-29", "major"),
    FixedFeast(
        "Tăierea capului Sfântului Ioan Botezătorul",
        "Beheading of Saint John the Baptist",
        "08-29",
        "major",
        fasting="strict",
    ),
    FixedFeast("Sfânta Cuvioasă Parascheva", "Saint Paraskeva", "10-14", "major"),
    FixedFeast("Sfântul Mare Mucenic Dimitrie", "Saint Demetrius", "10-26", "major"),
    FixedFeast(
        "Soborul Sfinților Arhangheli Mihail și Gavriil",
        "Synaxis of the Archangels Michael and Gabriel",
        "11-08",
        "major",
    ),
    FixedFeast("Sfântul Apostol Andrei", "Saint Andrew the Apostle", "11-30", "major"),
    FixedFeast("Sfântul Ierarh Nicolae", "Saint Nicholas", "12-06", "major"),
)

MOVEABLE_FEAST_NAMES = {
    "pascha": ("Sfintele Paști", "Pascha (Easter)", "great"),
    "palm_sunday": ("Floriile", "Palm Sunday", "great"),
    "ascension": ("Înălțarea Domnului", "Ascension", "great"),
    "pentecost": ("Rusaliile", "Pentecost", "great"),
    "all_saints": ("Duminica Tuturor Sfinților", "All Saints Sunday", "major"),
}

PASCHA_DATES = {
    2020: "2020-04-19",
    2021: "2021-05-02",
    2022: "2022-04-24",
    2023: "2023-04-16",
    2024: "2024-05-05",
    2025: "2025-04-20",
    2026: "2026-04-12",
    2027: "2027-05-02",
    2028: "2028-04-16",
    2029: "2029-04-08",
    2030: "2030-04-28",
}

MOVEABLE_FEASTS = {
    2024: MoveableFeasts("2024-05-05", "2024-04-28", "2024-06-13", "2024-06-23", "2024-06-30"),
    2025: MoveableFeasts("2025-04-20", "2025-04-13", "2025-05-29", "2025-06-08", "2025-06-15"),
    2026: MoveableFeasts("2026-04-12", "2026-04-05", "2026-05-21", "2026-05-31", "2026-06-07"),
    2027: MoveableFeasts("2027-05-02", "2027-04-25", "2027-06-10", "2027-06-20", "2027-06-27"),
    2028: MoveableFeasts("2028-04-16", "2028-04-09", "2028-05-25", "2028-06-04", "2028-06-11"),
}

# Clean Monday through Holy Saturday, inclusive.
GREAT_LENT = {
    2024: ("2024-03-18", "2024-05-04"),
    2025: ("2025-03-03", "2025-04-19"),
    2026: ("2026-02-23", "2026-04-11"),
    2027: ("2027-03-15", "2027-05-01"),
    2028: ("2028-02-28", "2028-04-15"),
}


@dataclass(frozen=True)
class LiturgicalDataTable:
    """Versioned liturgical data, keyed by year where it varies."""

    version: str = TABLE_VERSION
    great_feasts: tuple[FixedFeast, ...] = GREAT_FEASTS
    major_feasts: tuple[FixedFeast, ...] = MAJOR_FEASTS
    moveable_feasts: dict[int, MoveableFeasts] = field(default_factory=lambda: dict(MOVEABLE_FEASTS))
    great_lent: dict[int, tuple[str, str]] = field(default_factory=lambda: dict(GREAT_LENT))
    pascha: dict[int, str] = field(default_factory=lambda: dict(PASCHA_DATES))
    dormition_fast: tuple[str, str] = ("08-01", "08-14")
    nativity_fast: tuple[str, str] = ("11-15", "12-24")
    strict_fast_days: tuple[str, ...] = ("09-14",)

    def pascha_for(self, year: int) -> date | None:
        """Return Pascha for the year, or None when the year is not in the table."""
        iso = self.pascha.get(year)
        return date.fromisoformat(iso) if iso else None

    def moveable_for(self, year: int) -> MoveableFeasts | None:
        return self.moveable_feasts.get(year)

    def great_lent_for(self, year: int) -> tuple[str, str] | None:
        return self.great_lent.get(year)

    @property
    def years(self) -> list[int]:
        """Years with a known Pascha date."""
        return sorted(self.pascha)


DEFAULT_TABLE = LiturgicalDataTable()


def _parse_feasts(entries: list[dict], level: str) -> tuple[FixedFeast, ...]:
    return tuple(
        FixedFeast(
            name=entry["name"],
            name_en=entry.get("nameEn", entry["name"]),
            month_day=entry["date"],
            level=entry.get("level", level),
            liturgy_required=entry.get("liturgyRequired", True),
            fasting=entry.get("fasting"),
        )
        for entry in entries
    )


def load_table(path: Path, base: LiturgicalDataTable = DEFAULT_TABLE) -> LiturgicalDataTable:
    """
    Load a JSON data file and merge it over ``base``.

    Per-year sections (``pascha``, ``moveableFeasts``, ``greatLent``) are
    merged year by year; feast lists replace the base lists when present.

    Example::

        {
          "version": "2031.1",
          "pascha": {"2031": "2031-04-13"},
          "moveableFeasts": {"2031": {"pascha": "2031-04-13", ...}},
          "greatLent": {"2031": ["2031-02-24", "2031-04-12"]}
        }
    """
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise LiturgicalTimeError(f"Cannot read liturgical data table {path}: {e}") from e

    try:
        pascha = dict(base.pascha)
        pascha.update({int(year): iso for year, iso in raw.get("pascha", {}).items()})

        moveable = dict(base.moveable_feasts)
        for year, anchors in raw.get("moveableFeasts", {}).items():
            moveable[int(year)] = MoveableFeasts(**{key: anchors[key] for key in MOVEABLE_KEYS})

        lent = dict(base.great_lent)
        lent.update({int(year): (span[0], span[1]) for year, span in raw.get("greatLent", {}).items()})

        changes = {
            "version": raw.get("version", base.version),
            "pascha": pascha,
            "moveable_feasts": moveable,
            "great_lent": lent,
        }
        if "greatFeasts" in raw:
            changes["great_feasts"] = _parse_feasts(raw["greatFeasts"], "great")
        if "majorFeasts" in raw:
            changes["major_feasts"] = _parse_feasts(raw["majorFeasts"], "major")
    except (KeyError, IndexError, TypeError, ValueError) as e:
        raise LiturgicalTimeError(f"Malformed liturgical data table {path}: {e}") from e

    table = dataclasses.replace(base, **changes)
    logger.debug(f"Loaded liturgical data table {table.version} from {path}")
    return table
