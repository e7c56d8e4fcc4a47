"""
Regroupement du roster d'appel : ministère → round → groupe → (classe) → membres.

Transformation pure sur un instantané : aucune écriture, aucun cache.
L'appelant relance le regroupement après chaque mutation.

Règles :
- Chorales (settings.CHOIR_MINISTRIES) : regroupement par pupitre.
- Autres ministères : regroupement par année ("3학년"), puis par classe ("2반").
- Année, classe ou pupitre absent ou invalide → groupe BUCKET_UNKNOWN, trié en dernier.
- Dans chaque groupe feuille, tri par nom du membre.
"""

import unicodedata
from typing import Dict, Iterable, Iterator, List, Optional, Sequence, Tuple

from app.config import settings
from app.schemas.attendance import MinistrySummary, RosterCount, RosterGroup, RosterRecord

BUCKET_UNKNOWN = "기타"
UNKNOWN_MINISTRY = "알 수 없음"
DEFAULT_ROUND = "1"
PRESENT = "present"


def _parse_number(value) -> Optional[int]:
    """Entier positif extrait de value, ou None si absent ou illisible."""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = int(str(value).strip())
    except (TypeError, ValueError):
        return None
    return number if number >= 0 else None


def grade_label(grade) -> str:
    number = _parse_number(grade)
    return f"{number}학년" if number is not None else BUCKET_UNKNOWN


def class_label(class_no) -> str:
    number = _parse_number(class_no)
    return f"{number}반" if number is not None else BUCKET_UNKNOWN


def part_label(part) -> str:
    if part is None or not str(part).strip():
        return BUCKET_UNKNOWN
    return str(part).strip()


def group_sort_key(label: str) -> Tuple[int, int, str]:
    """Numérique croissant d'abord, puis libellés textuels, le groupe inconnu toujours en dernier."""
    if label == BUCKET_UNKNOWN:
        return (2, 0, "")
    digits = ""
    for ch in label:
        if not ch.isdigit():
            break
        digits += ch
    if digits:
        return (0, int(digits), label)
    return (1, 0, label)


def name_sort_key(record: RosterRecord) -> Tuple[str, int]:
    """
    Clé de tri par nom : ordre des points de code après NFC + casefold, puis id.

    Les syllabes hangul NFC sont dans l'ordre du dictionnaire coréen, donc un roster
    entièrement en hangul suit cet ordre. Ce n'est pas une collation de locale : dans un
    roster mixte, les noms latins (et les chiffres) passent avant les noms hangul, sans
    tenir compte des accents (« é » après « z »).
    """
    name = unicodedata.normalize("NFC", record.member_name or "").casefold()
    return (name, record.id)


def count_present(records: Iterable[RosterRecord]) -> RosterCount:
    records = list(records)
    return RosterCount(
        present=sum(1 for r in records if r.status == PRESENT),
        total=len(records),
    )


def _is_choir(ministry_name: str, choir_ministries: Sequence[str]) -> bool:
    return ministry_name in choir_ministries


def _build_group(label: str, records: List[RosterRecord], by_class: bool) -> RosterGroup:
    ordered = sorted(records, key=name_sort_key)
    classes: Dict[str, List[RosterRecord]] = {}
    if by_class:
        buckets: Dict[str, List[RosterRecord]] = {}
        for record in ordered:
            buckets.setdefault(class_label(record.class_no), []).append(record)
        classes = {key: buckets[key] for key in sorted(buckets, key=group_sort_key)}

    counts = count_present(ordered)
    return RosterGroup(
        label=label,
        present=counts.present,
        total=counts.total,
        records=ordered,
        classes=classes,
    )


def group_roster(
    records: Iterable[RosterRecord],
    choir_ministries: Optional[Sequence[str]] = None,
) -> Dict[str, Dict[str, Dict[str, RosterGroup]]]:
    """
    Regroupe une liste plate de lignes d'appel.

    Les ministères gardent l'ordre de première apparition, les rounds sont triés
    numériquement, les groupes par group_sort_key.
    """
    if choir_ministries is None:
        choir_ministries = settings.CHOIR_MINISTRIES

    raw: Dict[str, Dict[str, Dict[str, List[RosterRecord]]]] = {}
    for record in records:
        ministry_name = record.ministry_name or UNKNOWN_MINISTRY
        round_label = (record.round or "").strip() or DEFAULT_ROUND

        if _is_choir(ministry_name, choir_ministries):
            key = part_label(record.part)
        else:
            key = grade_label(record.grade)

        raw.setdefault(ministry_name, {}).setdefault(round_label, {}).setdefault(key, []).append(record)

    grouped: Dict[str, Dict[str, Dict[str, RosterGroup]]] = {}
    for ministry_name, rounds in raw.items():
        by_class = not _is_choir(ministry_name, choir_ministries)
        grouped[ministry_name] = {}
        for round_label in sorted(rounds, key=group_sort_key):
            groups = rounds[round_label]
            grouped[ministry_name][round_label] = {
                key: _build_group(key, groups[key], by_class)
                for key in sorted(groups, key=group_sort_key)
            }
    return grouped


def iter_leaves(
    grouped: Dict[str, Dict[str, Dict[str, RosterGroup]]],
) -> Iterator[Tuple[str, str, str, Optional[str], List[RosterRecord]]]:
    """Parcourt les groupes feuilles : (ministère, round, groupe, classe ou None, lignes)."""
    for ministry_name, rounds in grouped.items():
        for round_label, groups in rounds.items():
            for key, group in groups.items():
                if group.classes:
                    for class_key, records in group.classes.items():
                        yield ministry_name, round_label, key, class_key, records
                else:
                    yield ministry_name, round_label, key, None, group.records


def summarize_roster(
    grouped: Dict[str, Dict[str, Dict[str, RosterGroup]]],
) -> Dict[str, MinistrySummary]:
    """Compteurs de présence par ministère et par round, recalculés depuis les groupes."""
    summary: Dict[str, MinistrySummary] = {}
    for ministry_name, rounds in grouped.items():
        round_counts: Dict[str, RosterCount] = {}
        for round_label, groups in rounds.items():
            round_counts[round_label] = count_present(
                record for group in groups.values() for record in group.records
            )
        summary[ministry_name] = MinistrySummary(
            present=sum(c.present for c in round_counts.values()),
            total=sum(c.total for c in round_counts.values()),
            rounds=round_counts,
        )
    return summary
