from __future__ import annotations

from collections import defaultdict
from typing import Iterable

from lotto_analysis.types import FrequencySummary, NumberFrequency, PositionFrequencyGroup


def group_by_position(records: Iterable[tuple[int, NumberFrequency]]) -> tuple[PositionFrequencyGroup, ...]:
    """
    Agrupa registros (posición, frecuencia) por posición.

    Args:
        records: pares (position, NumberFrequency) tal y como llegan del servidor,
            en cualquier orden.

    Returns:
        tuple: grupos ordenados por posición ascendente; dentro de cada grupo
        las entradas van ordenadas por número.
    """
    grouped: dict[int, list[NumberFrequency]] = defaultdict(list)
    for position, freq in records:
        grouped[position].append(freq)

    return tuple(
        PositionFrequencyGroup(position=pos, entries=tuple(sorted(entries, key=lambda f: f.number)))
        for pos, entries in sorted(grouped.items())
    )


def backfill(frequencies: Iterable[NumberFrequency], numbers: range) -> tuple[NumberFrequency, ...]:
    """
    Completa la tabla con los números del rango que el servidor omitió por no
    haber salido nunca (count=0, percentage=0.0). Los registros recibidos se
    conservan aunque caigan fuera del rango.
    """
    by_number = {f.number: f for f in frequencies}
    for n in numbers:
        if n not in by_number:
            by_number[n] = NumberFrequency(number=n, count=0, percentage=0.0)
    return tuple(by_number[n] for n in sorted(by_number))


def backfill_groups(groups: Iterable[PositionFrequencyGroup], numbers: range) -> tuple[PositionFrequencyGroup, ...]:
    return tuple(
        PositionFrequencyGroup(position=g.position, entries=backfill(g.entries, numbers))
        for g in groups
    )


def summarize(frequencies: Iterable[NumberFrequency]) -> FrequencySummary:
    freqs = list(frequencies)
    if not freqs:
        return FrequencySummary(total_numbers=0, top=None, average_percentage=0.0)

    # En caso de empate gana el número más bajo
    top = max(freqs, key=lambda f: (f.percentage, -f.number))
    average = sum(f.percentage for f in freqs) / len(freqs)
    return FrequencySummary(total_numbers=len(freqs), top=top, average_percentage=average)


def filter_by_number_text(frequencies: Iterable[NumberFrequency], text: str) -> tuple[NumberFrequency, ...]:
    text = text.strip()
    if not text:
        return tuple(frequencies)
    return tuple(f for f in frequencies if text in str(f.number))


def most_frequent(frequencies: Iterable[NumberFrequency], n: int) -> tuple[NumberFrequency, ...]:
    ranked = sorted(frequencies, key=lambda f: (-f.percentage, f.number))
    return tuple(ranked[:n])
