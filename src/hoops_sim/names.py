from __future__ import annotations

import random

FIRST_NAMES = [
    "Andre", "Marcus", "Darius", "Jalen", "Tyrese", "Malik", "Devin", "Isaiah", "Jordan", "Caleb",
    "Trey", "Kendrick", "Miles", "Xavier", "Elijah", "Quentin", "Dante", "Luka", "Nikola", "Kofi",
    "Rashad", "Bryce", "Amari", "Cameron", "Derrick", "Tariq", "Omar", "Julian", "Theo", "Mateo",
    "Kai", "Jaylen", "Corey", "Reggie", "Victor", "Shane", "Emeka", "Hugo", "Ivan", "Santiago",
]

LAST_NAMES = [
    "Washington", "Brooks", "Carter", "Henderson", "Mitchell", "Okafor", "Bennett", "Reyes", "Coleman", "Hayes",
    "Porter", "Simmons", "Vaughn", "Whitfield", "Dawson", "Ellison", "Fontaine", "Griffin", "Holloway", "Ingram",
    "Jefferson", "Kingsley", "Lawson", "Monroe", "Nwosu", "Oliver", "Patterson", "Quarles", "Richardson", "Sampson",
    "Thornton", "Underwood", "Valdez", "Wallace", "Young", "Zeller", "Abara", "Bogdan", "Castillo", "Diallo",
]


class NameGenerator:
    """Hands out unique player names from a shuffled first/last pool."""

    def __init__(self, seed: int | None = None) -> None:
        self._rng = random.Random(seed)
        self._used: set[str] = set()
        self._pool = [f"{first} {last}" for first in FIRST_NAMES for last in LAST_NAMES]
        self._rng.shuffle(self._pool)
        self._idx = 0

    def reserve(self, names: list[str]) -> None:
        self._used.update(names)

    def next_name(self) -> str:
        while self._idx < len(self._pool):
            name = self._pool[self._idx]
            self._idx += 1
            if name not in self._used:
                self._used.add(name)
                return name

        # Pool exhausted: add generational suffixes.
        for suffix in ("Jr.", "II", "III", "IV"):
            for base in self._pool:
                candidate = f"{base} {suffix}"
                if candidate not in self._used:
                    self._used.add(candidate)
                    return candidate
        raise RuntimeError("Name pool exhausted.")
