"""Taxon labels: a short category tag optionally paired with a numeral."""

from __future__ import annotations

import dataclasses as dc

REFERENCE_PREFIX = "reference"
REFERENCE_PREFIX_CJK = "参考"


@dc.dataclass(slots=True)
class Taxon:
    """Category text plus an optional numeral such as ``"1.2."``."""

    text: str
    numbering: str | None = None

    def display(self) -> str:
        """Return the label shown before a section title.

        >>> Taxon("Theorem. ", "1.2.").display()
        'Theorem 1.2. '
        >>> Taxon("Definition. ").display()
        'Definition. '
        >>> Taxon("", "2.").display()
        '2. '
        """
        if self.numbering is None:
            return self.text
        text = self.text[:-2] if self.text.endswith(". ") else self.text
        if not text:
            return f"{self.numbering} "
        return f"{text} {self.numbering} "


def display_taxon(raw: str) -> str:
    """Capitalize a raw taxon and append the ``". "`` separator.

    >>> display_taxon("theorem")
    'Theorem. '
    """
    if not raw:
        return raw
    return f"{raw[0].upper()}{raw[1:]}. "


def to_data_taxon(taxon_display: str) -> str:
    """Return the category token: everything before the first dot.

    >>> to_data_taxon("Reference.Book")
    'Reference'
    """
    return taxon_display.split(".", 1)[0].strip()


def is_reference(data_taxon: str) -> bool:
    """Return True when ``data_taxon`` names the reserved reference category."""
    lowered = data_taxon.strip().lower()
    return (
        lowered == REFERENCE_PREFIX
        or lowered.startswith(f"{REFERENCE_PREFIX}.")
        or data_taxon.startswith(REFERENCE_PREFIX_CJK)
    )


__all__ = ["Taxon", "display_taxon", "is_reference", "to_data_taxon"]
