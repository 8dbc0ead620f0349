from __future__ import annotations

import re
import unicodedata

from sqlmodel.ext.asyncio.session import AsyncSession
from rentory.core.config import settings
from rentory.core.exceptions import errors
from rentory.core.helpers.dates import today
from rentory.domain.models import Product
from rentory.domain.repositories.instance_repository import InstanceRepository
from rentory.domain.repositories.product_repository import ProductRepository

# Known equipment names, French and English spellings, compared without
# spaces or accents. Longer names are tried first so that
# "chaise napoleon" wins over "chaise".
NAME_PREFIXES: dict[str, str] = {
    "CHAISENAPOLEON": "CHN",
    "NAPOLEONCHAIR": "CHN",
    "COUVERTUREBLANC": "CVB",
    "WHITECOVER": "CVB",
    "RIDEAUBLANC": "RDB",
    "WHITECURTAIN": "RDB",
    "TAPISROUGE": "TPR",
    "REDCARPET": "TPR",
    "TABLEBASSE": "TB",
    "COFFEETABLE": "TB",
    "PROJECTEUR": "PR",
    "PROJECTOR": "PR",
    "LUMINAIRE": "LU",
    "CHAISE": "CH",
    "CHAIR": "CH",
    "FRIDGE": "FR",
    "FRIGO": "FR",
    "TENTE": "TT",
    "TENT": "TT",
    "TABLE": "TA",
    "LAMPE": "LP",
    "LAMP": "LP",
}

_ORDERED_PREFIXES = sorted(NAME_PREFIXES.items(), key=lambda item: len(item[0]), reverse=True)


def normalize_name(name: str) -> str:
    """Uppercase a name and keep only its unaccented letters and digits."""
    decomposed = unicodedata.normalize("NFKD", name)
    ascii_name = decomposed.encode("ascii", "ignore").decode("ascii")
    return re.sub(r"[^A-Z0-9]", "", ascii_name.upper())


def name_prefix(name: str) -> str:
    """
    The short prefix used in product codes.

    Known equipment names map to a fixed prefix, anything else uses its first
    two letters padded with ``X``.

    Examples:
        >>> name_prefix("Projecteur Epson")
        'PR'
        >>> name_prefix("Chaise Napoléon dorée")
        'CHN'
        >>> name_prefix("Q")
        'QX'
    """
    normalized = normalize_name(name)

    for key, prefix in _ORDERED_PREFIXES:
        if key in normalized:
            return prefix

    return normalized[:2].ljust(2, "X")


def next_sequence(values: list[str], prefix: str) -> int:
    """
    Return one more than the highest numeric suffix found after ``prefix``.

    Values whose suffix is not a plain number are ignored.
    """
    highest = 0
    for value in values:
        suffix = value[len(prefix):]
        if value.startswith(prefix) and suffix.isdigit():
            highest = max(highest, int(suffix))
    return highest + 1


class CodeService:
    """
    Generates product codes and instance serial numbers.
    """

    def __init__(self, session: AsyncSession):
        self.session = session
        self.product_repository = ProductRepository(session)
        self.instance_repository = InstanceRepository(session)

    async def next_product_code(self, name: str) -> str:
        """
        Build the next free code for a product name, ``PRD-{XX}-{NNN}``.
        """
        prefix = f"{settings.PRODUCT_CODE_PREFIX}-{name_prefix(name)}-"
        existing = await self.product_repository.codes_with_prefix(prefix)
        return f"{prefix}{next_sequence(existing, prefix):03d}"

    async def next_serial_numbers(self, product: Product, count: int, year: int | None = None) -> list[str]:
        """
        Build ``count`` consecutive serial numbers ``{code}-{YYYY}-{NNNN}``
        continuing after the highest suffix already used under that prefix.

        Raises:
            InvalidRequestError: If the serial numbers would be too long
        """
        prefix = f"{product.code}-{year or today().year}-"
        existing = await self.instance_repository.serials_with_prefix(prefix)
        start = next_sequence(existing, prefix)

        serials = [f"{prefix}{number:0{settings.SERIAL_NUMBER_PADDING}d}" for number in range(start, start + count)]

        if serials and len(serials[-1]) > settings.SERIAL_NUMBER_MAX_LENGTH:
            raise errors.InvalidRequestError(
                detail=f"Serial number {serials[-1]} exceeds {settings.SERIAL_NUMBER_MAX_LENGTH} characters",
                metadata={"product_id": product.id},
            )

        return serials
