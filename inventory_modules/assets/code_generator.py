"""
CodeGenerator -- structured asset codes ``LLL.CC.P.YY.SSS``.

Responsibility:
    Turns an asset's business attributes and an allocated sequence number
    into its code:

        LLL  location code, zero-padded (default "001" without a location)
        CC   category code, zero-padded (default "10" when empty)
        P    procurement source code (pembelian=1 ... produksi_sendiri=5)
        YY   last two digits of the acquisition year
        SSS  global sequence number, zero-padded

Architecture position:
    Modules layer.  Reads categories and locations through the
    repository; never writes.

Failure modes:
    - CategoryNotFoundError: the category does not exist.  Propagated.
    - Anything else: logged as ``asset_code_generation_failed`` and the
      code falls back to ``AST-XXXXXXXX``.  The fallback is subject to the
      same uniqueness checks as a structured code.
"""

from datetime import date
from uuid import UUID, uuid4

from inventory_kernel.exceptions import CategoryNotFoundError, CodeGenerationError
from inventory_kernel.logging_config import get_logger
from inventory_modules.assets.config import AssetConfig
from inventory_modules.assets.repository import AssetRepository

logger = get_logger("modules.assets.code_generator")


def format_code(
    location_code: str | None,
    category_code: str | None,
    procurement_source: str | None,
    acquisition_date: date,
    sequence: int,
    config: AssetConfig | None = None,
) -> str:
    """
    Join the five code segments.

    Raises:
        CodeGenerationError: If the date or sequence cannot be encoded.
    """
    config = config or AssetConfig.with_defaults()

    if acquisition_date is None or not hasattr(acquisition_date, "year"):
        raise CodeGenerationError("acquisition date is required")
    if not isinstance(sequence, int) or sequence < 1:
        raise CodeGenerationError(f"sequence must be a positive integer, got {sequence!r}")

    location_part = (
        location_code.strip().rjust(config.location_code_width, "0")
        if location_code and location_code.strip()
        else config.default_location_code
    )
    category_part = (
        category_code.strip().rjust(config.category_code_width, "0")
        if category_code and category_code.strip()
        else config.default_category_code
    )
    procurement_part = config.procurement_codes.get(
        (procurement_source or "").strip().lower(),
        config.default_procurement_code,
    )
    year_part = f"{acquisition_date.year % 100:02d}"
    sequence_part = str(sequence).rjust(config.sequence_width, "0")

    return ".".join(
        (location_part, category_part, procurement_part, year_part, sequence_part)
    )


class CodeGenerator:
    """
    Builds asset codes from stored category and location codes.

    Usage:
        generator = CodeGenerator(repository, config)
        code = generator.generate_code(
            category_id, location_id, "hibah", date(2024, 6, 1), 7,
        )
    """

    def __init__(self, repository: AssetRepository, config: AssetConfig | None = None):
        self._repository = repository
        self._config = config or AssetConfig.with_defaults()

    def generate_code(
        self,
        category_id: UUID,
        location_id: UUID | None,
        procurement_source: str | None,
        acquisition_date: date,
        sequence: int,
    ) -> str:
        """
        Code for one asset.

        Raises:
            CategoryNotFoundError: If ``category_id`` does not exist.
        """
        category = self._repository.get_category(category_id)
        if category is None:
            raise CategoryNotFoundError(str(category_id))

        try:
            location_code = None
            if location_id is not None:
                location = self._repository.get_location(location_id)
                if location is not None:
                    location_code = location.code

            return format_code(
                location_code,
                category.code,
                procurement_source,
                acquisition_date,
                sequence,
                self._config,
            )
        except Exception as exc:
            code = self.fallback_code()
            logger.error(
                "asset_code_generation_failed",
                exc_info=True,
                extra={
                    "category_id": str(category_id),
                    "sequence": sequence,
                    "fallback_code": code,
                    "error": str(exc),
                },
            )
            return code

    def fallback_code(self) -> str:
        return f"{self._config.fallback_code_prefix}{uuid4().hex[:8].upper()}"
