"""
Asset Register Module (``inventory_modules.assets``).

Responsibility
--------------
Asset lifecycle for the register: structured code allocation, single and
bulk creation, write-time straight-line depreciation, updates, deletes
with bulk-group re-packing, and batch import of parsed rows.

Architecture position
---------------------
**Modules layer** -- config schema, DTOs, ORM models, pure helpers and a
service facade.  Sequence allocation and the activity history come from
``inventory_kernel.services``.

Invariants enforced
-------------------
* Asset codes are unique and immutable once issued.
* One allocation lock per creating transaction, held until commit.
* Exactly one audit entry per mutating call.

Failure modes
-------------
* Typed errors from ``inventory_kernel.exceptions``; callers switch on
  ``error.kind``.
* Audit write failures are logged and never fail the mutation.
"""

from inventory_modules.assets.config import AssetConfig
from inventory_modules.assets.importer import AssetImportService
from inventory_modules.assets.models import (
    ActorContext,
    Asset,
    AssetFields,
    AssetStatus,
    Category,
    DepreciationResult,
    ImportResult,
    Location,
    ProcurementSource,
)
from inventory_modules.assets.service import AssetService

__all__ = [
    "ActorContext",
    "Asset",
    "AssetConfig",
    "AssetFields",
    "AssetImportService",
    "AssetService",
    "AssetStatus",
    "Category",
    "DepreciationResult",
    "ImportResult",
    "Location",
    "ProcurementSource",
]
