"""
Inventory Modules.

Domain layers built on the Inventory Kernel.  Each module contains:
- Domain models (the nouns)
- ORM persistence models
- Configuration schemas
- A service facade that owns transaction boundaries

Modules:
- Assets: asset register, structured codes, bulk groups, depreciation, import
"""
