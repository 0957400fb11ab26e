from .guide import SECTIONS
from .operation import global_operation, region_operation, zone_operation
from .static import StaticResource

__all__ = [
    "SECTIONS",
    "StaticResource",
    "global_operation",
    "region_operation",
    "zone_operation",
]
