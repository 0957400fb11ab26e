"""Cloud operations MCP tools."""

from .cancel_wait import cancel_wait
from .disks import attach_regional_disk, create_regional_disk, delete_regional_disk
from .get_guide import get_guide
from .get_operation import get_operation
from .instances import create_instance, delete_instance
from .kms import destroy_crypto_key_version, ensure_crypto_key
from .list_operations import list_operations
from .parameters import (
    delete_parameter,
    delete_parameter_version,
    disable_parameter_version,
    enable_parameter_version,
    update_parameter_kms_key,
)
from .wait_operations import wait_operations

__all__ = [
    "attach_regional_disk",
    "cancel_wait",
    "create_instance",
    "create_regional_disk",
    "delete_instance",
    "delete_parameter",
    "delete_parameter_version",
    "delete_regional_disk",
    "destroy_crypto_key_version",
    "disable_parameter_version",
    "enable_parameter_version",
    "ensure_crypto_key",
    "get_guide",
    "get_operation",
    "list_operations",
    "update_parameter_kms_key",
    "wait_operations",
]
