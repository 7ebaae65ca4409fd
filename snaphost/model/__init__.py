from .modules import (
    ModuleKind,
    ModuleRecord,
    UnknownModule,
    decode_module_info,
    decode_module_record,
    encode_module_record,
)
from .status import ConnectionResult, EnclosureSnapshot, ModuleEntry, ModuleListing, ToolSnapshot

__all__ = ["ModuleKind",
           "ModuleRecord",
           "UnknownModule",
           "decode_module_info",
           "decode_module_record",
           "encode_module_record",
           "ConnectionResult",
           "EnclosureSnapshot",
           "ModuleEntry",
           "ModuleListing",
           "ToolSnapshot"]
