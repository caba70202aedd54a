"""
Shared data structures and constants for the memory provider.

It includes the result types returned to callers, the names of the requests
sent through the debug session, and the reference bases used by the GDB
request handler.
"""

from collections import namedtuple

CommandResult = namedtuple("CommandResult", ["success", "message"])

MemoryReadResult = namedtuple("MemoryReadResult", ["bytes", "address"])

VariableRange = namedtuple("VariableRange", ["name", "address", "past_the_end_address"])


MEMORY_REQUEST_COMMAND = "cdt-gdb-adapter/Memory"
EVALUATE_COMMAND = "evaluate"
EVALUATE_CONTEXT = "watch"

MAX_UNSIGNED_LONG = 2**64 - 1

# Containers with more indexed children than this are split into groups
CHUNK_SIZE = 100

# Constants for `variablesReference`
VAR_REF_NO_NESTING = 0
VAR_REF_LOCAL_BASE = 100000  # Local variables
