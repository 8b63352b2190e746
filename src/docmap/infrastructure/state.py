"""Process-wide mapping state.

Exposes:
- active_mapper: Optional[DocumentMapper] - the mapper created by data.mapper_setup.global_init().
- active_type: Optional[type] - the class currently loaded in the inspector console.
- get_mapper(): Return the active mapper, failing loudly if global_init() was never called.
- reset(): Forget both (used between tests and when the console restarts).
"""

from typing import Optional

from docmap.services.mapper import DocumentMapper

# The mapper shared by the whole process; None until global_init() runs.
active_mapper: Optional[DocumentMapper] = None

# The class the inspector console is currently looking at.
active_type: Optional[type] = None


def get_mapper() -> DocumentMapper:
    if active_mapper is None:
        raise RuntimeError('No active mapper; call docmap.data.mapper_setup.global_init() first.')
    return active_mapper


def reset():
    global active_mapper, active_type  # We rebind the module-level variables below.
    active_mapper = None
    active_type = None
