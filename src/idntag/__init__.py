__version__ = "2.0.0"

__all__ = (
    "__version__",
    "main",
    "Config",
    # Editor
    "EditSession",
    "EditResult",
    "FieldBuffer",
    "RenderSurface",
    "compute_layout",
    "edit_tags",
    # Collaborators
    "AcoustIDClient",
    "Identifier",
    "RateLimiter",
    "TagPair",
    "read_tags",
    "write_tags",
    "clear_tags",
    "suggest_renamed_path",
    # Errors
    "IdntagError",
    "IdentifyError",
    "RenameError",
    "TagError",
    "UnsupportedFileError",
    "UserCancelled",
)

from idntag.acoustid import AcoustIDClient, Identifier
from idntag.cli import main
from idntag.config import Config
from idntag.editor import EditResult, EditSession, edit_tags
from idntag.errors import (
    IdentifyError,
    IdntagError,
    RenameError,
    TagError,
    UnsupportedFileError,
    UserCancelled,
)
from idntag.field import FieldBuffer
from idntag.layout import compute_layout
from idntag.naming import suggest_renamed_path
from idntag.rate_limiter import RateLimiter
from idntag.render import RenderSurface
from idntag.tagging import TagPair, clear_tags, read_tags, write_tags
