"""Circle roster persistence."""

from .codec import Skipped, Valid, decode_roster, parse_roster, serialize_roster  # noqa: F401
from .document_store import (  # noqa: F401
    DocumentStore,
    InMemoryDocumentStore,
    RedisDocumentStore,
    StoredDocument,
    WriteOutcome,
)
from .exceptions import (  # noqa: F401
    CircleError,
    ConcurrentModificationError,
    InvalidInputError,
    StoreTimeoutError,
    StoreUnavailableError,
    ValidationError,
)
from .roster import (  # noqa: F401
    add_member,
    edit_member,
    generate_member_id,
    remove_member,
    validate_member_input,
)
from .store import (  # noqa: F401
    RosterMutationResult,
    RosterMutationStatus,
    RosterSnapshot,
    RosterStore,
)
