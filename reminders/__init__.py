from .errors import CapacityError, StorageError, UpstreamError, ValidationError
from .store import PreferenceStore
from .dedup import DedupGuard
from .gate import TaskCompletionGate
from .dispatch import DispatchEngine, DispatchSummary
from .timeutils import parse_time, format_time_for_display
