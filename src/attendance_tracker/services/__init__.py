from .delta_service import DeltaService, compute_deltas
from .metrics_service import MetricsService, compute_subject_metric
from .orchestrator import AttendanceProcessor, Extractor
from .snapshot_service import SnapshotService
from .user_service import DuplicateUserError, UserService

__all__ = [
	"AttendanceProcessor",
	"DeltaService",
	"DuplicateUserError",
	"Extractor",
	"MetricsService",
	"SnapshotService",
	"UserService",
	"compute_deltas",
	"compute_subject_metric",
]
