from cyoa_stats.models.project import Project  # noqa: F401
from cyoa_stats.models.log_entry import LogEntry  # noqa: F401
