from hackportal.services.allocation_engine import AllocationEngine, AllocationResult, RejectionReason
from hackportal.services.broadcaster import LiveUpdateBroadcaster, Observer
from hackportal.services.catalog_service import CatalogService, DEFAULT_PROBLEM_STATEMENTS
from hackportal.services.container import PortalServices
from hackportal.services.read_model import ReadModelProjector
from hackportal.services.team_directory import TeamDirectory, TeamEntry

__all__ = [
    # Core protocol
    "AllocationEngine",
    "AllocationResult",
    "RejectionReason",
    # Catalog administration
    "CatalogService",
    "DEFAULT_PROBLEM_STATEMENTS",
    # Views and live updates
    "ReadModelProjector",
    "LiveUpdateBroadcaster",
    "Observer",
    # Team roster
    "TeamDirectory",
    "TeamEntry",
    # Wiring
    "PortalServices",
]
