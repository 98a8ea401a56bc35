from services.scheduling.core.availability_finder import AvailabilityFinder
from services.scheduling.core.conflict_detector import ConflictDetector

__all__ = ["AvailabilityFinder", "ConflictDetector"]
