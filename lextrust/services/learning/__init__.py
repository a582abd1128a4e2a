from lextrust.services.learning.collector import SignalCollector
from lextrust.services.learning.diagnoser import LearningDiagnoser
from lextrust.services.learning.evaluation_gate import EvaluationGate
from lextrust.services.learning.job_processor import LearningJobProcessor
from lextrust.services.learning.loop import LearningLoop
from lextrust.services.learning.policy_applier import PolicyApplier
from lextrust.services.learning.reports import LearningReportService

__all__ = [
    "EvaluationGate",
    "LearningDiagnoser",
    "LearningJobProcessor",
    "LearningLoop",
    "LearningReportService",
    "PolicyApplier",
    "SignalCollector",
]
