"""
SiteAudit Core

Scoring and report engine for field maintenance audits.

A caller hands the engine an InspectionSession snapshot; the engine returns a
ComplianceSnapshot and a .docx byte stream. Nothing here holds session state,
talks to the network (apart from the optional metrics publisher) or touches
the filesystem (apart from the loaders).
"""

__version__ = "1.0.0"
__author__ = "SiteAudit"

# Data model
from .model import (
    NON_MAINTENANCE_CATEGORY,
    DEFAULT_CATEGORIES,
    MAX_PHOTOS_PER_OBSERVATION,
    SiteType,
    RiskLevel,
    RISK_COLORS,
    risk_color,
    Observation,
    ScoringConfig,
    DEFAULT_SCORING_CONFIG,
    InspectionSession,
    ComplianceSnapshot,
)

# Scoring
from .scoring import score, ComplianceAlerts, evaluate_alerts

# Sanitizer
from .sanitize import sanitize_text, decode_image_payload, payload_mime_type

# Document tree, builder, serializer
from .document import DocumentTree, Paragraph, Table, TableRow, TableCell, TextRun, ImageRun
from .builder import build_document, decode_photos
from .serializer import serialize, DOCX_MEDIA_TYPE

# Pipeline
from .pipeline import CompiledReport, compile_report, compile_report_tree, report_filename

# Loading
from .loader import (
    session_from_dict,
    session_to_dict,
    observation_from_dict,
    scoring_config_from_dict,
    load_session,
    load_scoring_config,
)

# Publishing
from .publish import PublishResult, build_publish_payload, publish_metrics

# Exceptions
from .exceptions import (
    SiteAuditError,
    SchemaInvalidError,
    InputInvalidError,
    ReportGenerationError,
    PublishError,
    InternalError,
    wrap_internal_exception,
)
