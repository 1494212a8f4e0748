"""ingestkit-agri -- agricultural calendar and advisory ingestion for the ingestkit framework.

Public API exports for the router, pipeline components, models, enums,
errors, and configuration.
"""

from ingestkit_agri.classifier import ContentTypeClassifier
from ingestkit_agri.config import AgriProcessorConfig
from ingestkit_agri.errors import (
    AgriIngestException,
    ClassificationError,
    ErrorCode,
    FileAccessError,
    FormatError,
    IngestError,
    RowValidationError,
)
from ingestkit_agri.extractor import TabularExtractor
from ingestkit_agri.models import (
    Activity,
    AgrometAdvisoryRecord,
    CalendarType,
    CalendarTypeResult,
    CanonicalRecord,
    CellColors,
    CellContentType,
    CellInfo,
    ColorPattern,
    ColorStatistics,
    CommodityAdvisoryRecord,
    ContentType,
    CropCalendarRecord,
    DataQualityReport,
    DeclaredFileType,
    FormattingSummary,
    ParseMetadata,
    ParseResult,
    Period,
    PoultryCalendarRecord,
    ProductionCalendarRecord,
    SheetAnalysis,
    SheetRange,
    StructurePatterns,
    Timeline,
    TimelineKind,
    TimelinePeriod,
    WorkbookAnalysis,
)
from ingestkit_agri.normalize import (
    WeekRange,
    clean_string,
    parse_date,
    parse_excel_serial_date,
    parse_month,
    parse_week_range,
    resolve_field,
)
from ingestkit_agri.parsers import CommodityAdvisoryParser, RecordParser, create_parser
from ingestkit_agri.quality import DataQualityValidator
from ingestkit_agri.reference import ReferenceData, load_reference_data
from ingestkit_agri.router import AgriRouter, create_default_router
from ingestkit_agri.schemas import SCHEMAS, FieldSpec, RecordSchema
from ingestkit_agri.security import AgriSecurityScanner
from ingestkit_agri.structure import StructuralAnalyzer, infer_calendar_type

__all__ = [
    # Router
    "AgriRouter",
    "create_default_router",
    # Pipeline components
    "AgriSecurityScanner",
    "TabularExtractor",
    "ContentTypeClassifier",
    "RecordParser",
    "CommodityAdvisoryParser",
    "create_parser",
    "StructuralAnalyzer",
    "infer_calendar_type",
    "DataQualityValidator",
    # Schemas
    "FieldSpec",
    "RecordSchema",
    "SCHEMAS",
    # Normalizers
    "WeekRange",
    "clean_string",
    "parse_month",
    "parse_date",
    "parse_excel_serial_date",
    "parse_week_range",
    "resolve_field",
    # Enums
    "ContentType",
    "DeclaredFileType",
    "CellContentType",
    "TimelineKind",
    "CalendarType",
    # Structural models
    "CellColors",
    "CellInfo",
    "SheetRange",
    "StructurePatterns",
    "Period",
    "Activity",
    "TimelinePeriod",
    "Timeline",
    "ColorPattern",
    "SheetAnalysis",
    "CalendarTypeResult",
    "FormattingSummary",
    "WorkbookAnalysis",
    "ColorStatistics",
    # Records
    "CanonicalRecord",
    "CropCalendarRecord",
    "ProductionCalendarRecord",
    "AgrometAdvisoryRecord",
    "PoultryCalendarRecord",
    "CommodityAdvisoryRecord",
    # Results
    "DataQualityReport",
    "ParseMetadata",
    "ParseResult",
    # Reference data
    "ReferenceData",
    "load_reference_data",
    # Errors
    "ErrorCode",
    "IngestError",
    "AgriIngestException",
    "FormatError",
    "ClassificationError",
    "RowValidationError",
    "FileAccessError",
    # Config
    "AgriProcessorConfig",
]
