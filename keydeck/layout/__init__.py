"""Layout domain: models, decoding, validation, inheritance and parsing.

This package contains:
- Layout models (the Layout -> Panel -> Row -> Cell tree and its value types)
- The permissive JSON deserializer and the matching serializer
- The structural validator
- Reference graph analysis (panel embedding and inheritance)
- The inheritance resolver and the parser entry points
"""

from keydeck.layout.deserializer import DecodedLayout, SourcePositions, deserialize_layout
from keydeck.layout.graph import (
    MAX_DEPTH,
    InheritanceChain,
    PanelGraphReport,
    analyze_panel_graph,
    check_inheritance_chain,
)
from keydeck.layout.inheritance import InheritanceResolver, ResolvedLayout, merge_layouts
from keydeck.layout.loader import FileLayoutLoader, InMemoryLayoutLoader, create_file_loader
from keydeck.layout.models import (
    DEFAULT_SIZING,
    Action,
    AlternativeKey,
    Cell,
    Character,
    Key,
    KeyCode,
    KeyCodeAction,
    Keysym,
    Layout,
    Modifier,
    ModifierCombo,
    Panel,
    PanelRef,
    PanelSwitch,
    Pixels,
    Relative,
    Row,
    Script,
    SingleModifier,
    Sizing,
    Swipe,
    SwipeDirection,
    Unicode,
    Widget,
)
from keydeck.layout.parser import (
    LayoutParser,
    ParseStage,
    parse_layout_file,
    parse_layout_from_string,
)
from keydeck.layout.results import ParseResult, Severity, ValidationIssue
from keydeck.layout.serializer import dump_layout_json, layout_to_dict, save_layout_file
from keydeck.layout.validation import ValidationReport, validate_decoded, validate_layout


__all__ = [
    # Models
    "DEFAULT_SIZING",
    "Action",
    "AlternativeKey",
    "Cell",
    "Character",
    "Key",
    "KeyCode",
    "KeyCodeAction",
    "Keysym",
    "Layout",
    "Modifier",
    "ModifierCombo",
    "Panel",
    "PanelRef",
    "PanelSwitch",
    "Pixels",
    "Relative",
    "Row",
    "Script",
    "SingleModifier",
    "Sizing",
    "Swipe",
    "SwipeDirection",
    "Unicode",
    "Widget",
    # Results
    "ParseResult",
    "Severity",
    "ValidationIssue",
    "ValidationReport",
    # Pipeline
    "DecodedLayout",
    "SourcePositions",
    "deserialize_layout",
    "validate_decoded",
    "validate_layout",
    "MAX_DEPTH",
    "InheritanceChain",
    "PanelGraphReport",
    "analyze_panel_graph",
    "check_inheritance_chain",
    "InheritanceResolver",
    "ResolvedLayout",
    "merge_layouts",
    "FileLayoutLoader",
    "InMemoryLayoutLoader",
    "create_file_loader",
    "LayoutParser",
    "ParseStage",
    "parse_layout_file",
    "parse_layout_from_string",
    # Serialization
    "dump_layout_json",
    "layout_to_dict",
    "save_layout_file",
]
