"""
Content preservation for legacy blocks.

Each known block type has a rule listing the fields its content should carry
and, for each field, the legacy keys that may hold the value. Legacy keys the
rule does not produce are copied through so nothing unrecognised is dropped.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple

from ..models import BlockType, Template

THOUGHT_DEFAULT_COLOR = "#fef3c7"
STATUS_DEFAULT_COLOR = "#10b981"


@dataclass
class FieldRule:
    """
    How one content field is derived.

    The first non-empty legacy value among `sources` wins. When none is found
    the default is used; `default_factory` receives the template so that
    color-bearing types can fall back to the template's styling.
    """
    name: str
    sources: Tuple[str, ...] = ()
    default: Any = ""
    default_factory: Optional[Callable[[Template], Any]] = None
    boolean: bool = False

    def __post_init__(self):
        if not self.sources:
            self.sources = (self.name,)


@dataclass
class ContentRule:
    """The ordered field rules for one block type."""
    block_type: BlockType
    fields: List[FieldRule] = field(default_factory=list)


def _background_or(fallback: str) -> Callable[[Template], str]:
    def resolve(template: Template) -> str:
        return template.default_styles.background_color or fallback
    return resolve


CONTENT_RULES: Dict[BlockType, ContentRule] = {
    BlockType.TEXT: ContentRule(BlockType.TEXT, [
        FieldRule("text", ("text", "content")),
        FieldRule("title"),
        FieldRule("category"),
    ]),
    BlockType.THOUGHT: ContentRule(BlockType.THOUGHT, [
        FieldRule("thought", ("thought", "text", "content")),
        FieldRule("category"),
        FieldRule("color", default_factory=_background_or(THOUGHT_DEFAULT_COLOR)),
    ]),
    BlockType.QUOTE: ContentRule(BlockType.QUOTE, [
        FieldRule("quote", ("quote", "text", "content")),
        FieldRule("author"),
        FieldRule("source"),
        FieldRule("category"),
    ]),
    BlockType.IMAGE: ContentRule(BlockType.IMAGE, [
        FieldRule("src", ("src", "imageUrl", "url")),
        FieldRule("alt", ("alt", "title")),
        FieldRule("title"),
        FieldRule("caption"),
        FieldRule("category"),
    ]),
    BlockType.VIDEO: ContentRule(BlockType.VIDEO, [
        FieldRule("src", ("src", "videoUrl", "url")),
        FieldRule("title"),
        FieldRule("description"),
        FieldRule("thumbnail", ("thumbnail", "poster")),
        FieldRule("autoplay", default=False, boolean=True),
        FieldRule("muted", default=True, boolean=True),
        FieldRule("category"),
    ]),
    BlockType.PROJECT: ContentRule(BlockType.PROJECT, [
        FieldRule("title"),
        FieldRule("description"),
        FieldRule("image", ("image", "thumbnail")),
        FieldRule("link", ("link", "url")),
        FieldRule("tags", default_factory=lambda template: []),
        FieldRule("status", default="completed"),
        FieldRule("category"),
    ]),
    BlockType.STATUS: ContentRule(BlockType.STATUS, [
        FieldRule("status", default="active"),
        FieldRule("message", ("message", "text")),
        FieldRule("color", default_factory=_background_or(STATUS_DEFAULT_COLOR)),
        FieldRule("category"),
    ]),
}


def is_empty(value: Any) -> bool:
    """True for values that carry no content: None, '', and empty collections."""
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    if isinstance(value, (list, tuple, dict, set)):
        return len(value) == 0
    return False


def normalize_legacy_content(legacy_content: Any) -> Dict[str, Any]:
    """
    Coerce legacy content into a dict.

    None becomes an empty dict; bare scalars (old text tiles stored a plain
    string) are wrapped under 'content'.
    """
    if legacy_content is None:
        return {}
    if isinstance(legacy_content, dict):
        return legacy_content
    return {"content": legacy_content}


class ContentPreserver:
    """
    Produces normalized content for a block type from free-form legacy content.
    """

    def __init__(self, rules: Optional[Dict[BlockType, ContentRule]] = None):
        self.rules = rules if rules is not None else CONTENT_RULES

    def preserve(self, legacy_content: Any, block_type: Optional[str], template: Template) -> Dict[str, Any]:
        """
        Build the migrated content payload.

        Args:
            legacy_content: The legacy block's content, of unknown shape
            block_type: The block type tag
            template: The template the block was resolved to

        Returns:
            A new content dict; the legacy object is never modified
        """
        legacy = normalize_legacy_content(legacy_content)
        known_type = BlockType.parse(block_type)
        rule = self.rules.get(known_type) if known_type is not None else None

        if rule is None:
            # Unknown types round-trip untouched
            return dict(legacy)

        content: Dict[str, Any] = {}
        for field_rule in rule.fields:
            content[field_rule.name] = self._derive(field_rule, legacy, template)

        for key, value in legacy.items():
            if key not in content:
                content[key] = value

        return content

    def _derive(self, field_rule: FieldRule, legacy: Dict[str, Any], template: Template) -> Any:
        if field_rule.boolean:
            value = legacy.get(field_rule.name)
            return value if isinstance(value, bool) else field_rule.default

        for source in field_rule.sources:
            value = legacy.get(source)
            if not is_empty(value):
                return value

        if field_rule.default_factory is not None:
            return field_rule.default_factory(template)
        return field_rule.default
