"""
Invoice template settings

Per-owner display options for the rendered invoice. Persisted as one JSON
blob on user_branding.template_settings (camelCase keys, as the web client
sends them). Reads always go through parse_template_settings so a missing or
corrupt blob degrades to defaults instead of failing the request.
"""
import json
import logging
from typing import Any, Dict, Literal, Mapping, Optional, Union

from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from invoicer.exceptions import ValidationError
from invoicer.utils.money import DATE_FORMAT_US

logger = logging.getLogger(__name__)

FONT_SIZES = {"small": 8, "normal": 10, "large": 12}
LINE_SPACING = {"compact": 4, "normal": 6, "relaxed": 8}


class TemplateSettings(BaseModel):
    """Invoice display options with their defaults"""
    show_company_logo: bool = True
    show_company_address: bool = True
    show_company_phone: bool = True
    show_company_email: bool = True
    show_website: bool = True
    show_tax_id: bool = True
    header_background_enabled: bool = True
    alternating_row_colors: bool = True
    show_footer: bool = True
    footer_text: str = Field(default="Thank you for your business!", max_length=500)
    invoice_number_prefix: str = Field(default="INV-", max_length=20)
    date_format: Literal["MM/DD/YYYY", "DD/MM/YYYY", "YYYY-MM-DD"] = DATE_FORMAT_US
    currency_symbol: str = Field(default="₹", max_length=8)
    font_size: Literal["small", "normal", "large"] = "normal"
    line_spacing: Literal["compact", "normal", "relaxed"] = "normal"

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        extra = "ignore"

    @property
    def base_font_size(self) -> int:
        return FONT_SIZES[self.font_size]

    @property
    def extra_leading(self) -> int:
        return LINE_SPACING[self.line_spacing]


# accepted key (snake_case or camelCase) -> field name
_KEY_TO_FIELD = {}
for _name, _field in TemplateSettings.model_fields.items():
    _KEY_TO_FIELD[_name] = _name
    _KEY_TO_FIELD[_field.alias or _name] = _name


def _known_overrides(overrides: Mapping[str, Any]) -> Dict[str, Any]:
    return {_KEY_TO_FIELD[k]: v for k, v in overrides.items() if k in _KEY_TO_FIELD}


def merge_template_settings(
    base: Optional[TemplateSettings],
    overrides: Optional[Mapping[str, Any]],
) -> TemplateSettings:
    """
    Field-wise merge: only keys present in overrides replace base values.

    Unknown keys are ignored. Raises ValidationError on an invalid value.
    """
    base = base or TemplateSettings()
    if not overrides:
        return base.model_copy()
    if not isinstance(overrides, Mapping):
        raise ValidationError("Template settings must be an object", entity="template_settings")
    merged = base.model_dump()
    merged.update(_known_overrides(overrides))
    try:
        return TemplateSettings.model_validate(merged)
    except PydanticValidationError as e:
        first = e.errors()[0]
        field = ".".join(str(p) for p in first.get("loc", ())) or "value"
        raise ValidationError(
            f"Invalid template setting {field}: {first.get('msg')}", entity="template_settings"
        ) from e


def parse_template_settings(blob: Union[str, bytes, Mapping[str, Any], None]) -> TemplateSettings:
    """
    Defaults merged with the persisted blob.

    Never raises: a corrupt blob yields defaults, and an individual invalid
    value falls back to its default, both with a warning.
    """
    defaults = TemplateSettings()
    if blob is None or blob == "" or blob == b"":
        return defaults
    data = blob
    if isinstance(blob, (str, bytes)):
        try:
            data = json.loads(blob)
        except (ValueError, TypeError) as e:
            logger.warning("Unreadable template settings, using defaults: %s", e)
            return defaults
    if not isinstance(data, Mapping):
        logger.warning("Template settings blob is %s, not an object; using defaults", type(data).__name__)
        return defaults

    try:
        return merge_template_settings(defaults, data)
    except ValidationError as e:
        logger.warning("Template settings contain invalid values (%s); dropping them", e.message)

    valid: Dict[str, Any] = {}
    for key, value in _known_overrides(data).items():
        try:
            merge_template_settings(defaults, {key: value})
        except ValidationError:
            continue
        valid[key] = value
    return merge_template_settings(defaults, valid)


def dump_template_settings(value: TemplateSettings) -> str:
    """Serialize for storage (camelCase keys)."""
    return json.dumps(value.model_dump(by_alias=True), ensure_ascii=False)
